# hypertension_coach/common/logger.py
"""
Process-wide logging: one dated UTF-8 file under LOG_DIR plus stdout.

Coach replies and stage labels may carry Devanagari, so the file handler is
always UTF-8. Gateway errors can echo request headers, so bearer tokens are
masked before anything is written.

Usage:
    logger = get_logger(__name__)
    logger.info(f"Scored assessment: stage={stage.value}")
"""
import logging
import os
import re
import sys
from datetime import datetime

LOGS_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# ANSI colour codes and credentials never reach a handler
ANSI_RE = re.compile(r"\x1B\[[0-?]*[ -/]*[@-~]")
SECRET_RE = re.compile(r"(Bearer\s+|api[_-]?key[\"']?\s*[:=]\s*[\"']?)[A-Za-z0-9._\-]+", re.IGNORECASE)


class ScrubFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            msg = ANSI_RE.sub("", record.msg)
            record.msg = SECRET_RE.sub(r"\1***", msg)
        return True


_configured = False


def _log_file() -> str:
    return os.path.join(LOGS_DIR, f"log_{datetime.now().strftime('%Y-%m-%d')}.log")


def _configure_root_logger():
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    formatter = logging.Formatter(LOG_FORMAT)
    scrub = ScrubFilter()

    handlers = [logging.StreamHandler(stream=sys.stdout)]
    try:
        os.makedirs(LOGS_DIR, exist_ok=True)
        handlers.append(logging.FileHandler(_log_file(), encoding="utf-8"))
    except OSError as e:
        # read-only deployments still get stdout
        sys.stderr.write(f"File logging disabled ({e})\n")

    for handler in handlers:
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(formatter)
        handler.addFilter(scrub)
        root.addHandler(handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure_root_logger()
    return logging.getLogger(name)
