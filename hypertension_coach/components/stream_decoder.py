# hypertension_coach/components/stream_decoder.py
"""
Incremental decoder for streamed chat completions.

The completion endpoint answers with newline-delimited records:

    : keep-alive comment
    data: {"choices":[{"delta":{"content":"Namaste"}}]}
    data: [DONE]

Network reads can cut a record (or a multi-byte UTF-8 character) anywhere, so
bytes are buffered until a full line is available. A complete line whose JSON
does not parse is put back and tried again once more bytes have arrived; a
second failure drops it.

Usage:
    decoder = StreamDecoder()
    for chunk in response.iter_content(chunk_size=None):
        for fragment in decoder.feed(chunk):
            conversation.append_assistant(fragment)
    for fragment in decoder.flush():
        conversation.append_assistant(fragment)
"""
import codecs
import json
import logging
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def extract_content(payload: Dict[str, Any]) -> Optional[str]:
    """Pull the text out of a streamed delta or a one-shot completion payload."""
    choices = payload.get("choices") if isinstance(payload, dict) else None
    if not choices or not isinstance(choices, list):
        return None
    first = choices[0] if isinstance(choices[0], dict) else {}
    for key in ("delta", "message"):
        part = first.get(key)
        if isinstance(part, dict) and part.get("content"):
            return part["content"]
    return None


class StreamDecoder:
    def __init__(self):
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        # line that failed to parse and is waiting for more bytes
        self._retry_line: Optional[str] = None
        self.done = False
        self.records_seen = 0
        self.records_dropped = 0

    def feed(self, chunk: Union[bytes, str]) -> List[str]:
        """Add one network read; return the content fragments it completed, in order."""
        if self.done:
            return []
        text = self._utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        self._buffer += text
        return self._drain(final=False)

    def flush(self) -> List[str]:
        """End of stream: process whatever is still buffered."""
        if self.done:
            return []
        self._buffer += self._utf8.decode(b"", final=True)
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"
        fragments = self._drain(final=True)
        self.done = True
        return fragments

    def _drain(self, final: bool) -> List[str]:
        fragments: List[str] = []
        while not self.done:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            rest = self._buffer[newline + 1:]

            if line.endswith("\r"):
                line = line[:-1]
            if not line.strip() or line.startswith(":") or not line.startswith(DATA_PREFIX):
                self._buffer = rest
                continue

            data = line[len(DATA_PREFIX):].strip()
            if data == DONE_SENTINEL:
                self._buffer = ""
                self.done = True
                break

            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                if not final and self._retry_line != line:
                    # keep it at the head of the buffer and wait for the next read
                    self._retry_line = line
                    break
                logger.warning(f"Dropping unparsable stream record ({len(line)} chars)")
                self.records_dropped += 1
                self._retry_line = None
                self._buffer = rest
                continue

            self._retry_line = None
            self._buffer = rest
            self.records_seen += 1
            content = extract_content(payload)
            if content:
                fragments.append(content)
        return fragments
