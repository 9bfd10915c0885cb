# hypertension_coach/application.py
"""
Flask application factory for the hypertension coach backend.

Usage:
    from hypertension_coach.application import create_app
    app = create_app()
    app.run(port=5000)

Tests pass overrides, e.g. create_app({"DATA_DIR": tmp_path, "TREND_LLM": fake_llm}).
"""
import datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from hypertension_coach.common.circuit_breaker import CircuitBreakers
from hypertension_coach.common.logger import get_logger
from hypertension_coach.common.session_manager import get_session_manager
from hypertension_coach.components.persistence import AssessmentStore, PersistenceBridge, ReadingStore
from hypertension_coach.components.trend_aggregator import TrendAggregator, build_trend_llm
from hypertension_coach.config.config import CORS_ORIGINS, DATA_DIR, TREND_THRESHOLD_MMHG
from hypertension_coach.routes import assessment, coach, trends

logger = get_logger(__name__)

START_TIME = datetime.datetime.utcnow()


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config["DATA_DIR"] = DATA_DIR
    app.config["TREND_THRESHOLD_MMHG"] = TREND_THRESHOLD_MMHG
    app.config.update(overrides or {})

    CORS(app, resources={r"/*": {"origins": CORS_ORIGINS}})

    data_dir = str(app.config["DATA_DIR"])
    bridge = PersistenceBridge(ReadingStore(data_dir), AssessmentStore(data_dir))
    trend_llm = app.config["TREND_LLM"] if "TREND_LLM" in app.config else build_trend_llm()
    app.extensions["persistence"] = bridge
    app.extensions["trends"] = TrendAggregator(
        bridge.readings,
        llm=trend_llm,
        threshold=int(app.config["TREND_THRESHOLD_MMHG"]),
    )

    app.register_blueprint(assessment.bp)
    app.register_blueprint(coach.bp)
    app.register_blueprint(trends.bp)

    @app.route("/health", methods=["GET"])
    def health():
        uptime = (datetime.datetime.utcnow() - START_TIME).total_seconds()
        return jsonify({
            "status": "ok",
            "uptime_seconds": int(uptime),
            "active_sessions": get_session_manager().get_session_count(),
            "circuit_breakers": CircuitBreakers.statuses(),
            "timestamp": datetime.datetime.utcnow().isoformat(),
        })

    logger.info(f"Hypertension coach app created (data dir: {data_dir})")
    return app
