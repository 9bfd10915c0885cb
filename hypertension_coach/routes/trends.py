# hypertension_coach/routes/trends.py
from flask import Blueprint, current_app, jsonify, request

from hypertension_coach.common.logger import get_logger
from hypertension_coach.components.persistence import validate_session_id

bp = Blueprint("trends", __name__)
logger = get_logger(__name__)


@bp.route("/api/trends", methods=["POST"])
def analyze_trends():
    """Body: {"sessionId": "..."} -> {"analysis", "trend", "trendData"} (or "change": null when empty)"""
    try:
        data = request.get_json(silent=True) or {}
        session_id = validate_session_id(data.get("sessionId") or "")
        result = current_app.extensions["trends"].analyze(session_id)
        return jsonify(result)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except OSError as e:
        logger.exception(f"/api/trends failed: {e}")
        return jsonify({"error": "Failed to fetch BP readings"}), 500
    except Exception as e:
        logger.exception(f"/api/trends failed: {e}")
        return jsonify({"error": "Trend analysis failed"}), 500
