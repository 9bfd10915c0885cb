# hypertension_coach/routes/assessment.py
from flask import Blueprint, current_app, jsonify, request

from hypertension_coach.common.custom_exception import IncompleteAssessmentError
from hypertension_coach.common.logger import get_logger
from hypertension_coach.common.session_manager import get_session_manager
from hypertension_coach.components.diet_plan_generator import diet_summary
from hypertension_coach.components.models import BPReading, PatientInput
from hypertension_coach.components.persistence import validate_session_id
from hypertension_coach.components.risk_scorer import score

bp = Blueprint("assessment", __name__)
logger = get_logger(__name__)

# Accepted exact readings (mmHg); anything outside is treated as a typo
SYSTOLIC_RANGE = (50, 300)
DIASTOLIC_RANGE = (30, 200)


def _persistence():
    return current_app.extensions["persistence"]


def _optional_reading(data, key, bounds):
    """Exact reading in mmHg, None when absent; ValueError when not a plausible integer."""
    raw = data.get(key)
    if raw is None or raw == "":
        return None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if isinstance(raw, str) and raw.strip().isdecimal():
        raw = int(raw)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{key} must be an integer")
    low, high = bounds
    if not low <= raw <= high:
        raise ValueError(f"{key} must be between {low} and {high}")
    return raw


@bp.route("/api/session", methods=["POST"])
def create_session():
    """
    Body (optional): {"sessionId": "<id kept by the client>", "language": "hi"}
    Returns the session id and the coach greeting.
    """
    try:
        data = request.get_json(silent=True) or {}
        session_id = data.get("sessionId")
        if session_id:
            validate_session_id(session_id)
        session = get_session_manager().get_or_create(session_id)
        if data.get("language"):
            session.language = str(data["language"])
        greeting = session.conversation.greet(session.prediction)
        return jsonify({
            "sessionId": session.session_id,
            "language": session.language,
            "greeting": greeting.content if greeting else None,
        })
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"/api/session failed: {e}")
        return jsonify({"error": "Session creation failed"}), 500


@bp.route("/api/assess", methods=["POST"])
def assess():
    """
    Body:
      {
        "sessionId": "...",
        "gender": "Male", "ageGroup": "51-64", "familyHistory": "Yes", ...,
        "systolic": "130+ (High)", "diastolic": "91 - 100",
        "systolicValue": 142, "diastolicValue": 95   (optional exact readings)
      }
    """
    try:
        data = request.get_json(silent=True) or {}
        session_id = data.get("sessionId") or data.get("session_id")
        if not session_id:
            return jsonify({"error": "sessionId required"}), 400
        validate_session_id(session_id)

        patient = PatientInput.from_dict(data)
        systolic = _optional_reading(data, "systolicValue", SYSTOLIC_RANGE)
        diastolic = _optional_reading(data, "diastolicValue", DIASTOLIC_RANGE)

        prediction = score(patient)
        session = get_session_manager().get_or_create(session_id)
        session.record_assessment(patient, prediction)

        persisted = _persistence().record_assessment(session_id, patient, prediction, systolic, diastolic)
        return jsonify({
            "sessionId": session_id,
            "prediction": prediction.to_dict(),
            "dietRecommendations": diet_summary(prediction.stage),
            "persisted": persisted,
        })
    except IncompleteAssessmentError as e:
        logger.info(f"Rejected assessment: {e.message}")
        return jsonify({
            "error": "Please fill in all fields",
            "missing": e.missing_fields,
            "invalid": e.invalid_fields,
        }), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"/api/assess failed: {e}")
        return jsonify({"error": "Assessment failed"}), 500


@bp.route("/api/readings", methods=["POST"])
def add_reading():
    """Body: {"sessionId": "...", "systolic": 128, "diastolic": 84, "stage": "optional label"}"""
    try:
        data = request.get_json(silent=True) or {}
        session_id = validate_session_id(data.get("sessionId") or "")
        systolic = _optional_reading(data, "systolic", SYSTOLIC_RANGE)
        diastolic = _optional_reading(data, "diastolic", DIASTOLIC_RANGE)
        if systolic is None or diastolic is None:
            return jsonify({"error": "systolic and diastolic required"}), 400

        reading = BPReading(
            session_id=session_id,
            systolic=systolic,
            diastolic=diastolic,
            stage=str(data.get("stage") or ""),
        )
        persisted = _persistence().save_reading(reading)
        return jsonify({"reading": reading.to_dict(), "persisted": persisted}), 201
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.exception(f"/api/readings POST failed: {e}")
        return jsonify({"error": "Failed to save reading"}), 500


@bp.route("/api/readings", methods=["GET"])
def list_readings():
    try:
        session_id = validate_session_id(request.args.get("sessionId") or "")
        readings = _persistence().load_readings(session_id)
        return jsonify({"sessionId": session_id, "readings": [r.to_dict() for r in readings]})
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except OSError as e:
        logger.exception(f"/api/readings GET failed: {e}")
        return jsonify({"error": "Failed to fetch BP readings"}), 500
