# hypertension_coach/routes/coach.py
from flask import Blueprint, Response, jsonify, request, stream_with_context

from hypertension_coach.common.circuit_breaker import get_coach_stream_breaker
from hypertension_coach.common.custom_exception import GatewayError
from hypertension_coach.common.logger import get_logger
from hypertension_coach.common.session_manager import get_session_manager
from hypertension_coach.common.templates import build_coach_system_prompt
from hypertension_coach.components.diet_plan_generator import DietPlanGenerator, DietPreference, DietStage
from hypertension_coach.components.gateway_client import post_chat_completion

bp = Blueprint("coach", __name__)
logger = get_logger(__name__)

_DIET_GENERATOR = DietPlanGenerator()

# Upstream statuses passed through to the client with a readable message
UPSTREAM_ERRORS = {
    429: "Rate limit exceeded. Please try again later.",
    402: "Payment required. Please add funds to continue.",
}


@bp.route("/api/coach", methods=["POST"])
def coach():
    """
    Body:
      {
        "messages": [{"role": "system"|"user"|"assistant", "content": "..."}],
        "patientContext": {"stage": ..., "riskLevel": ..., ...},   (optional)
        "language": "en" | "hi" | ...
      }
    Streams the upstream completion back as text/event-stream.
    """
    data = request.get_json(silent=True) or {}
    messages = data.get("messages")
    if not isinstance(messages, list) or not messages:
        return jsonify({"error": "messages required"}), 400

    breaker = get_coach_stream_breaker()
    if not breaker.allow_request():
        logger.warning("Coach stream circuit open, rejecting request")
        return jsonify({"error": "AI service temporarily unavailable"}), 503

    context = data.get("patientContext")
    if not isinstance(context, dict):
        context = None
    system_prompt = build_coach_system_prompt(context, data.get("language") or "en")
    logger.info(f"Coach request with {len(messages)} message(s), language={data.get('language')}")

    try:
        upstream = post_chat_completion([{"role": "system", "content": system_prompt}] + messages, stream=True)
    except GatewayError as e:
        breaker.record_failure()
        logger.error(f"Coach request failed: {e}")
        return jsonify({"error": e.message}), 500

    if upstream.status_code != 200:
        body = upstream.text
        upstream.close()
        logger.error(f"AI gateway error: {upstream.status_code} {body[:200]}")
        if upstream.status_code in UPSTREAM_ERRORS:
            return jsonify({"error": UPSTREAM_ERRORS[upstream.status_code]}), upstream.status_code
        breaker.record_failure()
        return jsonify({"error": "AI service error"}), 500

    breaker.record_success()

    def generate():
        try:
            for chunk in upstream.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        finally:
            upstream.close()

    resp = Response(stream_with_context(generate()), content_type="text/event-stream")
    resp.headers["Cache-Control"] = "no-cache"
    resp.headers["X-Accel-Buffering"] = "no"
    return resp


@bp.route("/api/diet-plan", methods=["POST"])
def diet_plan():
    """
    Offline diet plan.
    Body: {"stage": "HYPERTENSION (Stage-1)", "dietPreference": "Vegetarian", "favorites": "paneer, dal", "sessionId": optional}
    """
    try:
        data = request.get_json(silent=True) or {}
        stage = DietStage.resolve(data.get("stage"))
        preference = DietPreference.resolve(data.get("dietPreference"))
        favorites = data.get("favorites") or ""

        session_id = data.get("sessionId")
        if session_id:
            session = get_session_manager().get_session(session_id)
            if session is not None:
                session.diet_preference = preference.value

        plan = _DIET_GENERATOR.generate(stage, preference, favorites)
        return jsonify({
            "plan": plan,
            "stage": stage.value,
            "dietPreference": preference.value,
            "source": "local",
        })
    except Exception as e:
        logger.exception(f"/api/diet-plan failed: {e}")
        return jsonify({"error": "Failed to generate diet plan"}), 500
