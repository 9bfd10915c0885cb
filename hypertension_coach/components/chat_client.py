# hypertension_coach/components/chat_client.py
"""
Streaming chat client for the coach completion endpoint (/api/coach).

One request per user turn: the language instruction and the whole conversation
go out together with the patient context, and the reply is either a one-shot
JSON completion or an SSE stream whose fragments are appended to the open
assistant message as they arrive.

Usage:
    client = CoachChatClient()
    turn = client.send(session, "What should I eat for breakfast?", on_fragment=print)
    if not turn.ok:
        show_toast(turn.error)
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from hypertension_coach.common.custom_exception import ChatBusyError, GatewayError
from hypertension_coach.common.logger import get_logger
from hypertension_coach.common.session_manager import CoachSession
from hypertension_coach.common.templates import PERSONALIZATION_NOTE, diet_plan_messages, language_instruction
from hypertension_coach.components.diet_plan_generator import DietPlanGenerator, diet_summary
from hypertension_coach.components.models import Message
from hypertension_coach.components.stream_decoder import StreamDecoder, extract_content
from hypertension_coach.config.config import API_TIMEOUT, COACH_API_KEY, COACH_API_URL

logger = get_logger(__name__)

DEFAULT_CHAT_ERROR = "Failed to get response"
DEFAULT_DIET_ERROR = "Failed to generate diet plan"


@dataclass
class ChatTurn:
    ok: bool
    reply: Optional[Message] = None
    error: Optional[str] = None


@dataclass
class DietPlanResult:
    text: str
    source: str  # "remote" | "fallback"
    error: Optional[str] = None


def build_patient_context(session: CoachSession) -> Optional[Dict[str, Any]]:
    """Patient context sent with chat requests; None until an assessment exists."""
    patient, prediction = session.patient_input, session.prediction
    if patient is None or prediction is None:
        return None
    if session.diet_preference:
        preference = session.diet_preference
    else:
        preference = "Controlled" if patient.is_yes("controlled_diet") else "Uncontrolled"
    return {
        "stage": prediction.stage.value,
        "riskLevel": prediction.risk_level.value,
        "ageGroup": patient.age_group,
        "dietPreference": preference,
        "systolic": patient.systolic,
        "diastolic": patient.diastolic,
        "onMedication": patient.taking_medication,
        "familyHistory": patient.family_history,
        "recommendedDietPlan": diet_summary(prediction.stage),
        "importance": PERSONALIZATION_NOTE,
    }


def _error_from_response(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"Request failed: {response.status_code}"


def _json_reply_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    return extract_content(payload) or payload.get("analysis") or payload.get("message") or ""


class CoachChatClient:
    def __init__(
        self,
        endpoint_url: str = COACH_API_URL,
        http: Optional[requests.Session] = None,
        api_key: str = COACH_API_KEY,
        diet_generator: Optional[DietPlanGenerator] = None,
    ):
        self.endpoint_url = endpoint_url
        self.http = http or requests.Session()
        self.api_key = api_key
        self.diet_generator = diet_generator or DietPlanGenerator()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, body: Dict[str, Any]) -> requests.Response:
        try:
            response = self.http.post(
                self.endpoint_url,
                json=body,
                headers=self._headers(),
                stream=True,
                timeout=API_TIMEOUT,
            )
        except requests.RequestException as e:
            raise GatewayError(DEFAULT_CHAT_ERROR, e)
        if response.status_code >= 400:
            message = _error_from_response(response)
            response.close()
            raise GatewayError(message, status_code=response.status_code)
        return response

    def _consume(self, response: requests.Response, on_text: Callable[[str], None]) -> int:
        """Feed a JSON or SSE response into on_text; returns the number of fragments delivered."""
        delivered = 0
        try:
            content_type = response.headers.get("Content-Type", "")
            if "application/json" in content_type:
                text = _json_reply_text(response.json())
                if text:
                    on_text(text)
                    delivered += 1
                return delivered

            decoder = StreamDecoder()
            for chunk in response.iter_content(chunk_size=None):
                for fragment in decoder.feed(chunk):
                    on_text(fragment)
                    delivered += 1
                if decoder.done:
                    break
            for fragment in decoder.flush():
                on_text(fragment)
                delivered += 1
            if decoder.records_dropped:
                logger.warning(f"Stream finished with {decoder.records_dropped} dropped record(s)")
            return delivered
        finally:
            response.close()

    def send(
        self,
        session: CoachSession,
        text: str,
        on_fragment: Optional[Callable[[str], None]] = None,
    ) -> ChatTurn:
        text = (text or "").strip()
        if not text:
            return ChatTurn(ok=False, error="Message is empty")
        if session.is_loading:
            raise ChatBusyError(session.session_id)

        conversation = session.conversation
        conversation.add_user(text)
        session.is_loading = True

        body: Dict[str, Any] = {
            "messages": [language_instruction(session.language)] + conversation.to_payload(),
            "language": session.language,
        }
        patient_context = build_patient_context(session)
        if patient_context:
            body["patientContext"] = patient_context

        def apply(fragment: str):
            conversation.append_assistant(fragment)
            if on_fragment:
                on_fragment(fragment)

        try:
            delivered = self._consume(self._post(body), apply)
            reply = conversation.open_reply
            conversation.close_reply()
            if not delivered:
                logger.warning(f"Coach returned no content for session {session.session_id}")
            return ChatTurn(ok=True, reply=reply)
        except (GatewayError, requests.RequestException, ValueError) as e:
            message = e.message if isinstance(e, GatewayError) else DEFAULT_CHAT_ERROR
            logger.error(f"Chat error for session {session.session_id}: {e}")
            session.notify(message)
            conversation.discard_empty_reply()
            return ChatTurn(ok=False, error=message)
        finally:
            session.is_loading = False

    def request_diet_plan(
        self,
        session: CoachSession,
        stage: str,
        preference: str,
        favorites: str = "",
    ) -> DietPlanResult:
        """
        Ask the coach endpoint for a personalised plan; on any failure (or an
        empty reply) fall back to the offline generator.
        """
        if session.is_loading:
            raise ChatBusyError(session.session_id)
        session.is_loading = True
        parts: List[str] = []
        body = {
            "messages": diet_plan_messages(stage, preference, favorites),
            "patientContext": {"stage": stage, "dietPreference": preference},
            "language": session.language,
        }
        logger.info(f"Requesting diet plan: stage={stage} preference={preference}")
        try:
            self._consume(self._post(body), parts.append)
            text = "".join(parts)
            if text.strip():
                return DietPlanResult(text=text, source="remote")
            error = "Coach returned an empty diet plan"
            logger.warning(error)
        except (GatewayError, requests.RequestException, ValueError) as e:
            error = e.message if isinstance(e, GatewayError) else DEFAULT_DIET_ERROR
            logger.error(f"Diet plan request failed: {e}")
            session.notify(error)
        finally:
            session.is_loading = False

        return DietPlanResult(
            text=self.diet_generator.generate(stage, preference, favorites),
            source="fallback",
            error=error,
        )
