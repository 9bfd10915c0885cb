import json
from unittest.mock import Mock

import pytest
import requests

from hypertension_coach.common.custom_exception import ChatBusyError
from hypertension_coach.common.session_manager import CoachSession
from hypertension_coach.components.chat_client import CoachChatClient, build_patient_context
from hypertension_coach.components.diet_plan_generator import DietPlanGenerator
from hypertension_coach.components.models import PatientInput
from hypertension_coach.components.risk_scorer import score


class FakeResponse:
    def __init__(self, status_code=200, chunks=(), content_type="text/event-stream", payload=None, fail_after=None):
        self.status_code = status_code
        self.headers = {"Content-Type": content_type}
        self._chunks = list(chunks)
        self._payload = payload
        self._fail_after = fail_after
        self.closed = False

    def iter_content(self, chunk_size=None):
        for i, chunk in enumerate(self._chunks):
            if self._fail_after is not None and i >= self._fail_after:
                raise requests.ConnectionError("connection reset")
            yield chunk

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload

    @property
    def text(self):
        return json.dumps(self._payload) if self._payload is not None else ""

    def close(self):
        self.closed = True


def sse(*contents):
    lines = [f'data: {json.dumps({"choices": [{"delta": {"content": c}}]})}\n' for c in contents]
    return ("".join(lines) + "data: [DONE]\n").encode("utf-8")


def make_client(response=None, error=None):
    http = Mock()
    if error is not None:
        http.post.side_effect = error
    else:
        http.post.return_value = response
    return CoachChatClient(endpoint_url="http://coach.test/api/coach", http=http), http


@pytest.fixture
def session():
    return CoachSession(session_id="s-1")


def test_streamed_reply_is_appended_in_order(session):
    body = sse("Eat ", "more ", "palak.")
    response = FakeResponse(chunks=[body[:7], body[7:40], body[40:]])
    client, http = make_client(response)
    seen = []

    turn = client.send(session, "  What should I eat?  ", on_fragment=seen.append)

    assert turn.ok
    assert seen == ["Eat ", "more ", "palak."]
    assert turn.reply.content == "Eat more palak."
    assert [(m.role, m.content) for m in session.conversation.messages] == [
        ("user", "What should I eat?"),
        ("assistant", "Eat more palak."),
    ]
    assert session.is_loading is False
    assert response.closed

    kwargs = http.post.call_args.kwargs
    assert kwargs["stream"] is True
    sent = kwargs["json"]["messages"]
    assert sent[0]["role"] == "system"
    assert sent[-1] == {"role": "user", "content": "What should I eat?"}
    assert "patientContext" not in kwargs["json"]


def test_patient_context_sent_after_assessment(session, crisis_answers):
    patient = PatientInput(**crisis_answers)
    session.record_assessment(patient, score(patient))
    client, http = make_client(FakeResponse(chunks=[sse("ok")]))

    client.send(session, "Help")

    context = http.post.call_args.kwargs["json"]["patientContext"]
    assert context == build_patient_context(session)
    assert context["stage"] == "HYPERTENSIVE CRISIS"
    assert context["riskLevel"] == "EMERGENCY"
    assert context["dietPreference"] == "Uncontrolled"
    assert context["recommendedDietPlan"].startswith("• Consult doctor immediately")


def test_json_reply_handled_as_one_shot(session):
    payload = {"choices": [{"message": {"content": "Walk 30 minutes daily."}}]}
    client, _ = make_client(FakeResponse(content_type="application/json", payload=payload))

    turn = client.send(session, "Exercise?")

    assert turn.ok
    assert session.conversation.messages[-1].content == "Walk 30 minutes daily."


@pytest.mark.parametrize("response, error, expected_error", [
    (FakeResponse(status_code=429, content_type="application/json",
                  payload={"error": "Rate limit exceeded. Please try again later."}),
     None, "Rate limit exceeded. Please try again later."),
    (FakeResponse(status_code=500, content_type="text/plain"), None, "Request failed: 500"),
    (None, requests.ConnectionError("refused"), "Failed to get response"),
    (FakeResponse(chunks=[sse("never")], fail_after=0), None, "Failed to get response"),
])
def test_failed_turn_leaves_no_empty_assistant_message(session, response, error, expected_error):
    client, _ = make_client(response, error)

    turn = client.send(session, "Hello")

    assert not turn.ok
    assert turn.error == expected_error
    assert session.notifications == [expected_error]
    assert [m.role for m in session.conversation.messages] == ["user"]
    assert all(m.content for m in session.conversation.messages)
    assert session.is_loading is False


def test_partial_stream_keeps_received_text(session):
    first = b'data: {"choices":[{"delta":{"content":"Partial"}}]}\n'
    client, _ = make_client(FakeResponse(chunks=[first, b"ignored"], fail_after=1))

    turn = client.send(session, "Hello")

    assert not turn.ok
    assert session.conversation.messages[-1].content == "Partial"


def test_busy_session_rejects_second_send(session):
    session.is_loading = True
    client, http = make_client(FakeResponse(chunks=[sse("x")]))

    with pytest.raises(ChatBusyError):
        client.send(session, "Hello")
    assert len(session.conversation) == 0
    http.post.assert_not_called()


def test_blank_message_is_ignored(session):
    client, http = make_client(FakeResponse(chunks=[sse("x")]))
    turn = client.send(session, "   ")
    assert not turn.ok
    assert len(session.conversation) == 0
    http.post.assert_not_called()


def test_diet_plan_streams_remote_text(session):
    client, http = make_client(FakeResponse(chunks=[sse("Day 1: ", "poha")]))

    result = client.request_diet_plan(session, "Stage 1", "Vegetarian", "poha")

    assert result.source == "remote"
    assert result.text == "Day 1: poha"
    body = http.post.call_args.kwargs["json"]
    assert body["patientContext"] == {"stage": "Stage 1", "dietPreference": "Vegetarian"}
    assert "poha" in body["messages"][1]["content"]


@pytest.mark.parametrize("response, error", [
    (None, requests.Timeout("slow")),
    (FakeResponse(status_code=402, content_type="application/json", payload={"error": "Payment required."}), None),
    (FakeResponse(chunks=[b"data: [DONE]\n"]), None),
])
def test_diet_plan_falls_back_to_local_generator(session, response, error):
    client, _ = make_client(response, error)

    result = client.request_diet_plan(session, "Stage 2", "Vegan", "ragi")

    assert result.source == "fallback"
    assert result.text == DietPlanGenerator().generate("Stage 2", "Vegan", "ragi")
    assert session.is_loading is False
