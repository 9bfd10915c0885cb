from unittest.mock import Mock, patch

import pytest

from hypertension_coach.application import create_app
from hypertension_coach.common.custom_exception import GatewayError

COACH_UPSTREAM = "hypertension_coach.routes.coach.post_chat_completion"


@pytest.fixture
def client(tmp_path):
    app = create_app({"TESTING": True, "DATA_DIR": str(tmp_path), "TREND_LLM": None})
    return app.test_client()


def upstream(status_code=200, chunks=()):
    response = Mock()
    response.status_code = status_code
    response.text = ""
    response.iter_content.return_value = iter(chunks)
    return response


def camel_case(answers):
    keys = {
        "age_group": "ageGroup", "family_history": "familyHistory", "under_medical_care": "underMedicalCare",
        "taking_medication": "takingMedication", "diagnosed_when": "diagnosedWhen",
        "breath_shortness": "breathShortness", "visual_changes": "visualChanges",
        "nose_bleeding": "noseBleeding", "controlled_diet": "controlledDiet",
    }
    return {keys.get(k, k): v for k, v in answers.items()}


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.get_json()
    assert body["status"] == "ok"
    assert "circuit_breakers" in body


def test_session_greeting(client):
    res = client.post("/api/session", json={"sessionId": "browser-123", "language": "hi"})
    body = res.get_json()
    assert body["sessionId"] == "browser-123"
    assert body["language"] == "hi"


def test_assess_rejects_incomplete_answers(client, normal_answers):
    answers = dict(normal_answers)
    del answers["severity"]
    res = client.post("/api/assess", json=dict(answers, sessionId="abc"))
    assert res.status_code == 400
    assert res.get_json()["missing"] == ["severity"]


def test_assess_scores_and_persists_then_trends(client, crisis_answers):
    payload = dict(camel_case(crisis_answers), sessionId="abc", systolic="130+ (High)")
    res = client.post("/api/assess", json=payload)

    assert res.status_code == 200
    body = res.get_json()
    assert body["prediction"]["stage"] == "HYPERTENSIVE CRISIS"
    assert body["prediction"]["riskLevel"] == "EMERGENCY"
    assert body["persisted"] is True

    readings = client.get("/api/readings?sessionId=abc").get_json()["readings"]
    assert [(r["systolic"], r["diastolic"]) for r in readings] == [(135, 105)]

    trend = client.post("/api/trends", json={"sessionId": "abc"}).get_json()
    assert trend["trend"] == "stable"
    assert trend["analysis"] == "You have 1 readings recorded. Latest: 135/105 mmHg."


def test_assess_uses_exact_reading(client, normal_answers):
    client.post("/api/assess", json=dict(normal_answers, sessionId="exact", systolicValue=119, diastolicValue="78"))
    readings = client.get("/api/readings?sessionId=exact").get_json()["readings"]
    assert (readings[0]["systolic"], readings[0]["diastolic"]) == (119, 78)


def test_add_reading_validation(client):
    assert client.post("/api/readings", json={"sessionId": "abc", "systolic": 120}).status_code == 400
    assert client.post("/api/readings", json={"sessionId": "abc", "systolic": 900, "diastolic": 80}).status_code == 400
    assert client.post("/api/readings", json={"sessionId": "../x", "systolic": 120, "diastolic": 80}).status_code == 400

    res = client.post("/api/readings", json={"sessionId": "abc", "systolic": 128, "diastolic": 84})
    assert res.status_code == 201
    assert res.get_json()["reading"]["systolic"] == 128


def test_trends_without_readings(client):
    body = client.post("/api/trends", json={"sessionId": "empty"}).get_json()
    assert body["trend"] == "neutral"
    assert body["change"] is None


def test_coach_proxies_event_stream(client):
    chunks = [b'data: {"choices":[{"delta":{"content":"Namaste"}}]}\n', b"data: [DONE]\n"]
    context = {"stage": "HYPERTENSION (Stage-1)", "riskLevel": "Moderate"}

    with patch(COACH_UPSTREAM, return_value=upstream(chunks=chunks)) as post:
        res = client.post("/api/coach", json={
            "messages": [{"role": "user", "content": "Hi"}],
            "patientContext": context,
            "language": "hi",
        })
        assert res.status_code == 200
        assert res.mimetype == "text/event-stream"
        assert res.get_data() == b"".join(chunks)

    sent = post.call_args.args[0]
    assert sent[0]["role"] == "system"
    assert "Hypertension Stage: HYPERTENSION (Stage-1)" in sent[0]["content"]
    assert "Devanagari" in sent[0]["content"]
    assert sent[1:] == [{"role": "user", "content": "Hi"}]
    assert post.call_args.kwargs["stream"] is True


@pytest.mark.parametrize("status, expected_status, message", [
    (429, 429, "Rate limit exceeded. Please try again later."),
    (402, 402, "Payment required. Please add funds to continue."),
    (503, 500, "AI service error"),
])
def test_coach_maps_upstream_errors(client, status, expected_status, message):
    with patch(COACH_UPSTREAM, return_value=upstream(status_code=status)):
        res = client.post("/api/coach", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert res.status_code == expected_status
    assert res.get_json()["error"] == message


def test_coach_without_gateway_key(client):
    with patch(COACH_UPSTREAM, side_effect=GatewayError("GATEWAY_API_KEY is not configured")):
        res = client.post("/api/coach", json={"messages": [{"role": "user", "content": "Hi"}]})
    assert res.status_code == 500
    assert res.get_json()["error"] == "GATEWAY_API_KEY is not configured"


def test_coach_requires_messages(client):
    assert client.post("/api/coach", json={}).status_code == 400


def test_diet_plan_route(client):
    res = client.post("/api/diet-plan", json={
        "stage": "HYPERTENSION (Stage-2)",
        "dietPreference": "Vegan",
        "favorites": "ragi",
    })
    body = res.get_json()
    assert body["stage"] == "Stage 2"
    assert body["dietPreference"] == "Vegan"
    assert "🌱 VEGAN OPTION" in body["plan"]
    assert "Incorporate: ragi" in body["plan"]


@pytest.mark.parametrize("systolic, status", [
    (128.7, 400),
    ("128.7", 400),
    ([128], 400),
    (True, 400),
    (128.0, 201),
    (" 128 ", 201),
])
def test_reading_values_must_be_whole_numbers(client, systolic, status):
    res = client.post("/api/readings", json={"sessionId": "abc", "systolic": systolic, "diastolic": 84})
    assert res.status_code == status
    if status == 201:
        assert res.get_json()["reading"]["systolic"] == 128


def test_assess_rejects_fractional_exact_reading(client, normal_answers):
    res = client.post("/api/assess", json=dict(normal_answers, sessionId="frac", systolicValue=128.7))
    assert res.status_code == 400
    assert res.get_json()["error"] == "systolicValue must be an integer"
