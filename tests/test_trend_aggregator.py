from unittest.mock import Mock, patch

import pytest

from hypertension_coach.common.custom_exception import GatewayError
from hypertension_coach.components.gateway_client import GatewayLLM
from hypertension_coach.components.models import BPReading, TrendLabel
from hypertension_coach.components.persistence import ReadingStore
from hypertension_coach.components.trend_aggregator import NO_READINGS_MESSAGE, TrendAggregator, trend_label


class FakeLLM:
    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def invoke(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def store(tmp_path):
    return ReadingStore(str(tmp_path))


def add(store, *pairs):
    for day, (systolic, diastolic) in enumerate(pairs, start=1):
        store.save_reading(BPReading("abc", systolic, diastolic, "Stage-1", f"2026-03-{day:02d}T08:00:00+00:00"))


def test_no_readings(store):
    result = TrendAggregator(store, llm=FakeLLM("unused")).analyze("abc")
    assert result == {"analysis": NO_READINGS_MESSAGE, "trend": "neutral", "change": None}


def test_single_reading_is_stable_without_change(store):
    add(store, (132, 86))

    result = TrendAggregator(store).analyze("abc")

    assert result["trend"] == "stable"
    assert result["analysis"] == "You have 1 readings recorded. Latest: 132/86 mmHg."
    data = result["trendData"]
    assert data["readingCount"] == 1
    assert (data["avgSystolic"], data["avgDiastolic"]) == (132, 86)
    assert "systolicChange" not in data


def test_many_readings_use_remote_summary(store):
    add(store, (150, 95), (140, 90), (138, 88))
    llm = FakeLLM("  Great progress, keep walking!  ")

    result = TrendAggregator(store, llm=llm).analyze("abc")

    assert result["trend"] == "improving"
    assert result["analysis"] == "Great progress, keep walking!"
    data = result["trendData"]
    assert (data["systolicChange"], data["diastolicChange"]) == (-12, -7)
    assert (data["avgSystolic"], data["avgDiastolic"]) == (143, 91)
    assert (data["latestSystolic"], data["latestDiastolic"]) == (138, 88)
    assert "Change since first reading: Systolic -12 mmHg, Diastolic -7 mmHg" in llm.prompts[0]
    assert "BP Readings (3 total)" in llm.prompts[0]


@pytest.mark.parametrize("llm", [
    FakeLLM(error=GatewayError("Completion gateway error", status_code=500)),
    FakeLLM(reply=""),
    None,
])
def test_summary_failure_falls_back_to_template(store, llm):
    add(store, (120, 80), (130, 84))

    result = TrendAggregator(store, llm=llm).analyze("abc")

    assert result["analysis"] == "You have 2 readings recorded. Latest: 130/84 mmHg."
    assert result["trend"] == "worsening"


def test_averages_round_half_up(store):
    add(store, (120, 80), (121, 81))
    data = TrendAggregator(store).analyze("abc")["trendData"]
    assert (data["avgSystolic"], data["avgDiastolic"]) == (121, 81)


@pytest.mark.parametrize("change, expected", [
    (-6, TrendLabel.IMPROVING),
    (-5, TrendLabel.STABLE),
    (0, TrendLabel.STABLE),
    (5, TrendLabel.STABLE),
    (6, TrendLabel.WORSENING),
    (None, TrendLabel.STABLE),
])
def test_trend_label_threshold(change, expected):
    assert trend_label(change, threshold=5) == expected


def test_unexpected_summary_error_falls_back_to_template(store):
    add(store, (150, 95), (140, 90))

    result = TrendAggregator(store, llm=FakeLLM(error=AttributeError("boom"))).analyze("abc")

    assert result["analysis"] == "You have 2 readings recorded. Latest: 140/90 mmHg."
    assert result["trend"] == "improving"


def test_malformed_gateway_reply_falls_back_to_template(store):
    add(store, (150, 95), (140, 90))
    response = Mock()
    response.json.return_value = {"choices": [{"message": "not-a-dict"}]}

    with patch("hypertension_coach.components.gateway_client.requests.post", return_value=response):
        result = TrendAggregator(store, llm=GatewayLLM(api_key="k")).analyze("abc")

    assert result["analysis"] == "You have 2 readings recorded. Latest: 140/90 mmHg."
    assert result["trend"] == "improving"
