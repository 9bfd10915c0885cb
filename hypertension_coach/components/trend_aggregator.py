# hypertension_coach/components/trend_aggregator.py
"""
BP trend summary over a session's reading history.

Usage:
    aggregator = TrendAggregator(ReadingStore())
    result = aggregator.analyze(session_id)
    result["trend"]     # improving | worsening | stable | neutral
    result["analysis"]  # short coach feedback (remote summary or templated line)
"""
import math
from typing import Any, Dict, List, Optional

from hypertension_coach.common.custom_exception import GatewayError
from hypertension_coach.common.logger import get_logger
from hypertension_coach.common.templates import TREND_SYSTEM_PROMPT, build_trend_prompt
from hypertension_coach.components.gateway_client import GatewayLLM
from hypertension_coach.components.models import BPReading, TrendData, TrendLabel
from hypertension_coach.config.config import TREND_THRESHOLD_MMHG

logger = get_logger(__name__)

NO_READINGS_MESSAGE = (
    "No BP readings recorded yet. Start by completing the assessment form to track your progress."
)
FALLBACK_TEMPLATE = "You have {count} readings recorded. Latest: {systolic}/{diastolic} mmHg."


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def trend_label(systolic_change: Optional[int], threshold: int = TREND_THRESHOLD_MMHG) -> TrendLabel:
    if systolic_change is None:
        return TrendLabel.STABLE
    if systolic_change < -threshold:
        return TrendLabel.IMPROVING
    if systolic_change > threshold:
        return TrendLabel.WORSENING
    return TrendLabel.STABLE


def build_trend_data(readings: List[BPReading]) -> TrendData:
    """readings must be non-empty and oldest first"""
    first, latest = readings[0], readings[-1]
    count = len(readings)
    data = TrendData(
        readings=[
            {"systolic": r.systolic, "diastolic": r.diastolic, "stage": r.stage, "date": r.timestamp}
            for r in readings
        ],
        latest_systolic=latest.systolic,
        latest_diastolic=latest.diastolic,
        latest_stage=latest.stage,
        reading_count=count,
        avg_systolic=_round_half_up(sum(r.systolic for r in readings) / count),
        avg_diastolic=_round_half_up(sum(r.diastolic for r in readings) / count),
    )
    if count > 1:
        data.systolic_change = latest.systolic - first.systolic
        data.diastolic_change = latest.diastolic - first.diastolic
    return data


class TrendAggregator:
    """
    Args:
        store: anything with load_readings(session_id) -> List[BPReading]
        llm: LangChain LLM (or any object with invoke(prompt) -> str); None skips the remote summary
        threshold: systolic change in mmHg needed to call a trend improving/worsening
    """
    def __init__(self, store, llm=None, threshold: int = TREND_THRESHOLD_MMHG):
        self.store = store
        self.llm = llm
        self.threshold = threshold

    def _summarize(self, trend_data: TrendData) -> Optional[str]:
        if self.llm is None:
            return None
        try:
            reply = self.llm.invoke(build_trend_prompt(trend_data.to_dict()))
        except GatewayError as e:
            logger.warning(f"Trend summary unavailable, using template: {e}")
            return None
        except Exception as e:
            # readings exist, so the templated line is always served
            logger.exception(f"Trend summary failed unexpectedly, using template: {e}")
            return None
        text = getattr(reply, "content", reply)
        text = (text or "").strip() if isinstance(text, str) else ""
        return text or None

    def analyze(self, session_id: str) -> Dict[str, Any]:
        readings = self.store.load_readings(session_id)
        if not readings:
            return {"analysis": NO_READINGS_MESSAGE, "trend": TrendLabel.NEUTRAL.value, "change": None}

        trend_data = build_trend_data(readings)
        label = trend_label(trend_data.systolic_change, self.threshold)

        analysis = self._summarize(trend_data)
        if analysis is None:
            analysis = FALLBACK_TEMPLATE.format(
                count=trend_data.reading_count,
                systolic=trend_data.latest_systolic,
                diastolic=trend_data.latest_diastolic,
            )

        logger.info(f"Trend for session {session_id}: {label.value} over {trend_data.reading_count} reading(s)")
        return {"analysis": analysis, "trend": label.value, "trendData": trend_data.to_dict()}


def build_trend_llm() -> GatewayLLM:
    """GatewayLLM configured with the trend coach persona"""
    return GatewayLLM(system_prompt=TREND_SYSTEM_PROMPT)
