# hypertension_coach/components/persistence.py
"""
Reading and assessment history, one JSON Lines file per session:

    <DATA_DIR>/readings/<session_id>.jsonl
    <DATA_DIR>/assessments/<session_id>.jsonl

Files are append-only. PersistenceBridge is what the routes use: its writes are
best effort, so a storage failure is logged and never blocks a result.
"""
import json
import os
import re
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from hypertension_coach.common.logger import get_logger
from hypertension_coach.components.diet_plan_generator import LIFESTYLE_RECOMMENDATIONS, diet_summary
from hypertension_coach.components.models import BPReading, PatientInput, PredictionResult, utc_now_iso
from hypertension_coach.config.config import DATA_DIR

logger = get_logger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def validate_session_id(session_id: str) -> str:
    if not isinstance(session_id, str) or not _SESSION_ID_RE.match(session_id):
        raise ValueError(f"Invalid session id: {session_id!r}")
    return session_id


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class JsonLinesStore:
    """Append-only JSONL files under <data_dir>/<kind>/"""

    def __init__(self, kind: str, data_dir: Optional[str] = None):
        self.kind = kind
        self.root = os.path.join(data_dir or DATA_DIR, kind)
        self._lock = threading.Lock()

    def _path(self, session_id: str) -> str:
        return os.path.join(self.root, f"{validate_session_id(session_id)}.jsonl")

    def append(self, session_id: str, record: Dict[str, Any]):
        path = self._path(session_id)
        line = json.dumps(record, ensure_ascii=False)
        with self._lock:
            os.makedirs(self.root, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read(self, session_id: str) -> List[Dict[str, Any]]:
        path = self._path(session_id)
        if not os.path.exists(path):
            return []
        with self._lock:
            with open(path, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()

        records = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                logger.warning(f"Skipping corrupt line {number} in {path}")
        return records


class ReadingStore(JsonLinesStore):
    def __init__(self, data_dir: Optional[str] = None):
        super().__init__("readings", data_dir)

    def save_reading(self, reading: BPReading) -> BPReading:
        self.append(reading.session_id, reading.to_dict())
        logger.info(f"Saved reading {reading.systolic}/{reading.diastolic} for session {reading.session_id}")
        return reading

    def load_readings(self, session_id: str) -> List[BPReading]:
        """All readings for a session, oldest first; equal timestamps keep insertion order."""
        readings = []
        for record in self.read(session_id):
            try:
                readings.append(BPReading.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed reading for session {session_id}: {e}")
        return sorted(readings, key=lambda r: _parse_timestamp(r.timestamp))


class AssessmentStore(JsonLinesStore):
    def __init__(self, data_dir: Optional[str] = None):
        super().__init__("assessments", data_dir)

    def save_assessment(
        self,
        session_id: str,
        patient: PatientInput,
        prediction: PredictionResult,
    ) -> Dict[str, Any]:
        record = {
            "sessionId": session_id,
            "answers": patient.to_dict(),
            "ageGroup": patient.age_group,
            "stage": prediction.stage.value,
            "riskLevel": prediction.risk_level.value,
            "confidence": prediction.confidence,
            "score": prediction.score,
            "systolic": patient.systolic,
            "diastolic": patient.diastolic,
            "onMedication": patient.is_yes("taking_medication"),
            "familyHistory": patient.is_yes("family_history"),
            "dietPreference": patient.controlled_diet,
            "dietRecommendations": diet_summary(prediction.stage),
            "lifestyleRecommendations": LIFESTYLE_RECOMMENDATIONS,
            "timestamp": utc_now_iso(),
        }
        self.append(session_id, record)
        logger.info(f"Saved assessment ({prediction.stage.value}) for session {session_id}")
        return record

    def load_assessments(self, session_id: str) -> List[Dict[str, Any]]:
        return self.read(session_id)


class PersistenceBridge:
    def __init__(
        self,
        readings: Optional[ReadingStore] = None,
        assessments: Optional[AssessmentStore] = None,
    ):
        self.readings = readings or ReadingStore()
        self.assessments = assessments or AssessmentStore()

    def save_reading(self, reading: BPReading) -> bool:
        try:
            self.readings.save_reading(reading)
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save reading for session {reading.session_id}: {e}")
            return False

    def record_assessment(
        self,
        session_id: str,
        patient: PatientInput,
        prediction: PredictionResult,
        systolic: Optional[int] = None,
        diastolic: Optional[int] = None,
    ) -> bool:
        """
        Persist a scored assessment plus the BP reading it implies. Exact
        readings win over the questionnaire's bucket midpoints.
        """
        mid_systolic, mid_diastolic = patient.representative_reading()
        reading = BPReading(
            session_id=session_id,
            systolic=systolic if systolic is not None else mid_systolic,
            diastolic=diastolic if diastolic is not None else mid_diastolic,
            stage=prediction.stage.value,
        )
        saved = self.save_reading(reading)
        try:
            self.assessments.save_assessment(session_id, patient, prediction)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save assessment for session {session_id}: {e}")
            return False
        return saved

    def load_readings(self, session_id: str) -> List[BPReading]:
        return self.readings.load_readings(session_id)
