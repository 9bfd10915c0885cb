# hypertension_coach/components/models.py
"""
Domain records shared by the scorer, coach, persistence and trend components.

PatientInput is validated on construction: an instance always carries a value
from the closed set of every questionnaire field, so scoring never sees a
partial assessment.
"""
import re
import uuid
from dataclasses import dataclass, field, fields, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from hypertension_coach.common.custom_exception import IncompleteAssessmentError


class Stage(Enum):
    """Clinical stage assigned by the risk scorer, in increasing severity"""
    NORMAL = "NORMAL"
    STAGE_1 = "HYPERTENSION (Stage-1)"
    STAGE_2 = "HYPERTENSION (Stage-2)"
    CRISIS = "HYPERTENSIVE CRISIS"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    @property
    def short_label(self) -> str:
        return _STAGE_SHORT_LABELS[self]

    @classmethod
    def from_label(cls, label: str) -> Optional["Stage"]:
        text = (label or "").strip().lower()
        for stage in cls:
            if text in (stage.value.lower(), stage.short_label.lower(), stage.name.lower()):
                return stage
        return None


_STAGE_ORDER = (Stage.NORMAL, Stage.STAGE_1, Stage.STAGE_2, Stage.CRISIS)
_STAGE_SHORT_LABELS = {
    Stage.NORMAL: "Normal",
    Stage.STAGE_1: "Stage-1",
    Stage.STAGE_2: "Stage-2",
    Stage.CRISIS: "Crisis",
}


class RiskLevel(Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    EMERGENCY = "EMERGENCY"


class TrendLabel(Enum):
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"
    NEUTRAL = "neutral"


YES_NO = ("Yes", "No")

# Closed value set for every questionnaire field (labels as the intake form submits them)
FIELD_VALUES: Dict[str, Tuple[str, ...]] = {
    "gender": ("Male", "Female"),
    "age_group": ("18-34", "35-50", "51-64", "65+"),
    "family_history": YES_NO,
    "under_medical_care": YES_NO,
    "taking_medication": YES_NO,
    "diagnosed_when": ("<1 Year", "1 - 5 Years", ">5 Years"),
    "severity": ("Mild", "Moderate", "Sever"),
    "breath_shortness": YES_NO,
    "visual_changes": YES_NO,
    "nose_bleeding": YES_NO,
    "systolic": ("111 - 120", "121- 130", "130+"),
    "diastolic": ("70 - 80", "81 - 90", "91 - 100", "100+"),
    "controlled_diet": YES_NO,
}

# Wire names used by the web client
CAMEL_CASE_FIELDS = {
    "gender": "gender",
    "age_group": "ageGroup",
    "family_history": "familyHistory",
    "under_medical_care": "underMedicalCare",
    "taking_medication": "takingMedication",
    "diagnosed_when": "diagnosedWhen",
    "severity": "severity",
    "breath_shortness": "breathShortness",
    "visual_changes": "visualChanges",
    "nose_bleeding": "noseBleeding",
    "systolic": "systolic",
    "diastolic": "diastolic",
    "controlled_diet": "controlledDiet",
}

# Representative mmHg value recorded for a bucket answer when no exact reading is supplied
SYSTOLIC_MIDPOINTS = {"111 - 120": 116, "121- 130": 126, "130+": 135}
DIASTOLIC_MIDPOINTS = {"70 - 80": 75, "81 - 90": 86, "91 - 100": 96, "100+": 105}

# "130+ (High)" -> "130+"
_LABEL_SUFFIX_RE = re.compile(r"\s*\([^)]*\)\s*$")
_SPACES_RE = re.compile(r"\s+")


def _normalize_answer(field_name: str, raw: Any) -> Optional[str]:
    """Map a submitted answer onto its canonical value, or None when unrecognised"""
    if isinstance(raw, bool) and FIELD_VALUES[field_name] == YES_NO:
        return "Yes" if raw else "No"
    if not isinstance(raw, str):
        return None
    text = _LABEL_SUFFIX_RE.sub("", raw.strip())
    for allowed in FIELD_VALUES[field_name]:
        if text == allowed:
            return allowed
    # Tolerate case and spacing differences ("yes", "121 - 130")
    squashed = _SPACES_RE.sub("", text).lower()
    for allowed in FIELD_VALUES[field_name]:
        if _SPACES_RE.sub("", allowed).lower() == squashed:
            return allowed
    return None


@dataclass(frozen=True)
class PatientInput:
    gender: str
    age_group: str
    family_history: str
    under_medical_care: str
    taking_medication: str
    diagnosed_when: str
    severity: str
    breath_shortness: str
    visual_changes: str
    nose_bleeding: str
    systolic: str
    diastolic: str
    controlled_diet: str

    def __post_init__(self):
        missing = []
        invalid = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value == "":
                missing.append(f.name)
            elif value not in FIELD_VALUES[f.name]:
                invalid.append(f.name)
        if missing or invalid:
            raise IncompleteAssessmentError(missing, invalid)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PatientInput":
        """
        Build from a request body. Accepts snake_case or camelCase keys, booleans
        for Yes/No questions and the form's decorated labels ("81 - 90 (Elevated)").
        Reports every missing or unrecognised field at once.
        """
        payload = payload or {}
        values: Dict[str, str] = {}
        missing: List[str] = []
        invalid: List[str] = []
        for name, camel in CAMEL_CASE_FIELDS.items():
            raw = payload.get(name, payload.get(camel))
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                missing.append(name)
                continue
            canonical = _normalize_answer(name, raw)
            if canonical is None:
                invalid.append(name)
            else:
                values[name] = canonical
        if missing or invalid:
            raise IncompleteAssessmentError(missing, invalid)
        return cls(**values)

    def is_yes(self, field_name: str) -> bool:
        return getattr(self, field_name) == "Yes"

    def representative_reading(self) -> Tuple[int, int]:
        return SYSTOLIC_MIDPOINTS[self.systolic], DIASTOLIC_MIDPOINTS[self.diastolic]

    def to_dict(self, camel_case: bool = True) -> Dict[str, str]:
        data = asdict(self)
        if not camel_case:
            return data
        return {CAMEL_CASE_FIELDS[k]: v for k, v in data.items()}


@dataclass(frozen=True)
class PredictionResult:
    stage: Stage
    confidence: float
    risk_level: RiskLevel
    recommendations: Tuple[str, ...]
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage.value,
            "confidence": self.confidence,
            "riskLevel": self.risk_level.value,
            "recommendations": list(self.recommendations),
            "score": self.score,
        }


@dataclass
class Message:
    role: str  # "user" | "assistant"
    content: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class BPReading:
    session_id: str
    systolic: int
    diastolic: int
    stage: str
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "stage": self.stage,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BPReading":
        return cls(
            session_id=str(d.get("sessionId") or d.get("session_id") or ""),
            systolic=int(d["systolic"]),
            diastolic=int(d["diastolic"]),
            stage=str(d.get("stage") or ""),
            timestamp=str(d.get("timestamp") or d.get("created_at") or utc_now_iso()),
        )


@dataclass
class TrendData:
    readings: List[Dict[str, Any]]
    latest_systolic: int
    latest_diastolic: int
    latest_stage: str
    reading_count: int
    avg_systolic: int
    avg_diastolic: int
    systolic_change: Optional[int] = None
    diastolic_change: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "readings": self.readings,
            "latestSystolic": self.latest_systolic,
            "latestDiastolic": self.latest_diastolic,
            "latestStage": self.latest_stage,
            "readingCount": self.reading_count,
            "avgSystolic": self.avg_systolic,
            "avgDiastolic": self.avg_diastolic,
        }
        if self.systolic_change is not None:
            out["systolicChange"] = self.systolic_change
            out["diastolicChange"] = self.diastolic_change
        return out
