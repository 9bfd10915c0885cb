# hypertension_coach/components/risk_scorer.py
"""
Rule-based hypertension stage scorer.

Each questionnaire answer adds an independent weight to a single score; the
score is then bucketed into one of four stages. Weights and cut-offs were read
off the stage patterns of the intake dataset (1826 rows): Normal sits at
diastolic 70-80 with no active symptoms, Crisis at systolic 130+ with
nosebleeds and all symptoms active.

This is a heuristic, not a trained model.

Usage:
    result = score(PatientInput.from_dict(form_answers))
    result.stage, result.confidence, result.recommendations
"""
import logging
from decimal import Decimal
from typing import Tuple, Union

from hypertension_coach.components.models import PatientInput, PredictionResult, RiskLevel, Stage

logger = logging.getLogger(__name__)

# Decimal weights keep sums like 6.7 + 0.3 exactly on the 7.0 boundary
SYSTOLIC_WEIGHTS = {"111 - 120": Decimal("1"), "121- 130": Decimal("2"), "130+": Decimal("3")}
DIASTOLIC_WEIGHTS = {"70 - 80": Decimal("0"), "81 - 90": Decimal("1"), "91 - 100": Decimal("2"), "100+": Decimal("3")}
SYMPTOM_WEIGHTS = {
    "breath_shortness": Decimal("1"),
    "visual_changes": Decimal("1"),
    "nose_bleeding": Decimal("1.5"),
}
HISTORY_WEIGHTS = {
    "family_history": Decimal("0.5"),
    "under_medical_care": Decimal("0.5"),
    "taking_medication": Decimal("0.5"),
}
SEVERITY_WEIGHTS = {"Mild": Decimal("0"), "Moderate": Decimal("0.5"), "Sever": Decimal("1")}
DURATION_WEIGHTS = {"<1 Year": Decimal("0"), "1 - 5 Years": Decimal("0.3"), ">5 Years": Decimal("0.5")}
UNCONTROLLED_DIET_WEIGHT = Decimal("0.3")
AGE_WEIGHTS = {"18-34": Decimal("0"), "35-50": Decimal("0"), "51-64": Decimal("0.2"), "65+": Decimal("0.3")}

# (threshold, stage, risk level, base confidence, confidence per point, confidence cap)
# evaluated high-to-low; first threshold the score reaches wins
STAGE_BANDS = (
    (Decimal("10"), Stage.CRISIS, RiskLevel.EMERGENCY, Decimal("85"), Decimal("3"), Decimal("97")),
    (Decimal("7"), Stage.STAGE_2, RiskLevel.HIGH, Decimal("78"), Decimal("4"), Decimal("94")),
    (Decimal("4"), Stage.STAGE_1, RiskLevel.MODERATE, Decimal("72"), Decimal("5"), Decimal("91")),
)
NORMAL_BAND = (Decimal("4"), Stage.NORMAL, RiskLevel.LOW, Decimal("80"), Decimal("5"), Decimal("96"))

RECOMMENDATIONS = {
    Stage.CRISIS: (
        "SEEK IMMEDIATE MEDICAL ATTENTION",
        "Call emergency services (911) immediately",
        "Do not attempt to lower blood pressure on your own",
        "Remain calm and avoid physical exertion",
        "If prescribed, take emergency medication as directed",
        "Monitor for symptoms: severe headache, chest pain, vision problems",
    ),
    Stage.STAGE_2: (
        "Schedule an urgent appointment with your healthcare provider",
        "Combination of two or more antihypertensive medications may be needed",
        "Implement strict dietary changes (DASH diet recommended)",
        "Reduce sodium intake to less than 1,500mg daily",
        "Engage in regular aerobic exercise (150 min/week)",
        "Monitor blood pressure daily and maintain a log",
    ),
    Stage.STAGE_1: (
        "Consult with your healthcare provider within 1 month",
        "Lifestyle modifications are the first line of treatment",
        "Reduce sodium intake and increase potassium-rich foods",
        "Maintain a healthy weight (BMI 18.5-24.9)",
        "Limit alcohol consumption",
        "Practice stress management techniques",
    ),
    Stage.NORMAL: (
        "Maintain your current healthy lifestyle",
        "Continue regular check-ups annually",
        "Keep a balanced diet rich in fruits and vegetables",
        "Stay physically active (at least 30 minutes daily)",
        "Monitor blood pressure periodically",
        "Avoid excessive salt and processed foods",
    ),
}


def compute_score(patient: PatientInput) -> Decimal:
    """Sum of the independent factor weights for one completed assessment."""
    total = SYSTOLIC_WEIGHTS[patient.systolic] + DIASTOLIC_WEIGHTS[patient.diastolic]

    for field_name, weight in SYMPTOM_WEIGHTS.items():
        if patient.is_yes(field_name):
            total += weight
    for field_name, weight in HISTORY_WEIGHTS.items():
        if patient.is_yes(field_name):
            total += weight

    total += SEVERITY_WEIGHTS[patient.severity]
    total += DURATION_WEIGHTS[patient.diagnosed_when]
    if not patient.is_yes("controlled_diet"):
        total += UNCONTROLLED_DIET_WEIGHT
    total += AGE_WEIGHTS[patient.age_group]
    return total


def classify(raw_score: Union[Decimal, float, int]) -> Tuple[Stage, RiskLevel, float]:
    """
    Map a raw score onto (stage, risk level, confidence).

    Confidence grows with the distance above the stage threshold (below it for
    Normal) and is capped per stage.
    """
    s = raw_score if isinstance(raw_score, Decimal) else Decimal(str(raw_score))

    for threshold, stage, risk, base, slope, cap in STAGE_BANDS:
        if s >= threshold:
            return stage, risk, float(min(cap, base + slope * (s - threshold)))

    threshold, stage, risk, base, slope, cap = NORMAL_BAND
    return stage, risk, float(min(cap, base + slope * (threshold - s)))


def score(patient: PatientInput) -> PredictionResult:
    total = compute_score(patient)
    stage, risk, confidence = classify(total)
    logger.info(f"Scored assessment: score={total} stage={stage.value} confidence={confidence}")
    return PredictionResult(
        stage=stage,
        confidence=confidence,
        risk_level=risk,
        recommendations=RECOMMENDATIONS[stage],
        score=float(total),
    )
