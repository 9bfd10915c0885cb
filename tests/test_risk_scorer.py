import itertools
from decimal import Decimal

import pytest

from hypertension_coach.common.custom_exception import IncompleteAssessmentError
from hypertension_coach.components.models import FIELD_VALUES, PatientInput, RiskLevel, Stage
from hypertension_coach.components.risk_scorer import RECOMMENDATIONS, classify, compute_score, score

# (raw score, expected stage, expected confidence)
boundary_cases = [
    (10, Stage.CRISIS, 85.0),
    (9.99, Stage.STAGE_2, 89.96),
    (7, Stage.STAGE_2, 78.0),
    (6.99, Stage.STAGE_1, 86.95),
    (4, Stage.STAGE_1, 72.0),
    (3.99, Stage.NORMAL, 80.05),
    (14, Stage.CRISIS, 97.0),
    (0, Stage.NORMAL, 96.0),
]

CONFIDENCE_BOUNDS = {
    Stage.CRISIS: (85, 97),
    Stage.STAGE_2: (78, 94),
    Stage.STAGE_1: (72, 91),
    Stage.NORMAL: (80, 96),
}


@pytest.mark.parametrize("raw, stage, confidence", boundary_cases)
def test_classify_boundaries(raw, stage, confidence):
    got_stage, _, got_confidence = classify(raw)
    assert got_stage == stage
    assert got_confidence == pytest.approx(confidence)


def test_crisis_example(crisis_answers):
    patient = PatientInput(**crisis_answers)
    assert compute_score(patient) == Decimal("13.1")

    result = score(patient)
    assert result.stage == Stage.CRISIS
    assert result.risk_level == RiskLevel.EMERGENCY
    assert result.confidence == pytest.approx(94.3)
    assert result.recommendations == RECOMMENDATIONS[Stage.CRISIS]


def test_normal_example(normal_answers):
    result = score(PatientInput(**normal_answers))
    assert result.score == 1
    assert result.stage == Stage.NORMAL
    assert result.risk_level == RiskLevel.LOW
    assert result.confidence == 95.0


def test_fractional_weights_land_exactly_on_threshold(normal_answers):
    # 3 + 1 + 1 + 0.5 * 3 + 0.3 + 0.2 == 7.0
    answers = dict(
        normal_answers,
        systolic="130+",
        diastolic="81 - 90",
        breath_shortness="Yes",
        family_history="Yes",
        under_medical_care="Yes",
        taking_medication="Yes",
        diagnosed_when="1 - 5 Years",
        age_group="51-64",
    )
    result = score(PatientInput(**answers))
    assert result.score == 7.0
    assert result.stage == Stage.STAGE_2
    assert result.confidence == 78.0


def test_score_is_deterministic(crisis_answers):
    first = score(PatientInput(**crisis_answers))
    second = score(PatientInput(**crisis_answers))
    assert first == second
    assert repr(first.to_dict()) == repr(second.to_dict())


def test_confidence_within_stage_bounds_over_whole_domain():
    # gender carries no weight, so it is held fixed
    names = [name for name in FIELD_VALUES if name != "gender"]
    for combo in itertools.product(*(FIELD_VALUES[name] for name in names)):
        patient = PatientInput(gender="Male", **dict(zip(names, combo)))
        stage, _, confidence = classify(compute_score(patient))
        low, high = CONFIDENCE_BOUNDS[stage]
        assert low <= confidence <= high


def test_from_dict_accepts_camel_case_and_decorated_labels(normal_answers):
    payload = {
        "gender": "Female",
        "ageGroup": "18-34",
        "familyHistory": False,
        "underMedicalCare": "no",
        "takingMedication": "No",
        "diagnosedWhen": "<1 Year",
        "severity": "Mild",
        "breathShortness": "No",
        "visualChanges": "No",
        "noseBleeding": "No",
        "systolic": "111 - 120 (Normal)",
        "diastolic": "70 - 80 (Normal)",
        "controlledDiet": True,
    }
    assert PatientInput.from_dict(payload) == PatientInput(**normal_answers)


def test_from_dict_reports_every_missing_and_invalid_field(normal_answers):
    payload = dict(normal_answers, severity="Extreme")
    del payload["systolic"]
    payload["diastolic"] = "  "

    with pytest.raises(IncompleteAssessmentError) as exc:
        PatientInput.from_dict(payload)

    assert exc.value.missing_fields == ["systolic", "diastolic"]
    assert exc.value.invalid_fields == ["severity"]


def test_partial_input_cannot_be_constructed(normal_answers):
    answers = dict(normal_answers, controlled_diet="")
    with pytest.raises(IncompleteAssessmentError) as exc:
        PatientInput(**answers)
    assert exc.value.missing_fields == ["controlled_diet"]


def test_representative_reading_uses_bucket_midpoints(crisis_answers):
    assert PatientInput(**crisis_answers).representative_reading() == (135, 105)
