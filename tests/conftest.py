import pytest

from hypertension_coach.common.circuit_breaker import CircuitBreakers


CRISIS_ANSWERS = {
    "gender": "Male",
    "age_group": "65+",
    "family_history": "Yes",
    "under_medical_care": "Yes",
    "taking_medication": "Yes",
    "diagnosed_when": ">5 Years",
    "severity": "Sever",
    "breath_shortness": "Yes",
    "visual_changes": "Yes",
    "nose_bleeding": "Yes",
    "systolic": "130+",
    "diastolic": "100+",
    "controlled_diet": "No",
}

NORMAL_ANSWERS = {
    "gender": "Female",
    "age_group": "18-34",
    "family_history": "No",
    "under_medical_care": "No",
    "taking_medication": "No",
    "diagnosed_when": "<1 Year",
    "severity": "Mild",
    "breath_shortness": "No",
    "visual_changes": "No",
    "nose_bleeding": "No",
    "systolic": "111 - 120",
    "diastolic": "70 - 80",
    "controlled_diet": "Yes",
}


@pytest.fixture
def crisis_answers():
    return dict(CRISIS_ANSWERS)


@pytest.fixture
def normal_answers():
    return dict(NORMAL_ANSWERS)


@pytest.fixture(autouse=True)
def reset_breakers():
    CircuitBreakers.reset_all()
    yield
    CircuitBreakers.reset_all()
