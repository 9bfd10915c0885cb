# hypertension_coach/common/templates.py
"""
Prompt templates for the hypertension coach.
- COACH_SYSTEM_PROMPT is prepended server-side to every /api/coach conversation.
- build_coach_system_prompt(patient_context, language) adds the patient context and language directive.
- Client-side helpers build the language instruction, the diet-plan request and the trend-summary prompt.
"""
import json
from typing import Any, Dict, List, Optional

COACH_SYSTEM_PROMPT = """You are an expert AI Hypertension Coach specializing in Indian healthcare. You provide personalized advice for managing high blood pressure.

## Your Expertise:
- Indian dietary patterns and DASH diet adaptations using Indian foods
- Traditional Indian ingredients beneficial for BP (dal, roti, sabzi, leafy greens)
- Vegetarian and non-vegetarian meal plans for Indian patients
- Yoga and pranayama for blood pressure management
- Ayurvedic complementary approaches (only evidence-based)
- Regional Indian food variations (North, South, East, West)

## Key Guidelines:
1. ALWAYS provide advice in the language the user writes in (Hindi/English)
2. Use Indian food examples: palak dal instead of spinach soup, lauki sabzi instead of squash
3. Include specific recipes with Indian spices when discussing diet
4. Recommend reducing salt but suggest alternatives like lemon, jeera, dhania
5. Warn about high-sodium Indian foods: pickles (achar), papad, namkeen
6. Suggest morning walks, yoga asanas (especially Shavasana, Bhramari pranayama)
7. For EMERGENCIES (Stage-2 or Crisis), urge immediate medical attention (108/112)

## Response Style:
- Be warm, encouraging, and culturally sensitive
- Use simple language, avoid complex medical jargon
- Include practical, actionable tips
- If user mentions specific health conditions, remind them to consult their doctor

Always prioritize patient safety and recommend professional medical consultation for serious concerns."""

PATIENT_CONTEXT_TEMPLATE = """

## Current Patient Context:
- Hypertension Stage: {stage}
- Risk Level: {riskLevel}
- Age Group: {ageGroup}
- Diet Preference: {dietPreference}
- Recent Systolic: {systolic}
- Recent Diastolic: {diastolic}
- On Medication: {onMedication}
- Family History: {familyHistory}

Use this context to personalize your recommendations."""

PATIENT_CONTEXT_FIELDS = (
    ("stage", "Unknown"),
    ("riskLevel", "Unknown"),
    ("ageGroup", "Unknown"),
    ("dietPreference", "Not specified"),
    ("systolic", "Unknown"),
    ("diastolic", "Unknown"),
    ("onMedication", "Unknown"),
    ("familyHistory", "Unknown"),
)

HINDI_DIRECTIVE = "\n\nIMPORTANT: Respond primarily in Hindi (Devanagari script), with English medical terms where necessary."

LANGUAGE_LABELS = {
    "en": "English",
    "hi": "Hindi",
    "bn": "Bengali",
    "ta": "Tamil",
    "te": "Telugu",
    "ml": "Malayalam",
    "mr": "Marathi",
    "gu": "Gujarati",
    "kn": "Kannada",
    "pa": "Punjabi",
    "or": "Odia",
    "as": "Assamese",
}

PERSONALIZATION_NOTE = (
    "IMPORTANT: Provide personalized Indian diet plans with specific foods, recipes, and meal timing "
    "based on the risk stage. Include traditional Indian foods and cooking methods."
)

DIETITIAN_SYSTEM_PROMPT = (
    "You are an expert Indian dietitian. Create a culturally appropriate, evidence-based diet plan "
    "for hypertension patients. Be specific with foods, portion suggestions, meal timing, and "
    "low-salt preparation methods."
)

DIET_PLAN_REQUEST = (
    "Generate a personalized Indian diet plan for a patient with hypertension (Stage: {stage}). "
    "Diet preference: {preference}. Favorite foods / dislikes: {favorites}. Provide a 5-point summary, "
    "a sample 1-day meal schedule with portion suggestions, and 3 recipe ideas using the patient's "
    "favorites where possible. Keep language simple and include both English and Hindi lines if appropriate."
)

TREND_SYSTEM_PROMPT = (
    "You are a supportive Indian health coach specializing in hypertension management. "
    "Provide brief, encouraging feedback on BP trends."
)

TREND_PROMPT = """Analyze this patient's blood pressure trend data and provide encouraging, actionable feedback in 2-3 sentences:

BP Readings ({count} total):
{readings}

Latest Reading: {latest_systolic}/{latest_diastolic} mmHg ({latest_stage})
{change_line}
Provide feedback that:
1. Acknowledges any improvement or expresses concern if readings are worsening
2. Gives one specific actionable tip based on their trend
3. Uses encouraging language

Keep response under 100 words. Include Hindi phrases if appropriate."""


def build_coach_system_prompt(patient_context: Optional[Dict[str, Any]] = None, language: str = "en") -> str:
    prompt = COACH_SYSTEM_PROMPT
    if patient_context:
        values = {key: patient_context.get(key) or default for key, default in PATIENT_CONTEXT_FIELDS}
        prompt += PATIENT_CONTEXT_TEMPLATE.format(**values)
        if patient_context.get("recommendedDietPlan"):
            prompt += f"\n\n## Stage Diet Guidance:\n{patient_context['recommendedDietPlan']}"
    if language == "hi":
        prompt += HINDI_DIRECTIVE
    return prompt


def language_instruction(language: str) -> Dict[str, str]:
    """System message the client sends first so replies come back in the chosen language."""
    if language and language != "en":
        label = LANGUAGE_LABELS.get(language, LANGUAGE_LABELS["hi"])
        return {"role": "system", "content": f"Respond in {label}. Translate and format replies in {label}."}
    return {"role": "system", "content": "Respond in both English and Hindi; provide both language outputs where possible."}


def diet_plan_messages(stage: str, preference: str, favorites: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": DIETITIAN_SYSTEM_PROMPT},
        {"role": "user", "content": DIET_PLAN_REQUEST.format(
            stage=stage, preference=preference, favorites=favorites or "None provided"
        )},
    ]


def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


def build_trend_prompt(trend_data: Dict[str, Any]) -> str:
    change_line = ""
    if trend_data.get("systolicChange") is not None:
        change_line = (
            f"Change since first reading: Systolic {_signed(trend_data['systolicChange'])} mmHg, "
            f"Diastolic {_signed(trend_data['diastolicChange'])} mmHg\n"
        )
    return TREND_PROMPT.format(
        count=trend_data["readingCount"],
        readings=json.dumps(trend_data["readings"], indent=2, ensure_ascii=False),
        latest_systolic=trend_data["latestSystolic"],
        latest_diastolic=trend_data["latestDiastolic"],
        latest_stage=trend_data["latestStage"],
        change_line=change_line,
    )
