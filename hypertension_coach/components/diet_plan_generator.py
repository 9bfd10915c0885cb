# hypertension_coach/components/diet_plan_generator.py
"""
DietPlanGenerator

Offline Indian diet plan for a hypertension stage. Used whenever the streamed
dietitian reply from the completion service is unavailable, and as the source
of the short per-stage diet summary stored with each assessment.

The plan is composed from fixed tables only, so the same (stage, preference,
favorites) always produces the same text:

    1. stage title + key points
    2. preference heading + protein / dairy / fat block
    3. favorites note (only when favorites were given)
    4. recommended foods, foods to avoid
    5. sample 1-day meal plan and 3 recipes for the preference
    6. tips + when to consult a doctor

Usage:
    generator = DietPlanGenerator()
    text = generator.generate(Stage.STAGE_1, "Vegetarian", "paneer, poha")
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from hypertension_coach.components.models import Stage

logger = logging.getLogger(__name__)


class DietStage(Enum):
    NORMAL = "Normal"
    ELEVATED = "Elevated"
    STAGE_1 = "Stage 1"
    STAGE_2 = "Stage 2"
    CRISIS = "Hypertensive Crisis"

    @classmethod
    def resolve(cls, stage: Union["DietStage", Stage, str, None]) -> "DietStage":
        """Accept a scorer stage, a scorer label or a diet label; unknown -> NORMAL."""
        if isinstance(stage, DietStage):
            return stage
        if isinstance(stage, Stage):
            return _SCORER_TO_DIET[stage]
        text = (stage or "").strip()
        for member in cls:
            if text.lower() == member.value.lower():
                return member
        scorer_stage = Stage.from_label(text)
        if scorer_stage is not None:
            return _SCORER_TO_DIET[scorer_stage]
        return cls.NORMAL


_SCORER_TO_DIET = {
    Stage.NORMAL: DietStage.NORMAL,
    Stage.STAGE_1: DietStage.STAGE_1,
    Stage.STAGE_2: DietStage.STAGE_2,
    Stage.CRISIS: DietStage.CRISIS,
}


class DietPreference(Enum):
    VEGETARIAN = "Vegetarian"
    VEGAN = "Vegan"
    NON_VEGETARIAN = "Non-vegetarian"

    @classmethod
    def resolve(cls, preference: Union["DietPreference", str, None]) -> "DietPreference":
        """Anything other than Vegan/Vegetarian is planned as non-vegetarian."""
        if isinstance(preference, DietPreference):
            return preference
        text = (preference or "").strip().lower().replace(" ", "-")
        if text == "vegan":
            return cls.VEGAN
        if text == "vegetarian":
            return cls.VEGETARIAN
        return cls.NON_VEGETARIAN


@dataclass(frozen=True)
class StageTemplate:
    title: str
    key_points: str
    foods: str
    avoid: str
    summary: str


@dataclass(frozen=True)
class PreferenceBlock:
    heading: str
    lines: Tuple[Tuple[str, str], ...]  # (label, text)

    def render(self) -> str:
        return "\n".join(f"{label}: {text}" for label, text in self.lines)


STAGE_TEMPLATES: Dict[DietStage, StageTemplate] = {
    DietStage.NORMAL: StageTemplate(
        title="Normal BP - Maintenance Plan",
        key_points="• Continue balanced, low-sodium diet\n• Focus on whole foods and vegetables\n• Regular physical activity\n• Limit salt to <5g/day",
        foods="✅ Include: White rice, wheat rotis, jowar, bajra, all seasonal vegetables (leafy greens, beans, carrots), legumes (dal, moong, masoor), dry fruits, fruits (apple, banana, orange), honey, jaggery in moderation",
        avoid="❌ Avoid: Excess salt, pickles, canned foods, fried snacks, processed meats, excess ghee/oil",
        summary="• Continue with balanced diet\n• Include vegetables, whole grains, legumes\n• Limit salt to <5g per day\n• Stay hydrated with water and herbal tea",
    ),
    DietStage.ELEVATED: StageTemplate(
        title="Elevated BP - Prevention Plan",
        key_points="• Reduce sodium intake strictly\n• Increase potassium-rich foods\n• Focus on plant-based meals\n• 30 mins daily exercise",
        foods="✅ Include: Brown rice, bajra, jowar, spinach, fenugreek leaves, bottle gourd, bitter gourd, ash gourd, cucumber, tomato, onion, garlic, ginger, moong dal, split chickpeas, groundnuts, almonds, bananas, dates, low-fat yogurt, herbs (dhania, mint)",
        avoid="❌ Avoid: Papad, namkeen, achar (pickles), salted nuts, processed cheese, high-sodium bread, fried items, excess cooking oil, white rice daily",
        summary="• Focus on low-sodium Indian foods\n• Include more leafy greens, millets, pulses\n• Prepare food with minimal oil\n• Avoid pickles, processed foods, and excess salt",
    ),
    DietStage.STAGE_1: StageTemplate(
        title="Stage 1 Hypertension - Therapeutic Plan",
        key_points="• Strict DASH diet adapted to Indian cuisine\n• High potassium, low sodium\n• Consult doctor regularly\n• Monitor BP weekly",
        foods="✅ Include: Millets (bajra, ragi), oats, brown rice, pulses (moong, masoor, chana, urad), leafy greens (palak, methi), bottle gourd, pumpkin, carrot, beetroot, tomato, cucumber, garlic, ginger, fish (2-3x/week), chicken (skinless), milk (low-fat), curd, honey, herbs, spices (jeera, dhania, turmeric)",
        avoid="❌ Avoid: White rice, maida, salt/namkeen, achar, papad, processed meats, red meat, eggs (more than 2/week), full-fat dairy, fried foods, refined oil, excess ghee, palm oil, coconut oil",
        summary="• Strict DASH-like diet with Indian flavors\n• Increase potassium-rich foods: bananas, spinach, moong\n• Use herbs for seasoning instead of salt\n• Limit red meat, include fish 2x/week",
    ),
    DietStage.STAGE_2: StageTemplate(
        title="Stage 2 Hypertension - Strict Therapeutic Plan",
        key_points="• Strictly follow DASH diet\n• Minimize salt to <3g/day\n• High fiber intake\n• Medication + lifestyle changes\n• Regular doctor visits",
        foods="✅ Include: Millets exclusively, oats, pulses as main protein, vegetables (all seasonal), sprouts, soaked seeds, nuts (unsalted), herbs, spices without salt, low-fat curd, turmeric in water, flax seeds, chia seeds, honey, dates",
        avoid="❌ Avoid: All salted/processed foods, red meat, organ meats, full-fat dairy, fried items, refined grains, fast food, restaurant meals, excess oil, pickles, sauces, canned items, excess spicy food, alcohol",
        summary="• Therapeutic DASH diet strictly\n• Plant-based emphasis: dal, beans, vegetables\n• Avoid fried foods and high-sodium snacks\n• Work with nutritionist for meal planning",
    ),
    DietStage.CRISIS: StageTemplate(
        title="EMERGENCY - Immediate Medical Attention Required",
        key_points="🚨 SEEK EMERGENCY HELP (108/112)\n• This is a medical emergency\n• Follow doctor's strict dietary guidance\n• Possible hospitalization needed\n• Complete lifestyle change required",
        foods="✅ Follow doctor's prescribed diet strictly after medical evaluation",
        avoid="❌ Any self-medication or home remedies - SEEK PROFESSIONAL HELP",
        summary="• Consult doctor immediately\n• Follow prescribed diet plan strictly\n• Emergency dietary management required\n• Regular monitoring essential",
    ),
}

PREFERENCE_BLOCKS: Dict[DietPreference, PreferenceBlock] = {
    DietPreference.VEGAN: PreferenceBlock(
        heading="🌱 VEGAN OPTION",
        lines=(
            ("Protein Sources", "Moong dal, masoor dal, chickpeas, lentils, peas, tofu (if available), nuts (almonds, walnuts, groundnuts), seeds (sunflower, pumpkin), legume flour"),
            ("Milk Alternative", "Coconut milk (unsweetened, low quantity), or skip"),
            ("Fats", "Mustard oil (limited), sesame oil (limited)"),
        ),
    ),
    DietPreference.VEGETARIAN: PreferenceBlock(
        heading="🥬 VEGETARIAN OPTION",
        lines=(
            ("Protein Sources", "All dals, paneer (low-fat, occasional), chickpeas, peas, sprouted grams, nuts, seeds, low-fat yogurt"),
            ("Dairy", "Low-fat milk (200-250ml/day), low-fat curd, buttermilk (without salt)"),
            ("Fats", "Ghee (1 tsp/day), mustard or sesame oil (limited)"),
        ),
    ),
    DietPreference.NON_VEGETARIAN: PreferenceBlock(
        heading="🍗 NON-VEGETARIAN OPTION",
        lines=(
            ("Protein Sources", "White fish (sardine, mackerel, pomfret) 2-3x/week, skinless chicken (2-3x/week), eggs (max 2/week - boiled/poached), dals for daily protein"),
            ("Dairy", "Low-fat milk (200-250ml/day), low-fat curd"),
            ("Fats", "Mustard or sesame oil (limited), fish oil beneficial"),
        ),
    ),
}

SAMPLE_MEAL_PLANS: Dict[DietPreference, str] = {
    DietPreference.VEGAN: (
        "📋 SAMPLE 1-DAY MEAL PLAN:\n\n"
        "🌅 BREAKFAST (7-8 AM)\n• Bajra/Ragi porridge (1 cup) with jaggery (small piece)\n• OR Oats upma with vegetables (tomato, onion, carrot)\n• Fresh fruit (banana or orange)\n• Herbal tea (tulsi, ginger)\n\n"
        "☕ MID-MORNING (10-11 AM) - Optional\n• Handful of unsalted almonds/walnuts\n• OR Fresh fruit (apple, papaya)\n\n"
        "🍲 LUNCH (12-1 PM)\n• Millet khichdi (1.5 cups) OR Brown rice (1 cup) + moong dal\n• Mixed vegetable curry (bottle gourd, pumpkin, beans)\n• Cucumber/tomato salad (lemon juice, not salt)\n• 1 small roti (millet/wheat)\n\n"
        "🥤 AFTERNOON (3-4 PM)\n• Herbal tea with ginger\n• Handful of roasted chana/sprouts\n\n"
        "🍛 DINNER (7-8 PM)\n• Masoor dal soup (1.5 cups) with vegetables\n• Steamed millet OR Ragi roti (1-2)\n• Leafy greens sabzi (spinach/fenugreek with minimal oil)\n• Mixed vegetable salad\n\n"
        "🌙 BEFORE BED (Optional)\n• Warm turmeric milk (using plant-based milk alternate)"
    ),
    DietPreference.VEGETARIAN: (
        "📋 SAMPLE 1-DAY MEAL PLAN:\n\n"
        "🌅 BREAKFAST (7-8 AM)\n• Idli/Dhokla (2-3 pieces) with sambar (low-salt)\n• OR Oats with low-fat milk\n• Fresh fruit (banana or orange)\n• Herbal tea\n\n"
        "☕ MID-MORNING (10-11 AM) - Optional\n• Low-fat curd (1/2 cup) with honey\n• OR Handful of unsalted nuts\n\n"
        "🍲 LUNCH (12-1 PM)\n• Millet khichdi (1.5 cups) OR Brown rice (1 cup) with moong dal\n• Paneer sabzi (100g fresh paneer, light oil)\n• Mixed vegetable curry (beans, carrots, peas)\n• 1 roti (wheat/millet flour)\n• Cucumber/tomato salad with lemon\n\n"
        "🥤 AFTERNOON (3-4 PM)\n• Buttermilk/lassi (without added salt, 200ml)\n• Roasted chana snack\n\n"
        "🍛 DINNER (7-8 PM)\n• Masoor/Moong dal tadka (1.5 cups)\n• Leafy greens sabzi (spinach with minimal ghee)\n• 1-2 millet roti\n• Vegetable salad\n\n"
        "🌙 BEFORE BED (Optional)\n• Warm low-fat milk with turmeric"
    ),
    DietPreference.NON_VEGETARIAN: (
        "📋 SAMPLE 1-DAY MEAL PLAN:\n\n"
        "🌅 BREAKFAST (7-8 AM)\n• Poached/boiled egg (1) with whole wheat toast\n• OR Upma with vegetables\n• Orange juice (fresh, no added sugar)\n• Herbal tea\n\n"
        "☕ MID-MORNING (10-11 AM) - Optional\n• Handful of unsalted almonds\n• OR Fresh fruit (apple, papaya)\n\n"
        "🍲 LUNCH (12-1 PM)\n• Basmati/Brown rice (1 cup) + Moong dal soup\n• Grilled fish (100g, white fish) OR Skinless chicken (100g)\n• Mixed vegetable curry (low oil)\n• 1 roti (wheat)\n• Salad with lemon dressing\n\n"
        "🥤 AFTERNOON (3-4 PM)\n• Herbal tea\n• Handful of roasted unsalted chana\n\n"
        "🍛 DINNER (7-8 PM)\n• Masoor dal (1.5 cups)\n• Leafy green sabzi with minimal oil\n• 1-2 roti\n• Vegetable salad\n\n"
        "🌙 BEFORE BED (Optional)\n• Warm low-fat milk with honey"
    ),
}

RECIPES: Dict[DietPreference, str] = {
    DietPreference.VEGAN: (
        "👨‍🍳 3 EASY RECIPES:\n\n"
        "1️⃣ MOONG DAL KHICHDI (15 mins)\nIngredients: Moong dal (1/2 cup), rice (1/2 cup), turmeric (pinch), cumin (1/2 tsp), water (3 cups), vegetables (optional)\nMethod: Pressure cook dal + rice + water (3 whistles). Temper with cumin. Add vegetables if desired.\n\n"
        "2️⃣ LEAFY GREENS SOUP (10 mins)\nIngredients: Spinach (2 cups), ginger (1 tbsp), garlic (3 cloves), turmeric (pinch), cumin (1/2 tsp), water (2 cups)\nMethod: Boil spinach, ginger, garlic. Blend smooth. Season with spices. Serve warm.\n\n"
        "3️⃣ MIXED VEGETABLE CURRY (20 mins)\nIngredients: Bottle gourd (1 cup), pumpkin (1 cup), beans (1/2 cup), onion (1), mustard oil (1 tsp), turmeric (pinch), chili powder (optional)\nMethod: Sauté onion in oil. Add vegetables. Cook 15 mins. Season with spices."
    ),
    DietPreference.VEGETARIAN: (
        "👨‍🍳 3 EASY RECIPES:\n\n"
        "1️⃣ PANEER SABZI (15 mins)\nIngredients: Fresh paneer (100g), onion (1), bell pepper (1/2), tomato (1), ghee (1 tsp), turmeric, cumin\nMethod: Cut paneer into cubes. Sauté onion in ghee. Add peppers, tomato. Add paneer & spices. Cook 8 mins.\n\n"
        "2️⃣ CURD RICE (10 mins)\nIngredients: Cooked rice (2 cups), curd (1 cup), turmeric (pinch), mustard (1/4 tsp), curry leaves, ginger\nMethod: Mix rice + curd. Temper mustard & curry leaves in oil. Pour over rice. Mix well.\n\n"
        "3️⃣ DAL WITH GREENS (20 mins)\nIngredients: Moong dal (1 cup cooked), spinach (2 cups), ginger (1 tbsp), garlic (3 cloves), cumin (1/2 tsp), minimal oil\nMethod: Cook dal. Boil spinach separately. Add to dal. Temper with ginger, garlic, cumin. Simmer 5 mins."
    ),
    DietPreference.NON_VEGETARIAN: (
        "👨‍🍳 3 EASY RECIPES:\n\n"
        "1️⃣ GRILLED FISH WITH HERBS (20 mins)\nIngredients: White fish (200g), lemon (1), ginger (1 tbsp), garlic (2 cloves), turmeric, mustard oil (1 tsp)\nMethod: Marinate fish in lemon, ginger, garlic, turmeric (30 mins). Grill in oven at 180°C for 15 mins. Serve with vegetables.\n\n"
        "2️⃣ CHICKEN & LENTIL SOUP (25 mins)\nIngredients: Chicken (100g, diced), masoor dal (3/4 cup), vegetable (carrot, peas), turmeric, cumin\nMethod: Boil dal & chicken together (4 whistles). Add vegetables & spices. Simmer 5 mins. Serve hot.\n\n"
        "3️⃣ STEAMED FISH WITH VEGETABLES (20 mins)\nIngredients: Fish (150g), vegetables (beans, carrots, bell pepper), ginger (1 tbsp), lemon, minimal oil\nMethod: Place fish on vegetables. Steam for 15 mins. Add ginger & lemon juice. No added salt - use lemon for tang."
    ),
}

TIPS = (
    "💡 IMPORTANT TIPS:\n"
    "• USE SPICES NOT SALT: Jeera, dhania, turmeric, ginger, garlic, lemon juice, chili powder for flavor\n"
    "• COOKING METHODS: Steam, grill, bake, stir-fry (minimal oil) - avoid deep frying\n"
    "• OIL LIMIT: Max 5 tsp per day (mustard or sesame oil is best)\n"
    "• HYDRATION: Drink 8-10 glasses of water daily + herbal teas\n"
    "• MEAL TIMING: Regular intervals, not too big portions\n"
    "• MONITOR: Check BP regularly, keep a food diary, feel free to adjust based on your response\n"
    "• CONSISTENCY: Follow this plan for at least 4-6 weeks to see results\n\n"
    "⚠️ CONSULT YOUR DOCTOR if:\n"
    "• Symptoms worsen\n"
    "• BP doesn't improve in 2-3 months\n"
    "• Taking medications - ensure diet doesn't interfere\n"
    "• Planning to exercise heavily"
)

LIFESTYLE_RECOMMENDATIONS = (
    "• Daily 30-minute exercise (brisk walk, yoga)\n"
    "• Manage stress through meditation\n"
    "• Sleep 7-8 hours regularly\n"
    "• Limit alcohol consumption\n"
    "• Avoid smoking\n"
    "• Regular BP monitoring"
)

FAVORITES_HEADING = "🍽️ Using Your Favorites:"


class DietPlanGenerator:
    """Deterministic, offline diet plan composer."""

    def generate(
        self,
        stage: Union[DietStage, Stage, str, None],
        diet_preference: Union[DietPreference, str, None],
        favorites: Optional[str] = "",
    ) -> str:
        diet_stage = DietStage.resolve(stage)
        preference = DietPreference.resolve(diet_preference)
        template = STAGE_TEMPLATES[diet_stage]
        block = PREFERENCE_BLOCKS[preference]

        logger.info(f"Composing offline diet plan: stage={diet_stage.value} preference={preference.value}")

        sections = [
            f"{template.title}\n{template.key_points}",
            f"{block.heading}\n{block.render()}",
        ]
        favorites_note = self.favorites_note(favorites)
        if favorites_note:
            sections.append(favorites_note)
        sections.extend([
            f"🍽️ RECOMMENDED FOODS:\n{template.foods}",
            f"🚫 FOODS TO AVOID:\n{template.avoid}",
            SAMPLE_MEAL_PLANS[preference],
            RECIPES[preference],
            TIPS,
        ])
        return "\n\n".join(sections)

    @staticmethod
    def favorites_note(favorites: Optional[str]) -> str:
        if not favorites:
            return ""
        favorites = favorites.strip()
        return (
            f"{FAVORITES_HEADING}\n"
            f"Incorporate: {favorites}\n"
            "→ Prepare without added salt\n"
            "→ Steam, grill, or bake instead of frying\n"
            "→ Use herbs and spices for flavor instead of salt"
        )


def diet_summary(stage: Union[DietStage, Stage, str, None]) -> str:
    """Short per-stage diet bullets used in assessment records and chat context."""
    return STAGE_TEMPLATES[DietStage.resolve(stage)].summary
