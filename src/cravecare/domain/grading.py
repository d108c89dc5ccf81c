"""Dish grading results and AI payload coercion."""

import random

from pydantic import BaseModel, field_validator

from cravecare.domain.phases import PHASES, Phase

GRADE_SCALE: tuple[str, ...] = ("A+", "A", "B", "C", "D", "F")
DEFAULT_GRADE = "C"
DEFAULT_VERDICT = "Looks like a meal!"
DEFAULT_UPGRADE_TIP = "Add some veggies or protein to level up."


def _number_or_zero(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if number != number or number in {float("inf"), float("-inf")}:
        return 0.0
    return number


def _text_or(value: object, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class DishGradeResult(BaseModel):
    """Hostel grade and macro estimate for a photographed dish."""

    grade: str = DEFAULT_GRADE
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    calories: float | None = None
    verdict: str = DEFAULT_VERDICT
    upgrade_tip: str = DEFAULT_UPGRADE_TIP

    @field_validator("grade", mode="before")
    @classmethod
    def _coerce_grade(cls, value: object) -> str:
        grade = _text_or(value, DEFAULT_GRADE).upper()
        return grade if grade in GRADE_SCALE else DEFAULT_GRADE

    @field_validator("protein", "carbs", "fat", "fiber", mode="before")
    @classmethod
    def _coerce_grams(cls, value: object) -> float:
        return max(_number_or_zero(value), 0.0)

    @field_validator("calories", mode="before")
    @classmethod
    def _coerce_calories(cls, value: object) -> float | None:
        calories = _number_or_zero(value)
        return calories if calories > 0 else None

    @field_validator("verdict", mode="before")
    @classmethod
    def _coerce_verdict(cls, value: object) -> str:
        return _text_or(value, DEFAULT_VERDICT)

    @field_validator("upgrade_tip", mode="before")
    @classmethod
    def _coerce_tip(cls, value: object) -> str:
        return _text_or(value, DEFAULT_UPGRADE_TIP)

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "DishGradeResult":
        """Build a result from a model payload, defaulting bad fields."""
        data = dict(payload)
        if "upgradeTip" in data and "upgrade_tip" not in data:
            data["upgrade_tip"] = data.pop("upgradeTip")
        known = {key: data[key] for key in cls.model_fields if key in data}
        return cls.model_validate(known)


class RecipePayload(BaseModel):
    """Recipe fields returned by the generative model."""

    name: str = "AI Recipe"
    time: str = "15 min"
    calories: int = 250
    key_nutrient: str | None = None
    ingredients: list[str] = []
    steps: list[str] = []

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: object) -> str:
        return _text_or(value, "AI Recipe")

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: object) -> str:
        return _text_or(value, "15 min")

    @field_validator("calories", mode="before")
    @classmethod
    def _coerce_calories(cls, value: object) -> int:
        calories = int(_number_or_zero(value))
        return calories if calories > 0 else 250

    @field_validator("key_nutrient", mode="before")
    @classmethod
    def _coerce_nutrient(cls, value: object) -> str | None:
        return _text_or(value, "") or None

    @field_validator("ingredients", "steps", mode="before")
    @classmethod
    def _coerce_lines(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(line).strip() for line in value if str(line).strip()]

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "RecipePayload":
        """Build a recipe payload, defaulting bad fields."""
        data = dict(payload)
        if "keyNutrient" in data and "key_nutrient" not in data:
            data["key_nutrient"] = data.pop("keyNutrient")
        known = {key: data[key] for key in cls.model_fields if key in data}
        return cls.model_validate(known)

    def nutrient_or(self, phase: Phase) -> str:
        """Return the key nutrient, falling back to the phase focus."""
        return self.key_nutrient or PHASES[phase].nutrient


GENERIC_GRADE_FALLBACK = DishGradeResult(
    grade=DEFAULT_GRADE,
    verdict="We couldn't read this plate right now. Try another snap! 📸",
    upgrade_tip=DEFAULT_UPGRADE_TIP,
)

MOCK_GRADES: tuple[DishGradeResult, ...] = (
    DishGradeResult(
        grade="A",
        protein=28,
        carbs=45,
        fat=12,
        fiber=8,
        verdict="Amazing! You're eating like a nutritionist, sis! 🌟",
    ),
    DishGradeResult(
        grade="B",
        protein=18,
        carbs=55,
        fat=20,
        fiber=5,
        verdict="Pretty solid! Maybe add some protein next time 💪",
    ),
    DishGradeResult(
        grade="C",
        protein=10,
        carbs=65,
        fat=25,
        fiber=3,
        verdict="Not bad, but your body deserves better fuel! 🔥",
    ),
    DishGradeResult(
        grade="D",
        protein=5,
        carbs=70,
        fat=30,
        fiber=2,
        verdict="Hmm... was this Maggi at 2AM? We've all been there 😅",
    ),
    DishGradeResult(
        grade="F",
        protein=2,
        carbs=80,
        fat=35,
        fiber=1,
        verdict="Okay sis, this is a cry for help. Let me suggest a recipe! 🆘",
    ),
)

MOM_TIPS: tuple[str, ...] = (
    "Add a pinch of turmeric to your milk before bed. "
    "Mom's secret sleep potion! 🌙",
    "Soak your oats overnight. Morning-you will thank evening-you, sis! 🌅",
    "A banana + peanut butter = the hostel protein combo nobody told you about 🍌",
    "Drink warm water with lemon first thing. "
    "Your gut will send you a thank-you card 💌",
    "Roasted chana > chips. Your wallet AND waist agree! 💰",
    "Curd rice isn't boring — it's a probiotic powerhouse in disguise 🦸‍♀️",
    "Jaggery in your tea instead of sugar. Small swap, big difference! 🍵",
    "Sprouts don't need cooking — just soak overnight. Lazy girl protein hack! 🌱",
    "Feeling low? Dark chocolate (70%+) boosts serotonin. "
    "Science says treat yourself! 🍫",
    "Coconut water > that expensive cold coffee. Stay hydrated, queen! 🥥",
)


def pick_mock_grade(rng: random.Random) -> DishGradeResult:
    """Pick a canned grade for offline demos."""
    return rng.choice(MOCK_GRADES)


def pick_tip(rng: random.Random) -> str:
    """Pick a tip of the day."""
    return rng.choice(MOM_TIPS)
