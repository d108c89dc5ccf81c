"""Domain models for the CraveCare economy."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

DEFAULT_DAILY_BUDGET = 200.0
DEFAULT_SPEND_LABEL = "Food"


class Appliance(str, Enum):
    """Cooking equipment a user may own."""

    KETTLE = "kettle"
    INDUCTION = "induction"
    SANDWICH_MAKER = "sandwich-maker"
    FRIDGE = "fridge"


class Goal(str, Enum):
    """Primary goal picked during onboarding."""

    WEIGHT_LOSS = "weight-loss"
    PCOS_MANAGEMENT = "pcos-management"
    EXAM_FOCUS = "exam-focus"
    BUDGET_EATING = "budget-eating"
    MUSCLE_GAIN = "muscle-gain"


class TokenReason(str, Enum):
    """Qualifying actions that earn a cheat token."""

    UNDER_BUDGET = "under_budget"
    HEALTHY_MEAL = "healthy_meal"
    LOGGING_STREAK = "logging_streak"

    @property
    def label(self) -> str:
        """Return the user-facing label for the reason."""
        return TOKEN_REASON_LABELS[self]


TOKEN_REASON_LABELS: dict[TokenReason, str] = {
    TokenReason.UNDER_BUDGET: "💰 Under budget!",
    TokenReason.HEALTHY_MEAL: "🥗 Healthy meal cooked",
    TokenReason.LOGGING_STREAK: "📊 Logged 3+ meals today",
}


class MealType(str, Enum):
    """Meal slot derived from the hour of day."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


@dataclass(frozen=True)
class SpendEntry:
    """A single food expense."""

    id: str
    label: str
    amount: float
    timestamp: datetime
    date: date
    meal_type: MealType | None = None


@dataclass(frozen=True)
class CheatToken:
    """A reward unit earned by a qualifying action."""

    id: str
    reason: TokenReason
    earned_at: datetime


@dataclass(frozen=True)
class CheatDay:
    """A redemption consuming a batch of tokens."""

    id: str
    unlocked_at: datetime
    tokens_spent: int


@dataclass(frozen=True)
class UserProfile:
    """Profile captured at onboarding."""

    name: str
    appliances: frozenset[Appliance]
    last_period_date: date | None
    has_pcos: bool
    primary_goal: Goal | None
    daily_budget: float = DEFAULT_DAILY_BUDGET


@dataclass(frozen=True)
class GroceryItem:
    """A grocery list entry."""

    id: str
    name: str
    checked: bool
    created_at: datetime
    source_recipe_name: str | None = None
    source_recipe_emoji: str | None = None
    quantity: str | None = None


@dataclass(frozen=True)
class GroceryItemDraft:
    """A grocery item that has not been persisted yet."""

    name: str
    source_recipe_name: str | None = None
    source_recipe_emoji: str | None = None
    quantity: str | None = None


@dataclass(frozen=True)
class MealSnap:
    """A persisted dish grade."""

    id: str
    grade: str
    protein: float
    carbs: float
    fat: float
    fiber: float
    verdict: str
    meal_type: MealType
    created_at: datetime
    calories: float | None = None
    upgrade_tip: str | None = None
    image_url: str | None = None
