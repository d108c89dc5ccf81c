"""Pydantic models for API request payloads."""

from datetime import date

from pydantic import BaseModel, Field

from cravecare.domain.models import DEFAULT_DAILY_BUDGET, Appliance, Goal, UserProfile
from cravecare.domain.phases import Phase


class OnboardingRequest(BaseModel):
    """Profile draft collected by onboarding."""

    name: str = Field(min_length=1)
    appliances: list[Appliance] = Field(default_factory=list)
    last_period_date: date | None = None
    has_pcos: bool = False
    primary_goal: Goal | None = None
    daily_budget: float = Field(default=DEFAULT_DAILY_BUDGET, gt=0)

    def to_profile(self) -> UserProfile:
        """Convert the payload into a domain profile."""
        return UserProfile(
            name=self.name.strip(),
            appliances=frozenset(self.appliances),
            last_period_date=self.last_period_date,
            has_pcos=self.has_pcos,
            primary_goal=self.primary_goal,
            daily_budget=self.daily_budget,
        )


class SpendRequest(BaseModel):
    """A new expense."""

    label: str = ""
    amount: float


class RecipeRequest(BaseModel):
    """Recipe generation input; phase defaults to the current one."""

    appliance: Appliance
    phase: Phase | None = None


class DishGradeRequest(BaseModel):
    """A dish photo encoded as base64."""

    image_base64: str = Field(min_length=1)
    mime_type: str | None = None


class GroceryItemRequest(BaseModel):
    """A manually typed grocery item."""

    name: str
    quantity: str | None = None


class GroceryFromRecipeRequest(BaseModel):
    """Ingredients to add from a recipe."""

    recipe_name: str
    recipe_emoji: str | None = None
    ingredients: list[str] = Field(default_factory=list)
