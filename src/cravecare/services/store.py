"""Persistence interface shared by local and remote storage."""

from datetime import date
from typing import Protocol

from cravecare.domain.models import (
    CheatDay,
    CheatToken,
    GroceryItem,
    GroceryItemDraft,
    MealSnap,
    MealType,
    SpendEntry,
    TokenReason,
    UserProfile,
)

LOCAL_PROFILE_ID = "local"


class CraveCareStore(Protocol):
    """Persistence capabilities for one owning profile id."""

    def create_profile(self, profile_id: str, profile: UserProfile) -> UserProfile:
        """Insert a profile and return the stored version."""

    def get_profile(self, profile_id: str) -> UserProfile | None:
        """Return the profile for an identity, if present."""

    def list_spend(self, profile_id: str) -> list[SpendEntry]:
        """Return spend entries, newest first."""

    def add_spend(  # noqa: PLR0913
        self,
        profile_id: str,
        label: str,
        amount: float,
        day: date,
        meal_type: MealType | None = None,
    ) -> SpendEntry:
        """Insert a spend entry and return it."""

    def delete_spend(self, profile_id: str, entry_id: str) -> None:
        """Delete a spend entry."""

    def list_tokens(self, profile_id: str) -> list[CheatToken]:
        """Return earned tokens, newest first."""

    def award_token(self, profile_id: str, reason: TokenReason) -> CheatToken:
        """Insert a token and return it."""

    def list_cheat_days(self, profile_id: str) -> list[CheatDay]:
        """Return redeemed cheat days, newest first."""

    def redeem_cheat_day(self, profile_id: str, tokens_spent: int) -> CheatDay:
        """Insert a cheat day and return it."""

    def list_grocery(self, profile_id: str) -> list[GroceryItem]:
        """Return grocery items, oldest first."""

    def add_grocery_items(
        self, profile_id: str, drafts: list[GroceryItemDraft]
    ) -> list[GroceryItem]:
        """Insert grocery items and return them."""

    def toggle_grocery_item(self, profile_id: str, item_id: str, checked: bool) -> None:
        """Set the checked flag of a grocery item."""

    def delete_grocery_item(self, profile_id: str, item_id: str) -> None:
        """Delete a grocery item."""

    def clear_checked_items(self, profile_id: str) -> None:
        """Delete every checked grocery item."""

    def save_meal_snap(
        self, profile_id: str, fields: dict[str, object], meal_type: MealType
    ) -> MealSnap:
        """Insert a meal snap and return it."""

    def list_meal_snaps(self, profile_id: str) -> list[MealSnap]:
        """Return meal snaps, newest first."""


def select_store(
    identity: str | None,
    local: CraveCareStore,
    remote: CraveCareStore | None,
) -> tuple[CraveCareStore, str]:
    """Pick the store and owning id for an identity.

    Authenticated identities use the remote store when one is configured;
    everything else uses the device-local store.
    """
    if identity and remote is not None:
        return remote, identity
    return local, LOCAL_PROFILE_ID
