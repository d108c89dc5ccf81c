"""Supabase-backed persistence for authenticated profiles."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

import httpx
from supabase import Client, PostgrestAPIError

from cravecare.adapters import mappers
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
from cravecare.errors import PersistenceConflict
from cravecare.services.store import CraveCareStore


def _execute(query: object, action: str) -> list[dict[str, object]]:
    """Run a PostgREST query, wrapping backend failures."""
    try:
        response = query.execute()  # type: ignore[attr-defined]
    except (PostgrestAPIError, httpx.HTTPError) as exc:
        raise PersistenceConflict(f"Failed to {action}: {exc}") from exc
    return response.data or []


def _single(rows: list[dict[str, object]], action: str) -> dict[str, object]:
    if not rows:
        raise PersistenceConflict(f"Failed to {action}: no row returned")
    return rows[0]


@dataclass
class SupabaseCraveCareStore(CraveCareStore):
    """Supabase implementation scoped by the owning profile id."""

    client: Client

    def create_profile(self, profile_id: str, profile: UserProfile) -> UserProfile:
        """Insert a profile row keyed by the auth user id."""
        rows = _execute(
            self.client.table("profiles").insert(
                {"id": profile_id, **mappers.profile_to_row(profile)}
            ),
            "create profile",
        )
        return mappers.profile_from_row(_single(rows, "create profile")) or profile

    def get_profile(self, profile_id: str) -> UserProfile | None:
        """Return the profile row for an auth user id, if present."""
        rows = _execute(
            self.client.table("profiles").select("*").eq("id", profile_id).limit(1),
            "load profile",
        )
        return mappers.profile_from_row(rows[0]) if rows else None

    def list_spend(self, profile_id: str) -> list[SpendEntry]:
        rows = _execute(
            self.client.table("spend_entries")
            .select("*")
            .eq("profile_id", profile_id)
            .order("created_at", desc=True),
            "list spend entries",
        )
        return [mappers.spend_from_row(row) for row in rows]

    def add_spend(  # noqa: PLR0913
        self,
        profile_id: str,
        label: str,
        amount: float,
        day: date,
        meal_type: MealType | None = None,
    ) -> SpendEntry:
        payload: dict[str, object] = {
            "profile_id": profile_id,
            "label": label,
            "amount": amount,
            "date": day.isoformat(),
        }
        if meal_type is not None:
            payload["meal_type"] = meal_type.value
        rows = _execute(
            self.client.table("spend_entries").insert(payload), "add spend entry"
        )
        return mappers.spend_from_row(_single(rows, "add spend entry"))

    def delete_spend(self, profile_id: str, entry_id: str) -> None:
        _execute(
            self.client.table("spend_entries")
            .delete()
            .eq("id", entry_id)
            .eq("profile_id", profile_id),
            "delete spend entry",
        )

    def list_tokens(self, profile_id: str) -> list[CheatToken]:
        rows = _execute(
            self.client.table("tokens")
            .select("*")
            .eq("profile_id", profile_id)
            .order("earned_at", desc=True),
            "list tokens",
        )
        return _present(mappers.token_from_row(row) for row in rows)

    def award_token(self, profile_id: str, reason: TokenReason) -> CheatToken:
        rows = _execute(
            self.client.table("tokens").insert(
                {"profile_id": profile_id, "reason": reason.value}
            ),
            "award token",
        )
        token = mappers.token_from_row(_single(rows, "award token"))
        if token is None:
            raise PersistenceConflict("Failed to award token: unknown reason stored")
        return token

    def list_cheat_days(self, profile_id: str) -> list[CheatDay]:
        rows = _execute(
            self.client.table("cheat_days")
            .select("*")
            .eq("profile_id", profile_id)
            .order("unlocked_at", desc=True),
            "list cheat days",
        )
        return [mappers.cheat_day_from_row(row) for row in rows]

    def redeem_cheat_day(self, profile_id: str, tokens_spent: int) -> CheatDay:
        rows = _execute(
            self.client.table("cheat_days").insert(
                {"profile_id": profile_id, "tokens_spent": tokens_spent}
            ),
            "redeem cheat day",
        )
        return mappers.cheat_day_from_row(_single(rows, "redeem cheat day"))

    def list_grocery(self, profile_id: str) -> list[GroceryItem]:
        rows = _execute(
            self.client.table("grocery_list")
            .select("*")
            .eq("profile_id", profile_id)
            .order("created_at", desc=False),
            "list grocery items",
        )
        return [mappers.grocery_from_row(row) for row in rows]

    def add_grocery_items(
        self, profile_id: str, drafts: list[GroceryItemDraft]
    ) -> list[GroceryItem]:
        if not drafts:
            return []
        rows = _execute(
            self.client.table("grocery_list").insert(
                [mappers.grocery_draft_to_row(profile_id, draft) for draft in drafts]
            ),
            "add grocery items",
        )
        return [mappers.grocery_from_row(row) for row in rows]

    def toggle_grocery_item(self, profile_id: str, item_id: str, checked: bool) -> None:
        _execute(
            self.client.table("grocery_list")
            .update({"checked": checked})
            .eq("id", item_id)
            .eq("profile_id", profile_id),
            "toggle grocery item",
        )

    def delete_grocery_item(self, profile_id: str, item_id: str) -> None:
        _execute(
            self.client.table("grocery_list")
            .delete()
            .eq("id", item_id)
            .eq("profile_id", profile_id),
            "delete grocery item",
        )

    def clear_checked_items(self, profile_id: str) -> None:
        _execute(
            self.client.table("grocery_list")
            .delete()
            .eq("profile_id", profile_id)
            .eq("checked", True),
            "clear checked grocery items",
        )

    def save_meal_snap(
        self, profile_id: str, fields: dict[str, object], meal_type: MealType
    ) -> MealSnap:
        rows = _execute(
            self.client.table("meal_snaps").insert(
                mappers.meal_snap_fields_to_row(profile_id, fields, meal_type)
            ),
            "save meal snap",
        )
        return mappers.meal_snap_from_row(_single(rows, "save meal snap"))

    def list_meal_snaps(self, profile_id: str) -> list[MealSnap]:
        rows = _execute(
            self.client.table("meal_snaps")
            .select("*")
            .eq("profile_id", profile_id)
            .order("created_at", desc=True),
            "list meal snaps",
        )
        return [mappers.meal_snap_from_row(row) for row in rows]


def _present(tokens: Iterable[CheatToken | None]) -> list[CheatToken]:
    return [token for token in tokens if token is not None]
