"""Device-local storage backed by a JSON key-value file."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Protocol
from uuid import uuid4

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
from cravecare.services.store import CraveCareStore

PROFILE_KEY = "cravecare-profile"
SPENDS_KEY = "cravecare-spends-v2"
TOKENS_KEY = "cravecare-tokens"
CHEAT_DAYS_KEY = "cravecare-cheatdays"
GROCERY_KEY = "cravecare-grocery"
MEAL_SNAPS_KEY = "cravecare-meal-snaps"

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String key-value storage, like a browser's localStorage."""

    def get_item(self, key: str) -> str | None:
        """Return the stored string for a key, if present."""

    def set_item(self, key: str, value: str) -> None:
        """Store a string under a key."""

    def remove_item(self, key: str) -> None:
        """Remove a key."""


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """Process-local key-value store."""

    items: dict[str, str] = field(default_factory=dict)

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


@dataclass
class JsonFileKeyValueStore(KeyValueStore):
    """Key-value store persisted as one JSON document on disk."""

    path: Path

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            _logger.warning(
                "Local store at %s is unreadable, starting empty", self.path
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, items: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)


@dataclass
class LocalCraveCareStore(CraveCareStore):
    """Offline store: each collection is one JSON blob, rewritten on every change.

    The profile id is ignored; a device holds a single local profile.
    """

    kv: KeyValueStore
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)
    id_factory: Callable[[], str] = lambda: str(uuid4())

    def create_profile(self, profile_id: str, profile: UserProfile) -> UserProfile:
        self.kv.set_item(PROFILE_KEY, json.dumps(mappers.profile_to_local(profile)))
        return profile

    def get_profile(self, profile_id: str) -> UserProfile | None:
        raw = self.kv.get_item(PROFILE_KEY)
        if not raw:
            return None
        try:
            record = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return mappers.profile_from_local(record if isinstance(record, dict) else None)

    def list_spend(self, profile_id: str) -> list[SpendEntry]:
        entries = [mappers.spend_from_local(r) for r in self._load(SPENDS_KEY)]
        return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)

    def add_spend(  # noqa: PLR0913
        self,
        profile_id: str,
        label: str,
        amount: float,
        day: date,
        meal_type: MealType | None = None,
    ) -> SpendEntry:
        entry = SpendEntry(
            id=self.id_factory(),
            label=label,
            amount=amount,
            timestamp=self.clock(),
            date=day,
            meal_type=meal_type,
        )
        records = self._load(SPENDS_KEY)
        records.append(mappers.spend_to_local(entry))
        self._save(SPENDS_KEY, records)
        return entry

    def delete_spend(self, profile_id: str, entry_id: str) -> None:
        records = [r for r in self._load(SPENDS_KEY) if str(r.get("id")) != entry_id]
        self._save(SPENDS_KEY, records)

    def list_tokens(self, profile_id: str) -> list[CheatToken]:
        tokens = [mappers.token_from_local(r) for r in self._load(TOKENS_KEY)]
        return sorted(
            (token for token in tokens if token is not None),
            key=lambda token: token.earned_at,
            reverse=True,
        )

    def award_token(self, profile_id: str, reason: TokenReason) -> CheatToken:
        token = CheatToken(id=self.id_factory(), reason=reason, earned_at=self.clock())
        records = self._load(TOKENS_KEY)
        records.append(mappers.token_to_local(token))
        self._save(TOKENS_KEY, records)
        return token

    def list_cheat_days(self, profile_id: str) -> list[CheatDay]:
        days = [mappers.cheat_day_from_local(r) for r in self._load(CHEAT_DAYS_KEY)]
        return sorted(days, key=lambda day: day.unlocked_at, reverse=True)

    def redeem_cheat_day(self, profile_id: str, tokens_spent: int) -> CheatDay:
        cheat_day = CheatDay(
            id=self.id_factory(), unlocked_at=self.clock(), tokens_spent=tokens_spent
        )
        records = self._load(CHEAT_DAYS_KEY)
        records.append(mappers.cheat_day_to_local(cheat_day))
        self._save(CHEAT_DAYS_KEY, records)
        return cheat_day

    def list_grocery(self, profile_id: str) -> list[GroceryItem]:
        items = [mappers.grocery_from_local(r) for r in self._load(GROCERY_KEY)]
        return sorted(items, key=lambda item: item.created_at)

    def add_grocery_items(
        self, profile_id: str, drafts: list[GroceryItemDraft]
    ) -> list[GroceryItem]:
        created_at = self.clock()
        added = [
            GroceryItem(
                id=self.id_factory(),
                name=draft.name,
                checked=False,
                created_at=created_at,
                source_recipe_name=draft.source_recipe_name,
                source_recipe_emoji=draft.source_recipe_emoji,
                quantity=draft.quantity,
            )
            for draft in drafts
        ]
        records = self._load(GROCERY_KEY)
        records.extend(mappers.grocery_to_local(item) for item in added)
        self._save(GROCERY_KEY, records)
        return added

    def toggle_grocery_item(self, profile_id: str, item_id: str, checked: bool) -> None:
        records = self._load(GROCERY_KEY)
        for record in records:
            if str(record.get("id")) == item_id:
                record["checked"] = checked
        self._save(GROCERY_KEY, records)

    def delete_grocery_item(self, profile_id: str, item_id: str) -> None:
        records = [r for r in self._load(GROCERY_KEY) if str(r.get("id")) != item_id]
        self._save(GROCERY_KEY, records)

    def clear_checked_items(self, profile_id: str) -> None:
        records = [r for r in self._load(GROCERY_KEY) if not r.get("checked")]
        self._save(GROCERY_KEY, records)

    def save_meal_snap(
        self, profile_id: str, fields: dict[str, object], meal_type: MealType
    ) -> MealSnap:
        record = {
            **mappers.meal_snap_fields_to_row(profile_id, fields, meal_type),
            "id": self.id_factory(),
            "created_at": self.clock().isoformat(),
        }
        snap = mappers.meal_snap_from_row(record)
        records = self._load(MEAL_SNAPS_KEY)
        records.append(mappers.meal_snap_to_local(snap))
        self._save(MEAL_SNAPS_KEY, records)
        return snap

    def list_meal_snaps(self, profile_id: str) -> list[MealSnap]:
        snaps = [mappers.meal_snap_from_local(r) for r in self._load(MEAL_SNAPS_KEY)]
        return sorted(snaps, key=lambda snap: snap.created_at, reverse=True)

    def _load(self, key: str) -> list[dict[str, object]]:
        raw = self.kv.get_item(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Discarding unreadable local collection %s", key)
            return []
        if not isinstance(data, list):
            return []
        return [
            record for record in data if isinstance(record, dict) and "id" in record
        ]

    def _save(self, key: str, records: list[dict[str, object]]) -> None:
        self.kv.set_item(key, json.dumps(records, ensure_ascii=False))
