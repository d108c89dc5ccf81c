"""Grocery list management."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import uuid4

from cravecare.domain.models import GroceryItem, GroceryItemDraft
from cravecare.domain.recipes import Recipe
from cravecare.errors import PersistenceConflict
from cravecare.services.optimistic import OptimisticList
from cravecare.services.store import CraveCareStore

MANUAL_GROUP = "__manual__"

_logger = logging.getLogger(__name__)


def drafts_from_recipe(recipe: Recipe) -> list[GroceryItemDraft]:
    """Turn a recipe's ingredient list into grocery drafts."""
    return [
        GroceryItemDraft(
            name=ingredient,
            source_recipe_name=recipe.name,
            source_recipe_emoji=recipe.emoji,
        )
        for ingredient in recipe.ingredients
        if ingredient.strip()
    ]


def group_items(items: list[GroceryItem]) -> list[tuple[str, list[GroceryItem]]]:
    """Group items by source recipe; recipes sorted by name, manual items last."""
    groups: dict[str, list[GroceryItem]] = {}
    for item in items:
        groups.setdefault(item.source_recipe_name or MANUAL_GROUP, []).append(item)
    keys = sorted(key for key in groups if key != MANUAL_GROUP)
    if MANUAL_GROUP in groups:
        keys.append(MANUAL_GROUP)
    return [(key, groups[key]) for key in keys]


@dataclass
class GroceryService:
    """Grocery list for one profile with optimistic updates."""

    store: CraveCareStore
    profile_id: str
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)
    items: OptimisticList[GroceryItem] = field(default_factory=OptimisticList)

    def load(self) -> None:
        """Load the list, degrading to empty on read failure."""
        try:
            self.items.replace(self._fetch())
        except (PersistenceConflict, OSError):
            _logger.warning("Could not load grocery list for %s", self.profile_id)
            self.items.replace([])

    @property
    def unchecked_count(self) -> int:
        return sum(1 for item in self.items.items if not item.checked)

    @property
    def checked_count(self) -> int:
        return sum(1 for item in self.items.items if item.checked)

    def grouped(self) -> list[tuple[str, list[GroceryItem]]]:
        return group_items(self.items.items)

    def add_manual(self, name: str, quantity: str | None = None) -> GroceryItem | None:
        """Add a manually typed item; blank names are ignored."""
        trimmed = name.strip()
        if not trimmed:
            return None
        added = self.add_items([GroceryItemDraft(name=trimmed, quantity=quantity)])
        return added[0] if added else None

    def add_from_recipe(self, recipe: Recipe) -> list[GroceryItem]:
        """Add every ingredient of a recipe, tagged with the recipe."""
        return self.add_items(drafts_from_recipe(recipe))

    def add_items(self, drafts: list[GroceryItemDraft]) -> list[GroceryItem]:
        """Add a batch of items, replacing placeholders with stored rows."""
        if not drafts:
            return []
        created_at = self.clock()
        pending = [
            GroceryItem(
                id=f"temp-{uuid4()}",
                name=draft.name,
                checked=False,
                created_at=created_at,
                source_recipe_name=draft.source_recipe_name,
                source_recipe_emoji=draft.source_recipe_emoji,
                quantity=draft.quantity,
            )
            for draft in drafts
        ]
        pending_ids = {item.id for item in pending}
        return self.items.apply(
            lambda items: [*items, *pending],
            lambda: self.store.add_grocery_items(self.profile_id, drafts),
            confirm=lambda items, saved: [
                item for item in items if item.id not in pending_ids
            ]
            + saved,
            action="add grocery items",
        )

    def toggle(self, item_id: str) -> GroceryItem | None:
        """Flip an item's checked flag."""
        current = next((i for i in self.items.items if i.id == item_id), None)
        if current is None:
            return None
        toggled = replace(current, checked=not current.checked)
        self.items.apply(
            lambda items: [toggled if i.id == item_id else i for i in items],
            lambda: self.store.toggle_grocery_item(
                self.profile_id, item_id, toggled.checked
            ),
            action="toggle grocery item",
        )
        return toggled

    def delete(self, item_id: str) -> None:
        """Delete an item; re-fetch the list if the delete fails."""
        self.items.apply(
            lambda items: [i for i in items if i.id != item_id],
            lambda: self.store.delete_grocery_item(self.profile_id, item_id),
            reload=self._fetch,
            action="delete grocery item",
        )

    def clear_checked(self) -> int:
        """Delete all checked items and return how many were removed."""
        removed = self.checked_count
        if removed == 0:
            return 0
        self.items.apply(
            lambda items: [i for i in items if not i.checked],
            lambda: self.store.clear_checked_items(self.profile_id),
            reload=self._fetch,
            action="clear checked items",
        )
        return removed

    def _fetch(self) -> list[GroceryItem]:
        return self.store.list_grocery(self.profile_id)
