"""Optimistic update helper for in-memory ledgers."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from cravecare.errors import PersistenceConflict

T = TypeVar("T")
R = TypeVar("R")

_logger = logging.getLogger(__name__)


@dataclass
class OptimisticList(Generic[T]):
    """In-memory snapshot of a collection, mutated before persistence confirms.

    Each mutation snapshots the current items, applies the change, then runs
    the persistence call. On failure the snapshot is restored, or the
    collection is re-fetched when a reload callable is given.
    """

    items: list[T] = field(default_factory=list)

    def replace(self, items: list[T]) -> None:
        """Replace the snapshot with authoritative items."""
        self.items = list(items)

    def apply(
        self,
        mutate: Callable[[list[T]], list[T]],
        persist: Callable[[], R],
        *,
        confirm: Callable[[list[T], R], list[T]] | None = None,
        reload: Callable[[], list[T]] | None = None,
        action: str = "update",
    ) -> R:
        """Apply a mutation, persist it and roll back on failure."""
        before = list(self.items)
        self.items = mutate(list(before))
        try:
            result = persist()
        except (PersistenceConflict, OSError) as exc:
            self._rollback(before, reload)
            _logger.warning("Rolled back %s after persistence failure: %s", action, exc)
            if isinstance(exc, PersistenceConflict):
                raise
            raise PersistenceConflict(f"Failed to {action}: {exc}") from exc
        if confirm is not None:
            self.items = confirm(self.items, result)
        return result

    def _rollback(
        self, before: list[T], reload: Callable[[], list[T]] | None
    ) -> None:
        if reload is None:
            self.items = before
            return
        try:
            self.items = list(reload())
        except (PersistenceConflict, OSError):
            _logger.exception("Reload after failed update also failed")
            self.items = before
