"""Daily food spend ledger."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import uuid4
from zoneinfo import ZoneInfo

from cravecare.domain.models import (
    DEFAULT_SPEND_LABEL,
    MealType,
    SpendEntry,
    TokenReason,
)
from cravecare.errors import InvalidSpendAmount, PersistenceConflict
from cravecare.services.optimistic import OptimisticList
from cravecare.services.rewards import RewardService, local_day
from cravecare.services.store import CraveCareStore

LOGGING_STREAK_THRESHOLD = 3

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetStatus:
    """Spend against the daily budget."""

    spent: float
    budget: float
    remaining: float
    percent: float
    under_budget: bool


def meal_type_for(hour: int) -> MealType:
    """Map an hour of day to a meal slot."""
    if 6 <= hour < 11:  # noqa: PLR2004
        return MealType.BREAKFAST
    if 11 <= hour < 15:  # noqa: PLR2004
        return MealType.LUNCH
    if 18 <= hour < 22:  # noqa: PLR2004
        return MealType.DINNER
    return MealType.SNACK


def entries_on(entries: list[SpendEntry], day: date) -> list[SpendEntry]:
    """Return entries recorded for a calendar day."""
    return [entry for entry in entries if entry.date == day]


def todays_entries(
    entries: list[SpendEntry], now: datetime, timezone_name: str = "UTC"
) -> list[SpendEntry]:
    """Return entries recorded on the local calendar day of now."""
    return entries_on(entries, local_day(now, timezone_name))


def daily_total(entries: list[SpendEntry]) -> float:
    """Sum entry amounts."""
    return sum(entry.amount for entry in entries)


def budget_status(spent: float, budget: float) -> BudgetStatus:
    """Compute remaining budget and a gauge clamped to 0-100."""
    percent = (spent / budget * 100) if budget > 0 else 100.0
    return BudgetStatus(
        spent=spent,
        budget=budget,
        remaining=budget - spent,
        percent=min(max(percent, 0.0), 100.0),
        under_budget=spent <= budget,
    )


def spend_message(spent: float) -> str:
    """Return a nudge for today's spend."""
    if spent > 200:  # noqa: PLR2004
        return "Don't go bankrupt on Zomato today, sis! 😬"
    if spent > 100:  # noqa: PLR2004
        return "Keeping it reasonable! 👍"
    return "Budget queen energy! 💰"


def validate_amount(amount: float) -> float:
    """Return the amount if it is a positive finite number."""
    try:
        value = float(amount)
    except (TypeError, ValueError) as exc:
        raise InvalidSpendAmount(f"Invalid amount: {amount!r}") from exc
    if not math.isfinite(value) or value <= 0:
        raise InvalidSpendAmount(f"Amount must be positive, got {amount!r}")
    return value


@dataclass
class SpendService:
    """Spend ledger for one profile, kept as an in-memory snapshot."""

    store: CraveCareStore
    profile_id: str
    rewards: RewardService
    timezone_name: str = "UTC"
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)
    entries: OptimisticList[SpendEntry] = field(default_factory=OptimisticList)

    def load(self) -> None:
        """Load spend entries, degrading to empty on read failure."""
        try:
            self.entries.replace(self.store.list_spend(self.profile_id))
        except (PersistenceConflict, OSError):
            _logger.warning("Could not load spend entries for %s", self.profile_id)
            self.entries.replace([])

    def today(self) -> list[SpendEntry]:
        """Return today's entries."""
        return todays_entries(self.entries.items, self.clock(), self.timezone_name)

    def status(self, daily_budget: float) -> BudgetStatus:
        """Return today's budget status."""
        return budget_status(daily_total(self.today()), daily_budget)

    def add_entry(self, label: str, amount: float) -> SpendEntry:
        """Log an expense for today and award the streak token at three entries."""
        value = validate_amount(amount)
        now = self.clock()
        clean_label = label.strip() or DEFAULT_SPEND_LABEL
        day = local_day(now, self.timezone_name)
        meal_type = meal_type_for(now.astimezone(ZoneInfo(self.timezone_name)).hour)
        pending = SpendEntry(
            id=f"pending-{uuid4()}",
            label=clean_label,
            amount=value,
            timestamp=now,
            date=day,
            meal_type=meal_type,
        )
        entry = self.entries.apply(
            lambda items: [pending, *items],
            lambda: self.store.add_spend(
                self.profile_id, clean_label, value, day, meal_type
            ),
            confirm=lambda items, saved: [
                saved if item.id == pending.id else item for item in items
            ],
            action="add spend entry",
        )
        if len(self.today()) >= LOGGING_STREAK_THRESHOLD:
            self._award_streak()
        return entry

    def delete_entry(self, entry_id: str) -> None:
        """Remove an entry, restoring it if the delete fails."""
        self.entries.apply(
            lambda items: [item for item in items if item.id != entry_id],
            lambda: self.store.delete_spend(self.profile_id, entry_id),
            action="delete spend entry",
        )

    def _award_streak(self) -> None:
        try:
            token = self.rewards.award_if_eligible(TokenReason.LOGGING_STREAK)
        except PersistenceConflict:
            _logger.warning(
                "Logging streak token was not saved for %s", self.profile_id
            )
            return
        if token is not None:
            _logger.info("Logging streak reached for %s", self.profile_id)
