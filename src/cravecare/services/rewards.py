"""Cheat token rewards and cheat day redemption."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from uuid import uuid4
from zoneinfo import ZoneInfo

from cravecare.domain.models import CheatDay, CheatToken, TokenReason
from cravecare.errors import (
    DailyCapExceeded,
    InsufficientTokens,
    PersistenceConflict,
)
from cravecare.services.optimistic import OptimisticList
from cravecare.services.store import CraveCareStore

TOKENS_PER_CHEAT_DAY = 5
MAX_HEALTHY_MEAL_TOKENS_PER_DAY = 2

DAILY_CAPS: dict[TokenReason, int] = {
    TokenReason.HEALTHY_MEAL: MAX_HEALTHY_MEAL_TOKENS_PER_DAY,
    TokenReason.UNDER_BUDGET: 1,
    TokenReason.LOGGING_STREAK: 1,
}

_logger = logging.getLogger(__name__)


def local_day(instant: datetime, timezone_name: str) -> date:
    """Return the calendar day of an instant in a timezone."""
    return instant.astimezone(ZoneInfo(timezone_name)).date()


def count_of_reason_on(
    tokens: list[CheatToken], reason: TokenReason, day: date, timezone_name: str
) -> int:
    """Count tokens for a reason earned on a calendar day."""
    return sum(
        1
        for token in tokens
        if token.reason == reason and local_day(token.earned_at, timezone_name) == day
    )


def count_of_reason_today(
    tokens: list[CheatToken],
    reason: TokenReason,
    now: datetime,
    timezone_name: str = "UTC",
) -> int:
    """Count tokens for a reason earned on the calendar day of now."""
    today = local_day(now, timezone_name)
    return count_of_reason_on(tokens, reason, today, timezone_name)


def has_earned_reason_today(
    tokens: list[CheatToken],
    reason: TokenReason,
    now: datetime,
    timezone_name: str = "UTC",
) -> bool:
    """Return whether a token for the reason was earned today."""
    return count_of_reason_today(tokens, reason, now, timezone_name) > 0


def can_award(
    tokens: list[CheatToken],
    reason: TokenReason,
    now: datetime,
    timezone_name: str = "UTC",
    caps: dict[TokenReason, int] | None = None,
) -> bool:
    """Return whether the daily cap for the reason still has room."""
    cap = (caps or DAILY_CAPS)[reason]
    return count_of_reason_today(tokens, reason, now, timezone_name) < cap


def available_tokens(tokens: list[CheatToken], cheat_days: list[CheatDay]) -> int:
    """Earned tokens minus tokens spent on cheat days."""
    return len(tokens) - sum(day.tokens_spent for day in cheat_days)


def display_available_tokens(
    tokens: list[CheatToken], cheat_days: list[CheatDay]
) -> int:
    """Available tokens clamped at zero for display."""
    return max(available_tokens(tokens, cheat_days), 0)


def cheat_day_progress(
    tokens: list[CheatToken],
    cheat_days: list[CheatDay],
    tokens_per_cheat_day: int = TOKENS_PER_CHEAT_DAY,
) -> int:
    """Tokens collected toward the next cheat day, capped at its cost."""
    return min(display_available_tokens(tokens, cheat_days), tokens_per_cheat_day)


@dataclass
class RewardService:
    """Token ledger for one profile, kept as an in-memory snapshot."""

    store: CraveCareStore
    profile_id: str
    timezone_name: str = "UTC"
    tokens_per_cheat_day: int = TOKENS_PER_CHEAT_DAY
    daily_caps: dict[TokenReason, int] = field(default_factory=lambda: dict(DAILY_CAPS))
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC)
    tokens: OptimisticList[CheatToken] = field(default_factory=OptimisticList)
    cheat_days: OptimisticList[CheatDay] = field(default_factory=OptimisticList)

    def load(self) -> None:
        """Load tokens and cheat days, degrading to empty on read failure."""
        try:
            self.tokens.replace(self.store.list_tokens(self.profile_id))
        except (PersistenceConflict, OSError):
            _logger.warning("Could not load tokens for %s", self.profile_id)
            self.tokens.replace([])
        try:
            self.cheat_days.replace(self.store.list_cheat_days(self.profile_id))
        except (PersistenceConflict, OSError):
            _logger.warning("Could not load cheat days for %s", self.profile_id)
            self.cheat_days.replace([])

    @property
    def available(self) -> int:
        """Tokens available for redemption, never below zero."""
        return display_available_tokens(self.tokens.items, self.cheat_days.items)

    @property
    def progress(self) -> int:
        """Tokens collected toward the next cheat day."""
        return cheat_day_progress(
            self.tokens.items, self.cheat_days.items, self.tokens_per_cheat_day
        )

    def can_award(self, reason: TokenReason) -> bool:
        """Return whether the reason can still be earned today."""
        return can_award(
            self.tokens.items,
            reason,
            self.clock(),
            self.timezone_name,
            self.daily_caps,
        )

    def award(self, reason: TokenReason) -> CheatToken:
        """Award a token after checking the client-side daily cap."""
        now = self.clock()
        if not can_award(
            self.tokens.items, reason, now, self.timezone_name, self.daily_caps
        ):
            raise DailyCapExceeded(f"Daily limit reached for {reason.label}")
        pending = CheatToken(id=f"pending-{uuid4()}", reason=reason, earned_at=now)
        token = self.tokens.apply(
            lambda items: [pending, *items],
            lambda: self.store.award_token(self.profile_id, reason),
            confirm=lambda items, saved: [
                saved if item.id == pending.id else item for item in items
            ],
            action="award token",
        )
        _logger.info("Awarded %s token to %s", reason.value, self.profile_id)
        return token

    def award_if_eligible(self, reason: TokenReason) -> CheatToken | None:
        """Award a token when the daily cap allows it, else return None."""
        if not self.can_award(reason):
            return None
        return self.award(reason)

    def claim_under_budget(
        self, entries_today: int, spent_today: float, daily_budget: float
    ) -> CheatToken | None:
        """Award the under-budget token when today is logged and within budget."""
        if entries_today == 0 or spent_today > daily_budget:
            return None
        return self.award_if_eligible(TokenReason.UNDER_BUDGET)

    def redeem(self, cost: int | None = None) -> CheatDay:
        """Spend tokens on a cheat day, or raise InsufficientTokens."""
        price = self.tokens_per_cheat_day if cost is None else cost
        available = available_tokens(self.tokens.items, self.cheat_days.items)
        if available < price:
            raise InsufficientTokens(available=max(available, 0), cost=price)
        pending = CheatDay(
            id=f"pending-{uuid4()}", unlocked_at=self.clock(), tokens_spent=price
        )
        cheat_day = self.cheat_days.apply(
            lambda items: [pending, *items],
            lambda: self.store.redeem_cheat_day(self.profile_id, price),
            confirm=lambda items, saved: [
                saved if item.id == pending.id else item for item in items
            ],
            action="redeem cheat day",
        )
        _logger.info("Redeemed cheat day for %s (%s tokens)", self.profile_id, price)
        return cheat_day
