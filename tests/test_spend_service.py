"""Tests for the spend ledger."""

import math
from datetime import UTC, datetime

import pytest

from cravecare.adapters.local_store import LocalCraveCareStore
from cravecare.domain.models import MealType, TokenReason
from cravecare.errors import InvalidSpendAmount, PersistenceConflict
from cravecare.services.rewards import RewardService
from cravecare.services.spend import (
    SpendService,
    budget_status,
    meal_type_for,
    spend_message,
    validate_amount,
)
from tests.conftest import FixedClock, FlakyStore


def _services(
    store: LocalCraveCareStore | FlakyStore, clock: FixedClock
) -> tuple[SpendService, RewardService]:
    rewards = RewardService(store=store, profile_id="local", clock=clock)
    rewards.load()
    spend = SpendService(store=store, profile_id="local", rewards=rewards, clock=clock)
    spend.load()
    return spend, rewards


def test_third_entry_awards_one_streak_token(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, rewards = _services(store, clock)

    spend.add_entry("Chai", 20)
    spend.add_entry("Maggi", 40)
    assert rewards.tokens.items == []

    spend.add_entry("Thali", 90)
    spend.add_entry("Juice", 30)

    streak_tokens = [
        token
        for token in store.list_tokens("local")
        if token.reason == TokenReason.LOGGING_STREAK
    ]
    assert len(streak_tokens) == 1
    assert rewards.available == 1


def test_over_budget_day_is_not_eligible_for_under_budget_token(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, rewards = _services(store, clock)
    spend.add_entry("Biryani", 250)

    status = spend.status(200)

    assert status.remaining == -50
    assert status.under_budget is False
    assert status.percent == 100
    today = spend.today()
    assert (
        rewards.claim_under_budget(len(today), status.spent, status.budget) is None
    )


def test_entry_round_trips_through_store(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, _ = _services(store, clock)

    entry = spend.add_entry("  Samosa ", 15.5)
    stored = store.list_spend("local")[0]

    assert (stored.label, stored.amount, stored.date) == ("Samosa", 15.5, entry.date)
    assert stored.meal_type == MealType.BREAKFAST


def test_blank_label_defaults_to_food(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, _ = _services(store, clock)

    entry = spend.add_entry("   ", 10)

    assert entry.label == "Food"


@pytest.mark.parametrize("amount", [0, -5, math.nan, math.inf])
def test_invalid_amounts_are_rejected(amount: float) -> None:
    with pytest.raises(InvalidSpendAmount):
        validate_amount(amount)


def test_invalid_amount_does_not_touch_ledger(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, _ = _services(store, clock)

    with pytest.raises(InvalidSpendAmount):
        spend.add_entry("Chai", 0)

    assert spend.entries.items == []
    assert store.list_spend("local") == []


def test_today_excludes_previous_days(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, _ = _services(store, clock)
    spend.add_entry("Yesterday", 100)
    clock.advance(days=1)
    spend.add_entry("Today", 30)

    assert [entry.label for entry in spend.today()] == ["Today"]
    assert spend.status(200).spent == 30


def test_delete_restores_entry_when_store_rejects(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, _ = _services(store, clock)
    entry = spend.add_entry("Chai", 20)
    spend.store = FlakyStore(store, fail_on={"delete_spend"})

    with pytest.raises(PersistenceConflict):
        spend.delete_entry(entry.id)

    assert [item.id for item in spend.entries.items] == [entry.id]


def test_add_rolls_back_when_store_rejects(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, _ = _services(FlakyStore(store, fail_on={"add_spend"}), clock)

    with pytest.raises(PersistenceConflict):
        spend.add_entry("Chai", 20)

    assert spend.entries.items == []


def test_streak_award_failure_keeps_the_entry(
    store: LocalCraveCareStore, clock: FixedClock
) -> None:
    spend, rewards = _services(FlakyStore(store, fail_on={"award_token"}), clock)

    for label in ("Chai", "Poha", "Dal"):
        spend.add_entry(label, 20)

    assert len(spend.entries.items) == 3
    assert rewards.tokens.items == []


def test_budget_status_clamps_gauge() -> None:
    assert budget_status(0, 200).percent == 0
    assert budget_status(50, 200).percent == 25
    assert budget_status(500, 200).percent == 100
    assert budget_status(200, 200).under_budget is True


@pytest.mark.parametrize(
    ("hour", "expected"),
    [
        (6, MealType.BREAKFAST),
        (10, MealType.BREAKFAST),
        (11, MealType.LUNCH),
        (14, MealType.LUNCH),
        (16, MealType.SNACK),
        (18, MealType.DINNER),
        (21, MealType.DINNER),
        (23, MealType.SNACK),
        (2, MealType.SNACK),
    ],
)
def test_meal_type_for_hour(hour: int, expected: MealType) -> None:
    assert meal_type_for(hour) == expected


def test_spend_message_tiers() -> None:
    assert "queen" in spend_message(80)
    assert "reasonable" in spend_message(150)
    assert "bankrupt" in spend_message(201)


def test_meal_type_uses_configured_timezone(store: LocalCraveCareStore) -> None:
    clock = FixedClock(datetime(2024, 5, 10, 14, 0, tzinfo=UTC))
    rewards = RewardService(store=store, profile_id="local", clock=clock)
    spend = SpendService(
        store=store,
        profile_id="local",
        rewards=rewards,
        timezone_name="Asia/Kolkata",
        clock=clock,
    )

    entry = spend.add_entry("Dinner", 120)

    assert entry.meal_type == MealType.DINNER
