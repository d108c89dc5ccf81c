"""Menstrual cycle phase calculation."""

from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from zoneinfo import ZoneInfo

CYCLE_LENGTH_DAYS = 28


class Phase(str, Enum):
    """The four phases of a 28-day cycle."""

    MENSTRUAL = "menstrual"
    FOLLICULAR = "follicular"
    OVULATORY = "ovulatory"
    LUTEAL = "luteal"


@dataclass(frozen=True)
class PhaseInfo:
    """Display details and nutrient focus for a phase."""

    name: str
    emoji: str
    nutrient: str
    tip: str
    days: str
    first_day: int
    last_day: int


PHASES: dict[Phase, PhaseInfo] = {
    Phase.MENSTRUAL: PhaseInfo(
        name="Menstrual",
        emoji="🌙",
        nutrient="Iron & Vitamin C",
        tip="Your body is shedding. Focus on iron-rich comfort foods, sis!",
        days="Days 1-5",
        first_day=0,
        last_day=5,
    ),
    Phase.FOLLICULAR: PhaseInfo(
        name="Follicular",
        emoji="🌱",
        nutrient="Protein & B Vitamins",
        tip="Energy is rising! Time for fresh, light meals that fuel your hustle.",
        days="Days 6-13",
        first_day=6,
        last_day=13,
    ),
    Phase.OVULATORY: PhaseInfo(
        name="Ovulatory",
        emoji="☀️",
        nutrient="Fiber & Antioxidants",
        tip="You're glowing, queen! Keep it light and veggie-forward.",
        days="Days 14-16",
        first_day=14,
        last_day=16,
    ),
    Phase.LUTEAL: PhaseInfo(
        name="Luteal",
        emoji="🍫",
        nutrient="Magnesium & Complex Carbs",
        tip="Cravings incoming! Let's channel them into something nourishing.",
        days="Days 17-28",
        first_day=17,
        last_day=27,
    ),
}


def parse_period_date(value: date | str | None) -> date | None:
    """Return a calendar date from a date or ISO string, or None if invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def days_into_cycle(
    last_period: date | str | None,
    now: datetime | None = None,
    timezone_name: str = "UTC",
) -> int:
    """Return the zero-based day of the 28-day cycle.

    Unparseable or missing dates count as day 0.
    """
    start = parse_period_date(last_period)
    if start is None:
        return 0
    tz = ZoneInfo(timezone_name)
    current = (now or datetime.now(tz=UTC)).astimezone(tz).date()
    return (current - start).days % CYCLE_LENGTH_DAYS


def phase_for_day(day: int) -> Phase:
    """Map a cycle day in [0, 28) to its phase."""
    for phase, info in PHASES.items():
        if info.first_day <= day <= info.last_day:
            return phase
    raise ValueError(f"Cycle day out of range: {day}")


def current_phase(
    last_period: date | str | None,
    now: datetime | None = None,
    timezone_name: str = "UTC",
) -> Phase:
    """Return the active phase for a last-period date."""
    return phase_for_day(days_into_cycle(last_period, now, timezone_name))
