"""
Pre-built model instances for use in tests.

Import individual fixtures or use the factory helpers to create
custom variants:

    from tests.mocks.models import MOCK_COURT, make_court, make_slot
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

from quickcourt.config import venue_timezone
from quickcourt.models import (
    WEEKDAYS,
    Court,
    DayHours,
    ExcludedTime,
    PayerInfo,
    TimeSlot,
)
from quickcourt.services.slot_generator import make_slot_id, slot_generator

# ── Dates ──────────────────────────────────────────────────────────────────
# Unit tests run against a fixed clock; API tests use real "today".

MONDAY = date(2030, 6, 3)
SUNDAY = date(2030, 6, 9)
NOW = datetime(2030, 6, 1, 9, 0)  # Saturday morning, before MONDAY


def upcoming_date(days: int = 2) -> date:
    """A date inside the booking window, in venue time."""
    return datetime.now(venue_timezone()).date() + timedelta(days=days)


def every_day(open_time: str, close_time: str) -> dict[str, DayHours]:
    return {
        day: DayHours(is_open=True, open_time=open_time, close_time=close_time)
        for day in WEEKDAYS
    }


# ── Payers ─────────────────────────────────────────────────────────────────

MOCK_PAYER = PayerInfo(
    user_id="user-1",
    name="Asha Player",
    email="asha@example.com",
    contact="+919800000001",
)

MOCK_PAYER_2 = PayerInfo(
    user_id="user-2",
    name="Ravi Coach",
    email="ravi@example.com",
)

# ── Courts ─────────────────────────────────────────────────────────────────

LUNCH = ExcludedTime(name="Lunch", start_time="12:00", end_time="13:00")

MOCK_COURT = Court(
    id="court-a",
    venue_id="venue-1",
    name="Court A",
    court_type="Badminton",
    price_per_hour=Decimal("600"),
    capacity=10,
    operating_hours=every_day("06:00", "22:00"),
    slot_duration=60,
    excluded_times=[LUNCH],
)

MOCK_COURT_SMALL = Court(
    id="court-b",
    venue_id="venue-1",
    name="Court B",
    court_type="Tennis",
    price_per_hour=Decimal("500"),
    capacity=4,
    operating_hours=every_day("08:00", "20:00"),
    slot_duration=90,
)

MOCK_COURT_INACTIVE = Court(
    id="court-c",
    venue_id="venue-1",
    name="Court C",
    court_type="Tennis",
    price_per_hour=Decimal("500"),
    operating_hours=every_day("08:00", "20:00"),
    is_active=False,
)

MOCK_COURT_OTHER_VENUE = Court(
    id="court-d",
    venue_id="venue-2",
    name="Court D",
    court_type="Badminton",
    price_per_hour=Decimal("400"),
    operating_hours=every_day("07:00", "21:00"),
)

MOCK_COURTS = [MOCK_COURT, MOCK_COURT_SMALL, MOCK_COURT_INACTIVE, MOCK_COURT_OTHER_VENUE]


def make_court(**overrides) -> Court:
    """MOCK_COURT with selected fields replaced (validated)."""
    data = MOCK_COURT.model_dump()
    data.update(overrides)
    return Court.model_validate(data)


# ── Time slots ─────────────────────────────────────────────────────────────


def make_slot(
    court: Court = MOCK_COURT,
    slot_date: date = MONDAY,
    start_time: str = "09:00",
    **overrides,
) -> TimeSlot:
    """Generated slot for *court* at *start_time*, with optional overrides."""
    slot = slot_generator.find_slot(court, make_slot_id(court.id, slot_date, start_time))
    assert slot is not None, f"{court.id} has no slot at {slot_date} {start_time}"
    return slot.model_copy(update=overrides) if overrides else slot
