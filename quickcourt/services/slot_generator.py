"""
Time slot generation from a court's configuration.

Slots are derived, never stored: for a given court and date the generator
walks the opening window in ``slot_duration`` steps and drops every
candidate that touches a break. The output is deterministic so slot ids
can be matched against booking records and cached safely.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from quickcourt.config import PRICE_DECIMALS
from quickcourt.models import (
    Court,
    ExcludedTime,
    TimeSlot,
    from_minutes,
    to_minutes,
    weekday_name,
)

logger = logging.getLogger(__name__)

# "-YYYY-MM-DD-HH:MM" suffix appended to the court id.
_SLOT_SUFFIX_LEN = 17


def make_slot_id(court_id: str, slot_date: date, start_time: str) -> str:
    return f"{court_id}-{slot_date.isoformat()}-{start_time}"


def parse_slot_id(slot_id: str) -> tuple[str, date, str]:
    """
    Split a slot id back into ``(court_id, date, start_time)``.

    Raises ``ValueError`` for anything that was not produced by
    :func:`make_slot_id`.
    """
    if len(slot_id) <= _SLOT_SUFFIX_LEN or slot_id[-_SLOT_SUFFIX_LEN] != "-":
        raise ValueError(f"Malformed slot id: {slot_id!r}")
    court_id = slot_id[:-_SLOT_SUFFIX_LEN]
    slot_date = date.fromisoformat(slot_id[-16:-6])
    start_time = slot_id[-5:]
    if slot_id[-6] != "-" or len(start_time.split(":")) != 2:
        raise ValueError(f"Malformed slot id: {slot_id!r}")
    to_minutes(start_time)
    return court_id, slot_date, start_time


def slot_price(price_per_hour: Decimal, duration_minutes: int, decimals: int = PRICE_DECIMALS) -> Decimal:
    """Price of one slot, rounded half-up to *decimals* places."""
    quantum = Decimal(1).scaleb(-decimals)
    raw = Decimal(price_per_hour) * Decimal(duration_minutes) / Decimal(60)
    return raw.quantize(quantum, rounding=ROUND_HALF_UP)


def _overlaps(start: int, end: int, excluded: ExcludedTime) -> bool:
    return start < to_minutes(excluded.end_time) and end > to_minutes(excluded.start_time)


class TimeSlotGenerator:
    """Produces the canonical, ordered slot list for a court and date."""

    def __init__(self, price_decimals: int = PRICE_DECIMALS) -> None:
        self._price_decimals = price_decimals

    def generate_slots(self, court: Court, slot_date: date) -> list[TimeSlot]:
        if not court.is_active:
            return []

        weekday = weekday_name(slot_date)
        hours = court.operating_hours.get(weekday)
        if hours is None or not hours.is_open:
            return []

        open_minutes = to_minutes(hours.open_time)
        close_minutes = to_minutes(hours.close_time)
        duration = court.slot_duration
        breaks = [b for b in court.excluded_times if weekday in b.days]
        price = slot_price(court.price_per_hour, duration, self._price_decimals)

        slots: list[TimeSlot] = []
        start = open_minutes
        while start + duration <= close_minutes:
            end = start + duration
            if not any(_overlaps(start, end, b) for b in breaks):
                start_time = from_minutes(start)
                slots.append(
                    TimeSlot(
                        id=make_slot_id(court.id, slot_date, start_time),
                        court_id=court.id,
                        court_name=court.name,
                        slot_date=slot_date,
                        start_time=start_time,
                        end_time=from_minutes(end),
                        duration_minutes=duration,
                        price=price,
                        capacity=court.capacity,
                    )
                )
            start = end

        logger.debug(
            "Generated %d slots for court %s on %s", len(slots), court.id, slot_date,
        )
        return slots

    def find_slot(self, court: Court, slot_id: str) -> TimeSlot | None:
        """Regenerate the court's slots for the id's date and return the match."""
        try:
            court_id, slot_date, _ = parse_slot_id(slot_id)
        except ValueError:
            return None
        if court_id != court.id:
            return None
        for slot in self.generate_slots(court, slot_date):
            if slot.id == slot_id:
                return slot
        return None


# Global generator instance
slot_generator = TimeSlotGenerator()
