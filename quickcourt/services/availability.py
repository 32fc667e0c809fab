"""
Availability resolution.

Takes generated slots and the set of slot ids already booked, and marks
each slot available or not. Slots starting before ``now`` are never
bookable. A popularity flag is derived from historical booking density;
the heuristic is best-effort and can never fail a resolution.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo

from quickcourt.config import POPULAR_MIN_BOOKINGS
from quickcourt.errors import AvailabilityFetchError
from quickcourt.models import CourtAvailability, TimeSlot, weekday_name

logger = logging.getLogger(__name__)

# (court_id, weekday, start_time) → number of past confirmed bookings
HistoryKey = tuple[str, str, str]


@dataclass
class PopularityHeuristic:
    """
    Flags a slot as popular when its (court, weekday, start time) triple has
    at least ``min_bookings`` bookings in the supplied history.
    """

    history: Mapping[HistoryKey, int] = field(default_factory=dict)
    min_bookings: int = POPULAR_MIN_BOOKINGS

    def is_popular(self, slot: TimeSlot) -> bool:
        try:
            key = (slot.court_id, weekday_name(slot.slot_date), slot.start_time)
            return int(self.history.get(key, 0)) >= self.min_bookings
        except Exception:
            logger.debug("Popularity lookup failed for %s", slot.id, exc_info=True)
            return False


# What a batch loader returns for one court.
CourtData = tuple[list[TimeSlot], Iterable[str], PopularityHeuristic | None]


def is_past(slot: TimeSlot, now: datetime, tz: tzinfo | None = None) -> bool:
    """True when the slot starts strictly before *now*."""
    if now.tzinfo is None:
        return slot.starts_at() < now
    return slot.starts_at(tz or now.tzinfo) < now


class AvailabilityResolver:
    """Marks generated slots as available/unavailable and popular."""

    def resolve(
        self,
        slots: Iterable[TimeSlot],
        booked_slot_ids: Iterable[str],
        now: datetime,
        *,
        tz: tzinfo | None = None,
        popularity: PopularityHeuristic | None = None,
    ) -> list[TimeSlot]:
        booked = set(booked_slot_ids)
        resolved: list[TimeSlot] = []
        for slot in slots:
            available = slot.id not in booked and not is_past(slot, now, tz)
            popular = popularity.is_popular(slot) if popularity is not None else False
            resolved.append(
                slot.model_copy(update={"is_available": available, "is_popular": popular})
            )
        return resolved

    async def resolve_batch(
        self,
        court_ids: Iterable[str],
        load: Callable[[str], Awaitable[CourtData]],
        now: datetime,
        *,
        availability_date: date,
        tz: tzinfo | None = None,
    ) -> list[CourtAvailability]:
        """
        Resolve several courts at once.

        *load* returns ``(slots, booked_slot_ids, popularity)`` for a court.
        Each court is loaded and resolved inside its own error boundary, so
        a court with broken data yields an entry carrying ``error`` while
        every other court resolves normally.
        """
        results: list[CourtAvailability] = []
        for court_id in court_ids:
            try:
                slots, booked, popularity = await load(court_id)
                resolved = self.resolve(slots, booked, now, tz=tz, popularity=popularity)
            except AvailabilityFetchError as exc:
                logger.warning("Availability for court %s failed: %s", court_id, exc.message)
                results.append(
                    CourtAvailability(
                        court_id=court_id,
                        availability_date=availability_date,
                        error=exc.message,
                    )
                )
                continue
            except Exception:
                logger.exception("Availability for court %s failed", court_id)
                results.append(
                    CourtAvailability(
                        court_id=court_id,
                        availability_date=availability_date,
                        error="Failed to load availability",
                    )
                )
                continue
            results.append(
                CourtAvailability(
                    court_id=court_id,
                    court_name=resolved[0].court_name if resolved else None,
                    availability_date=availability_date,
                    time_slots=resolved,
                )
            )
        return results


# Global resolver instance
availability_resolver = AvailabilityResolver()
