"""
Caching layer for court availability.

Generated slots and the popularity history for a ``(court_id, date)`` pair
are kept in memory for a short TTL. Booked slot ids are read from the store
and resolution against the clock happens on every read, so a cached entry
never hides another session's booking or makes a started slot look bookable.

Usage::

    service = AvailabilityService(catalog, store)
    court   = await service.get_court_availability("court-a", day)
    await service.refresh("court-a", day)   # after a booking attempt
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from quickcourt import db
from quickcourt.config import (
    AVAILABILITY_CACHE_TTL,
    POPULAR_HISTORY_WEEKS,
    venue_timezone,
)
from quickcourt.errors import AvailabilityFetchError
from quickcourt.models import CourtAvailability, TimeSlot, weekday_name
from quickcourt.services.availability import (
    AvailabilityResolver,
    CourtData,
    PopularityHeuristic,
    availability_resolver,
)
from quickcourt.services.catalog import CourtCatalog
from quickcourt.services.slot_generator import TimeSlotGenerator, slot_generator

logger = logging.getLogger(__name__)

PopularityLoader = Callable[[str, date, date], Awaitable[PopularityHeuristic]]


async def load_popularity(court_id: str, slot_date: date, today: date) -> PopularityHeuristic:
    """Popularity history for the slot date's weekday, from confirmed bookings."""
    weekday = weekday_name(slot_date)
    since, until = db.history_window(today, POPULAR_HISTORY_WEEKS)
    counts = await db.booking_history(court_id, weekday, since=since, until=until)
    return PopularityHeuristic({(court_id, weekday, start): n for start, n in counts.items()})


@dataclass
class _Entry:
    slots: list[TimeSlot]
    popularity: PopularityHeuristic | None
    stored_at: float


class SlotCache:
    """
    TTL store of per-court, per-date slots and popularity history.

    Entries are replaced whole, so readers never see a half-updated pair.
    """

    def __init__(
        self,
        ttl_seconds: float = AVAILABILITY_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, date], _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    # ── Write ──────────────────────────────────────────────────────────

    def put(
        self,
        court_id: str,
        slot_date: date,
        slots: Iterable[TimeSlot],
        popularity: PopularityHeuristic | None = None,
    ) -> None:
        now = self._clock()
        self._evict_expired(now)
        self._entries[(court_id, slot_date)] = _Entry(
            slots=list(slots),
            popularity=popularity,
            stored_at=now,
        )

    def invalidate(self, court_id: str, slot_date: date | None = None) -> None:
        """Drop one (court, date) entry, or every date for the court."""
        if slot_date is not None:
            self._entries.pop((court_id, slot_date), None)
            return
        for key in [k for k in self._entries if k[0] == court_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def _evict_expired(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if now - e.stored_at >= self._ttl]:
            del self._entries[key]

    # ── Read ───────────────────────────────────────────────────────────

    def get(
        self, court_id: str, slot_date: date,
    ) -> tuple[list[TimeSlot], PopularityHeuristic | None] | None:
        entry = self._entries.get((court_id, slot_date))
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self._ttl:
            del self._entries[(court_id, slot_date)]
            return None
        return entry.slots, entry.popularity


class AvailabilityService:
    """
    Cache-through availability for the API and the booking orchestrator.

    Combines the court catalog, the slot generator, booked slot ids from
    the booking store and the popularity history, then resolves the result
    against the current venue time.
    """

    def __init__(
        self,
        catalog: CourtCatalog,
        store: object,  # anything with async booked_slot_ids(court_id, date)
        *,
        generator: TimeSlotGenerator = slot_generator,
        resolver: AvailabilityResolver = availability_resolver,
        popularity: PopularityLoader | None = load_popularity,
        cache: SlotCache | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._generator = generator
        self._resolver = resolver
        self._popularity = popularity
        self._cache = cache if cache is not None else SlotCache()
        self._tz = tz or venue_timezone()
        self._clock = clock or (lambda: datetime.now(self._tz))

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    # ── Reads ──────────────────────────────────────────────────────────

    async def get_court_availability(
        self,
        court_id: str,
        slot_date: date,
        *,
        fresh: bool = False,
    ) -> CourtAvailability:
        """Resolved slots for one court; raises AvailabilityFetchError on failure."""
        if fresh:
            self._cache.invalidate(court_id, slot_date)
        slots, booked, popularity = await self._load(court_id, slot_date)
        resolved = self._resolver.resolve(
            slots, booked, self.now(), tz=self._tz, popularity=popularity,
        )
        court = await self._catalog.get_court(court_id)
        return CourtAvailability(
            court_id=court_id,
            court_name=court.name if court else None,
            availability_date=slot_date,
            time_slots=resolved,
        )

    async def get_availability(
        self,
        slot_date: date,
        court_ids: Iterable[str],
    ) -> list[CourtAvailability]:
        """Batch read; one court failing never affects the others."""

        async def load(court_id: str) -> CourtData:
            return await self._load(court_id, slot_date)

        return await self._resolver.resolve_batch(
            court_ids, load, self.now(), availability_date=slot_date, tz=self._tz,
        )

    # ── Refresh hook ───────────────────────────────────────────────────

    def invalidate(self, court_id: str, slot_date: date | None = None) -> None:
        self._cache.invalidate(court_id, slot_date)

    async def refresh(self, court_id: str, slot_date: date) -> None:
        """Drop the cached entry and reload it from the store."""
        self._cache.invalidate(court_id, slot_date)
        await self._load(court_id, slot_date)
        logger.debug("Refreshed availability for court %s on %s", court_id, slot_date)

    # ── Loading ────────────────────────────────────────────────────────

    async def _load(self, court_id: str, slot_date: date) -> CourtData:
        cached = self._cache.get(court_id, slot_date)
        if cached is None:
            court = await self._catalog.get_court(court_id)
            if court is None:
                raise AvailabilityFetchError(court_id, f"Court {court_id} not found")
            slots = self._generator.generate_slots(court, slot_date)
            popularity = await self._load_popularity(court_id, slot_date)
            self._cache.put(court_id, slot_date, slots, popularity)
        else:
            slots, popularity = cached

        # Always read through: bookings may come from other connections.
        try:
            booked = await self._store.booked_slot_ids(court_id, slot_date)
        except Exception as exc:
            raise AvailabilityFetchError(court_id) from exc
        return slots, frozenset(booked), popularity

    async def _load_popularity(self, court_id: str, slot_date: date) -> PopularityHeuristic | None:
        if self._popularity is None:
            return None
        try:
            return await self._popularity(court_id, slot_date, self.today())
        except Exception:
            logger.warning(
                "Popularity history for court %s unavailable", court_id, exc_info=True,
            )
            return None
