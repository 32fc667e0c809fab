"""
In-memory collaborators for orchestrator and availability tests.

Nothing here touches SQLite or the network.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import uuid4

from quickcourt.models import Booking, BookingStatus, PayerInfo, TimeSlot


class InMemoryBookingStore:
    """
    Dict-backed implementation of the orchestrator's BookingStore protocol.

    ``booked`` pre-populates slot ids that belong to other sessions;
    ``broken`` makes reserve() raise for the listed slot ids.
    """

    def __init__(
        self,
        booked: set[str] | None = None,
        broken: set[str] | None = None,
    ) -> None:
        self.booked = set(booked or ())
        self.broken = set(broken or ())
        self.bookings: dict[str, Booking] = {}
        self.calls: list[tuple[str, str]] = []

    def _active_slot_ids(self) -> set[str]:
        active = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
        return {b.slot_id for b in self.bookings.values() if b.status in active}

    def by_status(self, status: BookingStatus) -> list[Booking]:
        return [b for b in self.bookings.values() if b.status == status]

    async def booked_slot_ids(self, court_id: str, booking_date: date) -> set[str]:
        self.calls.append(("booked_slot_ids", court_id))
        prefix = f"{court_id}-{booking_date.isoformat()}-"
        return {s for s in self.booked | self._active_slot_ids() if s.startswith(prefix)}

    async def reserve(self, slot: TimeSlot, payer: PayerInfo, player_count: int) -> Booking | None:
        self.calls.append(("reserve", slot.id))
        if slot.id in self.broken:
            raise RuntimeError("database is locked")
        if slot.id in self.booked or slot.id in self._active_slot_ids():
            return None
        now = datetime.now(timezone.utc)
        booking = Booking(
            id=str(uuid4()),
            booking_reference=f"QC-{len(self.bookings) + 1:08d}",
            slot_id=slot.id,
            court_id=slot.court_id,
            booking_date=slot.slot_date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            price=slot.price,
            player_count=player_count,
            payer_user_id=payer.user_id,
            payer_name=payer.name,
            payer_email=payer.email,
            payer_contact=payer.contact,
            status=BookingStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.bookings[booking.id] = booking
        return booking

    async def mark_confirmed(self, booking_id: str, payment_ref: str) -> Booking | None:
        self.calls.append(("mark_confirmed", booking_id))
        booking = self.bookings[booking_id].model_copy(
            update={"status": BookingStatus.CONFIRMED, "payment_ref": payment_ref},
        )
        self.bookings[booking_id] = booking
        return booking

    async def mark_failed(self, booking_id: str, error_code: str) -> Booking | None:
        self.calls.append(("mark_failed", booking_id))
        booking = self.bookings[booking_id].model_copy(
            update={"status": BookingStatus.FAILED, "error_code": error_code},
        )
        self.bookings[booking_id] = booking
        return booking


class RecordingRefresh:
    """Refresh hook that records calls; optionally fails for given courts."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = set(fail_for or ())
        self.calls: list[tuple[str, date]] = []

    async def __call__(self, court_id: str, slot_date: date) -> None:
        self.calls.append((court_id, slot_date))
        if court_id in self.fail_for:
            raise ConnectionError("availability backend unreachable")
