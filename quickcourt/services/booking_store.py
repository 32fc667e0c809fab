"""SQLite-backed implementation of the orchestrator's BookingStore protocol."""

from __future__ import annotations

from datetime import date

from quickcourt import db
from quickcourt.models import Booking, PayerInfo, TimeSlot


class SqliteBookingStore:
    async def booked_slot_ids(self, court_id: str, booking_date: date) -> set[str]:
        return await db.list_booked_slot_ids(court_id, booking_date)

    async def reserve(self, slot: TimeSlot, payer: PayerInfo, player_count: int) -> Booking | None:
        return await db.create_pending_booking(slot, payer, player_count)

    async def mark_confirmed(self, booking_id: str, payment_ref: str) -> Booking | None:
        return await db.confirm_booking(booking_id, payment_ref)

    async def mark_failed(self, booking_id: str, error_code: str) -> Booking | None:
        return await db.fail_booking(booking_id, error_code)
