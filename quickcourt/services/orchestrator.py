"""
Booking orchestration: turns a selection into paid bookings.

Slots are processed strictly one after another. For each slot:

1.  Re-validate against current server state (court active, capacity,
    not started, not booked elsewhere).
2.  Reserve it with a PENDING booking.
3.  Authorize and capture the payment.
4.  Mark the booking CONFIRMED (or FAILED, releasing the slot).
5.  Refresh availability for the slot's court and date.

A failure on one slot never stops the run; every distinct slot gets
exactly one outcome, so callers can always report "booked X of Y".
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Protocol

from quickcourt.errors import (
    BookingError,
    CapacityExceeded,
    PaymentDeclined,
    PaymentGatewayError,
    SlotUnavailable,
)
from quickcourt.models import (
    Booking,
    Court,
    OutcomeStatus,
    PayerInfo,
    SlotOutcome,
    TimeSlot,
)
from quickcourt.services.availability import is_past
from quickcourt.services.payments.gateway import PaymentGatewayAdapter
from quickcourt.services.selection import SelectionState

logger = logging.getLogger(__name__)

CANCELLED = "CANCELLED"
INTERNAL_ERROR = "INTERNAL_ERROR"

RefreshHook = Callable[[str, date], Awaitable[None]]


class CourtDirectory(Protocol):
    async def get_court(self, court_id: str) -> Court | None: ...


class BookingStore(Protocol):
    async def booked_slot_ids(self, court_id: str, booking_date: date) -> set[str]: ...

    async def reserve(self, slot: TimeSlot, payer: PayerInfo, player_count: int) -> Booking | None: ...

    async def mark_confirmed(self, booking_id: str, payment_ref: str) -> Booking | None: ...

    async def mark_failed(self, booking_id: str, error_code: str) -> Booking | None: ...


@dataclass
class ConfirmationReport:
    outcomes: list[SlotOutcome]
    remaining: SelectionState
    refresh_failures: list[tuple[str, date]] = field(default_factory=list)

    @property
    def confirmed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == OutcomeStatus.CONFIRMED)

    @property
    def failed_count(self) -> int:
        return len(self.outcomes) - self.confirmed_count

    def summary(self) -> str:
        if not self.outcomes:
            return "Nothing to book"
        total = len(self.outcomes)
        noun = "slot" if total == 1 else "slots"
        text = f"Booked {self.confirmed_count} of {total} {noun}"
        if self.failed_count:
            text += f", {self.failed_count} failed"
        return text


def _failed(slot: TimeSlot, error: BookingError) -> SlotOutcome:
    return SlotOutcome(
        slot_id=slot.id,
        court_id=slot.court_id,
        status=OutcomeStatus.FAILED,
        error=error.code,
        message=error.message,
        retryable=error.retryable,
    )


def _internal_failure(slot: TimeSlot) -> SlotOutcome:
    return SlotOutcome(
        slot_id=slot.id,
        court_id=slot.court_id,
        status=OutcomeStatus.FAILED,
        error=INTERNAL_ERROR,
        message="Booking could not be completed",
        retryable=True,
    )


def _cancelled(slot: TimeSlot) -> SlotOutcome:
    return SlotOutcome(
        slot_id=slot.id,
        court_id=slot.court_id,
        status=OutcomeStatus.FAILED,
        error=CANCELLED,
        message="Booking was cancelled before this slot was processed",
        retryable=True,
    )


class BookingOrchestrator:
    """Sequential per-slot booking + payment."""

    def __init__(
        self,
        gateway: PaymentGatewayAdapter,
        store: BookingStore,
        courts: CourtDirectory,
        *,
        on_refresh: RefreshHook | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._courts = courts
        self._on_refresh = on_refresh
        self._clock = clock or datetime.now
        self._tz = tz
        # Confirm runs are serialised; a repeated run sees its slots as booked.
        self._lock = asyncio.Lock()

    async def confirm(
        self,
        selection: SelectionState,
        payer: PayerInfo,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> ConfirmationReport:
        slots: list[TimeSlot] = []
        seen: set[str] = set()
        for slot in selection.slots:
            if slot.id not in seen:
                seen.add(slot.id)
                slots.append(slot)

        if not slots:
            return ConfirmationReport(outcomes=[], remaining=selection)

        async with self._lock:
            logger.info(
                "Confirming %d slot(s) for %s (%d players)",
                len(slots), payer.user_id, selection.player_count,
            )
            outcomes: list[SlotOutcome] = []
            refresh_failures: list[tuple[str, date]] = []
            remaining = selection

            for index, slot in enumerate(slots):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Confirm cancelled, %d slot(s) not processed", len(slots) - index)
                    outcomes.extend(_cancelled(s) for s in slots[index:])
                    break

                outcome = await self._process(slot, selection.player_count, payer)
                outcomes.append(outcome)
                # Booked or no longer bookable: either way it leaves the selection.
                if outcome.status == OutcomeStatus.CONFIRMED or outcome.error == SlotUnavailable.code:
                    remaining = remaining.remove(slot.id)

                if not await self._refresh(slot):
                    refresh_failures.append((slot.court_id, slot.slot_date))

            report = ConfirmationReport(
                outcomes=outcomes,
                remaining=remaining,
                refresh_failures=refresh_failures,
            )
            logger.info("%s for %s", report.summary(), payer.user_id)
            return report

    # ── Per-slot processing ────────────────────────────────────────────

    async def _process(self, slot: TimeSlot, player_count: int, payer: PayerInfo) -> SlotOutcome:
        try:
            booking = await self._reserve(slot, player_count, payer)
        except BookingError as exc:
            logger.info("Slot %s rejected: %s", slot.id, exc.message)
            return _failed(slot, exc)
        except Exception:
            logger.exception("Reserving slot %s failed", slot.id)
            return _internal_failure(slot)

        try:
            receipt = await self._gateway.authorize_and_capture(slot.id, slot.price, payer)
        except (PaymentDeclined, PaymentGatewayError) as exc:
            logger.info("Payment for slot %s failed: %s (%s)", slot.id, exc.message, exc.code)
            await self._release(booking, exc.code)
            return _failed(slot, exc)
        except asyncio.CancelledError:
            logger.warning("Confirm cancelled while charging slot %s", slot.id)
            await asyncio.shield(self._release(booking, CANCELLED))
            raise
        except Exception:
            logger.exception("Payment for slot %s raised unexpectedly", slot.id)
            await self._release(booking, INTERNAL_ERROR)
            return _internal_failure(slot)

        try:
            confirmed = await self._store.mark_confirmed(booking.id, receipt.payment_ref)
        except Exception:
            # The money moved; the row stays PENDING until its hold expires.
            logger.exception(
                "Slot %s was paid (%s) but the booking could not be confirmed",
                slot.id, receipt.payment_ref,
            )
            return _internal_failure(slot)

        reference = confirmed.booking_reference if confirmed else booking.booking_reference
        return SlotOutcome(
            slot_id=slot.id,
            court_id=slot.court_id,
            status=OutcomeStatus.CONFIRMED,
            booking_ref=reference,
            payment_ref=receipt.payment_ref,
        )

    async def _reserve(self, slot: TimeSlot, player_count: int, payer: PayerInfo) -> Booking:
        court = await self._courts.get_court(slot.court_id)
        if court is None or not court.is_active:
            raise SlotUnavailable(slot.id, "Court is not accepting bookings")
        # Capacity is re-checked here: it may have changed since selection.
        if player_count > court.capacity:
            raise CapacityExceeded(player_count, court.capacity, court.id)
        if is_past(slot, self._clock(), self._tz):
            raise SlotUnavailable(slot.id, "Slot has already started")

        booked = await self._store.booked_slot_ids(slot.court_id, slot.slot_date)
        if slot.id in booked:
            raise SlotUnavailable(slot.id, "Slot was booked by someone else")

        booking = await self._store.reserve(slot, payer, player_count)
        if booking is None:
            raise SlotUnavailable(slot.id, "Slot was booked by someone else")
        return booking

    async def _release(self, booking: Booking, error_code: str) -> None:
        try:
            await self._store.mark_failed(booking.id, error_code)
        except Exception:
            logger.exception("Could not release booking %s", booking.id)

    async def _refresh(self, slot: TimeSlot) -> bool:
        if self._on_refresh is None:
            return True
        try:
            await self._on_refresh(slot.court_id, slot.slot_date)
        except Exception:
            logger.warning(
                "Availability refresh for court %s on %s failed",
                slot.court_id, slot.slot_date, exc_info=True,
            )
            return False
        return True
