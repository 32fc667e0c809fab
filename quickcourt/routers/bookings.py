"""
Booking endpoints – quote a selection, confirm it, look bookings up.

Slots are never trusted from the client: every selected id is regenerated
from the court catalog, so prices and capacities are the server's.
"""

import logging
from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, Query, Request, status

from quickcourt import db
from quickcourt.config import BOOKING_WINDOW_DAYS, CURRENCY
from quickcourt.errors import BookingError, SlotUnavailable
from quickcourt.models import (
    Booking,
    BookingStatus,
    ConfirmRequest,
    ConfirmResponse,
    OutcomeStatus,
    QuoteRequest,
    QuoteResponse,
    SlotOutcome,
    SlotRef,
    TimeSlot,
)
from quickcourt.rate_limit import STRICT, limiter
from quickcourt.services.orchestrator import ConfirmationReport
from quickcourt.services.registry import registry
from quickcourt.services.selection import SelectionState
from quickcourt.services.slot_generator import parse_slot_id, slot_generator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _distinct(items: list[SlotRef]) -> list[SlotRef]:
    seen: dict[str, SlotRef] = {}
    for item in items:
        seen.setdefault(item.time_slot_id, item)
    return list(seen.values())


async def _lookup_slot(item: SlotRef) -> TimeSlot:
    """Regenerate the slot behind *item*; SlotUnavailable if it cannot exist."""
    try:
        court_id, slot_date, _ = parse_slot_id(item.time_slot_id)
    except ValueError:
        raise SlotUnavailable(item.time_slot_id, "Unknown time slot") from None
    if court_id != item.court_id:
        raise SlotUnavailable(item.time_slot_id, "Time slot does not belong to this court")

    today = registry.availability.today()
    if slot_date < today or slot_date > today + timedelta(days=BOOKING_WINDOW_DAYS):
        raise SlotUnavailable(item.time_slot_id, "Date is outside the booking window")

    court = await registry.catalog.get_court(court_id)
    if court is None or not court.is_active:
        raise SlotUnavailable(item.time_slot_id, "Court is not accepting bookings")
    slot = slot_generator.find_slot(court, item.time_slot_id)
    if slot is None:
        raise SlotUnavailable(item.time_slot_id, "Unknown time slot")
    return slot


def _rejected(item: SlotRef, exc: BookingError) -> SlotOutcome:
    return SlotOutcome(
        slot_id=item.time_slot_id,
        court_id=item.court_id,
        status=OutcomeStatus.FAILED,
        error=exc.code,
        message=exc.message,
        retryable=exc.retryable,
    )


@router.post(
    "/quote",
    response_model=QuoteResponse,
    operation_id="quoteBooking",
    summary="Validate a selection against current availability and price it",
)
async def quote_booking(body: QuoteRequest) -> QuoteResponse:
    selection = SelectionState(player_count=body.player_count)
    for item in _distinct(body.items):
        slot = await _lookup_slot(item)
        availability = await registry.availability.get_court_availability(
            slot.court_id, slot.slot_date, fresh=True,
        )
        resolved = next((s for s in availability.time_slots if s.id == slot.id), None)
        if resolved is None:
            raise SlotUnavailable(slot.id)
        # toggle() enforces availability and capacity
        selection = selection.toggle(resolved)

    return QuoteResponse(
        slot_ids=selection.slot_ids,
        player_count=selection.player_count,
        max_players=selection.max_players(),
        total_price=selection.total_price(),
        currency=CURRENCY,
    )


@router.post(
    "/confirm",
    response_model=ConfirmResponse,
    operation_id="confirmBooking",
    summary="Book and pay for every selected slot, one by one",
)
@limiter.limit(STRICT)
async def confirm_booking(request: Request, body: ConfirmRequest) -> ConfirmResponse:
    items = _distinct(body.items)
    rejected: dict[str, SlotOutcome] = {}
    slots: list[TimeSlot] = []
    for item in items:
        try:
            slots.append(await _lookup_slot(item))
        except SlotUnavailable as exc:
            rejected[item.time_slot_id] = _rejected(item, exc)

    selection = SelectionState.from_slots(slots, player_count=body.player_count)
    report = await registry.orchestrator.confirm(selection, body.payer)

    by_slot = {o.slot_id: o for o in report.outcomes}
    by_slot.update(rejected)
    outcomes = [by_slot[item.time_slot_id] for item in items]

    merged = ConfirmationReport(outcomes=outcomes, remaining=report.remaining)
    if rejected:
        logger.info("Rejected %d unknown or closed slot(s) before payment", len(rejected))

    return ConfirmResponse(
        outcomes=outcomes,
        confirmed_count=merged.confirmed_count,
        failed_count=merged.failed_count,
        summary=merged.summary(),
    )


@router.get(
    "",
    response_model=list[Booking],
    operation_id="listBookings",
    summary="List bookings",
)
async def list_bookings(
    payer_user_id: str | None = Query(None, description="Filter by paying user"),
    court_id: str | None = Query(None, description="Filter by court"),
    booking_date: date | None = Query(None, alias="date", description="Filter by date"),
    booking_status: BookingStatus | None = Query(None, alias="status", description="Filter by status"),
) -> list[Booking]:
    return await db.list_bookings(
        payer_user_id=payer_user_id,
        court_id=court_id,
        booking_date=booking_date,
        status=booking_status,
    )


@router.get(
    "/{booking_id}",
    response_model=Booking,
    operation_id="getBooking",
    summary="Get a booking",
)
async def get_booking(booking_id: str) -> Booking:
    booking = await db.get_booking(booking_id)
    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Booking {booking_id} not found",
        )
    return booking
