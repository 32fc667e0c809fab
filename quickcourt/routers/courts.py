from datetime import date

from fastapi import APIRouter, Depends, Query

from quickcourt.dependencies import PaginationParams, check_booking_date, paginate
from quickcourt.models import Court, CourtAvailability, CourtListResponse
from quickcourt.services.registry import registry

router = APIRouter(prefix="/api/courts", tags=["courts"])


@router.get(
    "",
    response_model=CourtListResponse,
    operation_id="listCourts",
    summary="List courts",
)
async def list_courts(
    pagination: PaginationParams = Depends(PaginationParams),
    venue_id: str | None = Query(None, description="Filter by venue"),
    court_type: str | None = Query(None, description="Filter by court type (case-insensitive)"),
    active: bool | None = Query(None, description="Filter by active flag"),
) -> CourtListResponse:
    courts = await registry.catalog.list_courts(
        venue_id=venue_id, court_type=court_type, active=active,
    )
    return paginate(courts, pagination, CourtListResponse)


@router.get(
    "/{court_id}",
    response_model=Court,
    operation_id="getCourt",
    summary="Get details of a specific court",
)
async def get_court(court_id: str) -> Court:
    return await registry.get_court_or_404(court_id)


@router.get(
    "/{court_id}/time-slots",
    response_model=CourtAvailability,
    operation_id="getCourtTimeSlots",
    summary="Time slots with availability for one court on one date",
)
async def get_court_time_slots(
    court_id: str,
    slot_date: date | None = Query(None, alias="date", description="Date (YYYY-MM-DD, defaults to today)"),
) -> CourtAvailability:
    await registry.get_court_or_404(court_id)
    day = check_booking_date(slot_date or registry.availability.today())
    return await registry.availability.get_court_availability(court_id, day)
