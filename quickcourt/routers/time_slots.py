"""
Time slot endpoints – availability across several courts.
"""

from datetime import date

from fastapi import APIRouter, Query

from quickcourt.dependencies import check_booking_date, parse_csv
from quickcourt.models import AvailabilityResponse
from quickcourt.services.registry import registry

router = APIRouter(prefix="/api", tags=["time-slots"])


@router.get(
    "/time-slots",
    response_model=AvailabilityResponse,
    operation_id="listTimeSlots",
    summary="Availability for several courts on one date",
)
async def list_time_slots(
    slot_date: date | None = Query(None, alias="date", description="Date (YYYY-MM-DD, defaults to today)"),
    venue_id: str | None = Query(None, description="Only courts of this venue"),
    court_ids: str | None = Query(None, description="Comma separated court ids"),
) -> AvailabilityResponse:
    day = check_booking_date(slot_date or registry.availability.today())
    catalog = registry.catalog

    courts = await catalog.list_courts(venue_id=venue_id, active=True)
    requested = parse_csv(court_ids)
    if requested is None:
        targets = [c.id for c in courts]
    else:
        # Unknown ids are kept so they come back with an error entry;
        # inactive courts and courts of other venues are left out.
        listed = {c.id for c in courts}
        targets = []
        for court_id in dict.fromkeys(requested):
            if court_id in listed or await catalog.get_court(court_id) is None:
                targets.append(court_id)

    results = await registry.availability.get_availability(day, targets)
    return AvailabilityResponse(availability_date=day, courts=results)
