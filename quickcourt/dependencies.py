from datetime import date, timedelta
from typing import Annotated

from fastapi import HTTPException, Query, status

from quickcourt.config import BOOKING_WINDOW_DAYS
from quickcourt.models import PaginationMeta
from quickcourt.services.registry import registry

# ── Pagination ─────────────────────────────────────────────────────────────


class PaginationParams:
    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
        page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
    ):
        self.page = page
        self.page_size = page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(items: list, pagination: PaginationParams, response_cls: type):
    total = len(items)
    start = pagination.offset
    end = start + pagination.page_size
    return response_cls(
        items=items[start:end],
        meta=PaginationMeta(
            page=pagination.page,
            page_size=pagination.page_size,
            total_items=total,
            total_pages=max(1, -(-total // pagination.page_size)),
        ),
    )


# ── Booking window ─────────────────────────────────────────────────────────


def check_booking_date(day: date) -> date:
    """Reject dates before today or past the booking window (venue time)."""
    today = registry.availability.today()
    last = today + timedelta(days=BOOKING_WINDOW_DAYS)
    if day < today or day > last:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Date must be between {today.isoformat()} and {last.isoformat()}",
        )
    return day


def parse_csv(value: str | None) -> list[str] | None:
    """Split a comma separated query value, ignoring blanks."""
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]
