"""Pydantic models for the QuickCourt booking engine."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from quickcourt.config import MAX_PLAYER_COUNT

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

_HHMM = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"
_HHMM_OR_MIDNIGHT = r"^(([0-1][0-9]|2[0-3]):[0-5][0-9]|24:00)$"


def weekday_name(day: date) -> str:
    """Lower-case English weekday name, e.g. ``"monday"``."""
    return WEEKDAYS[day.weekday()]


def to_minutes(hhmm: str) -> int:
    """Convert ``"HH:MM"`` to minutes past midnight (``"24:00"`` -> 1440)."""
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    """Inverse of :func:`to_minutes`."""
    return f"{total // 60:02d}:{total % 60:02d}"


# ── Courts ─────────────────────────────────────────────────────────────────


class DayHours(BaseModel):
    """Opening hours for one weekday."""
    is_open: bool = Field(..., description="Whether the court opens on this weekday")
    open_time: Optional[str] = Field(None, pattern=_HHMM, description="Opening time (HH:MM)")
    close_time: Optional[str] = Field(None, pattern=_HHMM_OR_MIDNIGHT, description="Closing time (HH:MM)")

    @model_validator(mode="after")
    def _check_window(self) -> "DayHours":
        if not self.is_open:
            return self
        if self.open_time is None or self.close_time is None:
            raise ValueError("open_time and close_time are required when is_open is true")
        if to_minutes(self.open_time) >= to_minutes(self.close_time):
            raise ValueError("open_time must be before close_time")
        return self


class ExcludedTime(BaseModel):
    """A recurring break during which no slots are generated."""
    name: str = Field(..., description="Break label, e.g. 'Lunch'")
    days: List[str] = Field(default_factory=lambda: list(WEEKDAYS), description="Weekdays the break applies to")
    start_time: str = Field(..., pattern=_HHMM, description="Break start (HH:MM)")
    end_time: str = Field(..., pattern=_HHMM_OR_MIDNIGHT, description="Break end (HH:MM)")

    @model_validator(mode="after")
    def _check_range(self) -> "ExcludedTime":
        self.days = [d.lower() for d in self.days]
        unknown = set(self.days) - set(WEEKDAYS)
        if unknown:
            raise ValueError(f"unknown weekdays: {sorted(unknown)}")
        if to_minutes(self.start_time) >= to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class Court(BaseModel):
    """A bookable court inside a venue."""
    id: str = Field(..., min_length=1, description="Unique court identifier")
    venue_id: str = Field(..., description="Owning venue identifier")
    name: str = Field(..., description="Court name")
    court_type: str = Field(default="Standard", description="Court type label")
    price_per_hour: Decimal = Field(..., gt=0, description="Hourly price")
    capacity: int = Field(default=10, gt=0, description="Maximum simultaneous players")
    operating_hours: Dict[str, DayHours] = Field(..., description="Opening hours per weekday")
    slot_duration: int = Field(default=60, gt=0, le=24 * 60, description="Slot length in minutes")
    excluded_times: List[ExcludedTime] = Field(default_factory=list, description="Recurring breaks")
    is_active: bool = Field(default=True, description="Inactive courts offer no slots")

    @model_validator(mode="after")
    def _normalise_weekdays(self) -> "Court":
        self.operating_hours = {day.lower(): hours for day, hours in self.operating_hours.items()}
        unknown = set(self.operating_hours) - set(WEEKDAYS)
        if unknown:
            raise ValueError(f"unknown weekdays: {sorted(unknown)}")
        return self


# ── Time slots ─────────────────────────────────────────────────────────────


class TimeSlot(BaseModel):
    """A fixed-duration bookable window for one court on one date."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Deterministic id: {court_id}-{date}-{start_time}")
    court_id: str = Field(..., description="Court identifier")
    court_name: str = Field(..., description="Court name")
    slot_date: date = Field(..., description="Calendar day of the slot")
    start_time: str = Field(..., description="Start time (HH:MM)")
    end_time: str = Field(..., description="End time (HH:MM)")
    duration_minutes: int = Field(..., description="Slot length in minutes")
    price: Decimal = Field(..., description="Price for the whole slot")
    capacity: int = Field(..., description="Court capacity when the slot was generated")
    is_available: bool = Field(default=True, description="Whether the slot can be booked")
    is_popular: bool = Field(default=False, description="Historically busy slot")

    def starts_at(self, tz=None) -> datetime:
        """Start as a datetime, naive unless *tz* is given."""
        minutes = to_minutes(self.start_time)
        return datetime(
            self.slot_date.year, self.slot_date.month, self.slot_date.day,
            minutes // 60, minutes % 60, tzinfo=tz,
        )


class CourtAvailability(BaseModel):
    """Resolved slots for one court on one date."""
    court_id: str = Field(..., description="Court identifier")
    court_name: Optional[str] = Field(None, description="Court name")
    availability_date: date = Field(..., description="Date the slots belong to")
    time_slots: List[TimeSlot] = Field(default_factory=list, description="Resolved time slots")
    error: Optional[str] = Field(None, description="Set when this court's slots failed to load")


class AvailabilityResponse(BaseModel):
    """Batch availability across courts for one date."""
    availability_date: date = Field(..., description="Date for availability")
    courts: List[CourtAvailability] = Field(..., description="Per-court availability")


# ── Payers and payments ────────────────────────────────────────────────────


class PayerInfo(BaseModel):
    """Who pays for a booking."""
    user_id: str = Field(..., min_length=1, description="Paying user identifier")
    name: str = Field(..., min_length=1, description="Payer display name")
    email: EmailStr = Field(..., description="Payer email")
    contact: Optional[str] = Field(None, description="Payer phone number")


class PaymentReceipt(BaseModel):
    """Successful authorize-and-capture result."""
    success: bool = Field(default=True)
    payment_ref: str = Field(..., description="Gateway payment reference")


# ── Bookings ───────────────────────────────────────────────────────────────


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class Booking(BaseModel):
    """A persisted booking, one per slot."""
    id: str = Field(..., description="Booking identifier")
    booking_reference: str = Field(..., description="Human-friendly reference")
    slot_id: str = Field(..., description="Booked time slot id")
    court_id: str = Field(..., description="Court identifier")
    booking_date: date = Field(..., description="Booking date")
    start_time: str = Field(..., description="Start time (HH:MM)")
    end_time: str = Field(..., description="End time (HH:MM)")
    price: Decimal = Field(..., description="Charged amount")
    player_count: int = Field(..., description="Number of players")
    payer_user_id: str = Field(..., description="Paying user")
    payer_name: str = Field(..., description="Payer name")
    payer_email: str = Field(..., description="Payer email")
    payer_contact: Optional[str] = Field(None, description="Payer phone number")
    payment_ref: Optional[str] = Field(None, description="Gateway payment reference")
    status: BookingStatus = Field(..., description="Booking status")
    error_code: Optional[str] = Field(None, description="Failure code when status is FAILED")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class OutcomeStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class SlotOutcome(BaseModel):
    """Final status of one slot in a confirm run."""
    slot_id: str = Field(..., description="Time slot id")
    court_id: str = Field(..., description="Court identifier")
    status: OutcomeStatus = Field(..., description="CONFIRMED or FAILED")
    booking_ref: Optional[str] = Field(None, description="Booking reference on success")
    payment_ref: Optional[str] = Field(None, description="Payment reference on success")
    error: Optional[str] = Field(None, description="Error code on failure")
    message: Optional[str] = Field(None, description="Human readable failure reason")
    retryable: bool = Field(default=False, description="Whether the user may retry this slot")


# ── API request / response bodies ──────────────────────────────────────────


class SlotRef(BaseModel):
    """A selected slot as sent by the client."""
    time_slot_id: str = Field(..., min_length=1, description="Time slot id")
    court_id: str = Field(..., min_length=1, description="Court identifier")


class QuoteRequest(BaseModel):
    """Selection to validate and price."""
    items: List[SlotRef] = Field(..., min_length=1, description="Selected slots")
    player_count: int = Field(default=1, ge=1, le=MAX_PLAYER_COUNT, description="Number of players")


class QuoteResponse(BaseModel):
    """Validated selection with aggregate price."""
    slot_ids: List[str] = Field(..., description="Distinct selected slot ids")
    player_count: int = Field(..., description="Number of players")
    max_players: int = Field(..., description="Smallest capacity among selected courts")
    total_price: Decimal = Field(..., description="Sum of per-slot prices")
    currency: str = Field(..., description="Currency code")


class ConfirmRequest(BaseModel):
    """Selection to turn into paid bookings."""
    items: List[SlotRef] = Field(..., min_length=1, description="Selected slots")
    player_count: int = Field(default=1, ge=1, le=MAX_PLAYER_COUNT, description="Number of players")
    payer: PayerInfo = Field(..., description="Paying user")


class ConfirmResponse(BaseModel):
    """Per-slot outcomes of a confirm run."""
    outcomes: List[SlotOutcome] = Field(..., description="One outcome per distinct slot")
    confirmed_count: int = Field(..., description="Slots booked")
    failed_count: int = Field(..., description="Slots not booked")
    summary: str = Field(..., description="e.g. 'Booked 3 of 4 slots'")


class PaginationMeta(BaseModel):
    """Pagination details."""
    page: int
    page_size: int
    total_items: int
    total_pages: int


class CourtListResponse(BaseModel):
    """Paginated courts."""
    items: List[Court]
    meta: PaginationMeta


class Error(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Health status")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(..., description="Current timestamp")
