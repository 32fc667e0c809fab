"""
Booking engine error taxonomy.

Every error carries a stable machine-readable ``code`` that is reported in
slot outcomes and API error bodies.
"""

from __future__ import annotations

from typing import Any


class BookingError(Exception):
    """Base class for all booking engine errors."""

    code = "BOOKING_ERROR"
    retryable = False

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class SlotUnavailable(BookingError):
    """The slot is taken, in the past, unknown, or its court is deactivated."""

    code = "SLOT_UNAVAILABLE"

    def __init__(self, slot_id: str, reason: str = "Slot is no longer available") -> None:
        super().__init__(reason, slot_id=slot_id)
        self.slot_id = slot_id


class CapacityExceeded(BookingError):
    """Requested player count is larger than a court's capacity."""

    code = "CAPACITY_EXCEEDED"

    def __init__(self, requested: int, capacity: int, court_id: str | None = None) -> None:
        super().__init__(
            f"Player count {requested} exceeds court capacity ({capacity} max)",
            requested=requested,
            capacity=capacity,
            court_id=court_id,
        )
        self.requested = requested
        self.capacity = capacity
        self.court_id = court_id


class PaymentDeclined(BookingError):
    """The payment was refused. Terminal for the slot, never auto-retried."""

    code = "PAYMENT_DECLINED"


class PaymentGatewayError(BookingError):
    """Network or 5xx failure talking to the payment service."""

    code = "PAYMENT_GATEWAY_ERROR"
    retryable = True


class AvailabilityFetchError(BookingError):
    """Slots for one court/date could not be loaded."""

    code = "AVAILABILITY_FETCH_ERROR"
    retryable = True

    def __init__(self, court_id: str, message: str = "Failed to load availability") -> None:
        super().__init__(message, court_id=court_id)
        self.court_id = court_id
