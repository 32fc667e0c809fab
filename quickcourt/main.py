"""
QuickCourt API.

Court availability and multi-slot booking with per-slot payment.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from quickcourt.config import LOG_LEVEL
from quickcourt.db import close_db, init_db
from quickcourt.errors import (
    AvailabilityFetchError,
    BookingError,
    CapacityExceeded,
    PaymentDeclined,
    PaymentGatewayError,
    SlotUnavailable,
)
from quickcourt.models import Error
from quickcourt.rate_limit import limiter
from quickcourt.routers import bookings, courts, health, time_slots
from quickcourt.services.registry import registry

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Most specific class first: the first isinstance match wins.
_ERROR_STATUS: list[tuple[type[BookingError], int]] = [
    (SlotUnavailable, 409),
    (CapacityExceeded, 422),
    (PaymentDeclined, 402),
    (PaymentGatewayError, 502),
    (AvailabilityFetchError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await registry.start()
    logger.info("QuickCourt API started")
    yield
    await registry.stop()
    await close_db()
    logger.info("QuickCourt API stopped")


app = FastAPI(
    title="QuickCourt API",
    description="Court time-slot availability and multi-slot booking",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Rate limiting ──────────────────────────────────────────────────────────

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


# ── Booking errors ─────────────────────────────────────────────────────────


@app.exception_handler(BookingError)
async def _booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _ERROR_STATUS if isinstance(exc, cls)),
        400,
    )
    body = Error(error=exc.code, message=exc.message, details=exc.details or None)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


app.include_router(health.router)
app.include_router(courts.router)
app.include_router(time_slots.router)
app.include_router(bookings.router)
