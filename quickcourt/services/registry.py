"""
Engine registry – wires the booking engine together.

Holds the court catalog, the booking store, the availability service, the
payment gateway and the orchestrator. Initialized once at application
startup; routers look collaborators up here.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import HTTPException, status

from quickcourt.config import COURTS_FILE, PAYMENT_MODE
from quickcourt.models import Court
from quickcourt.services.booking_store import SqliteBookingStore
from quickcourt.services.cache import AvailabilityService
from quickcourt.services.catalog import CourtCatalog
from quickcourt.services.orchestrator import BookingOrchestrator
from quickcourt.services.payments.client import HttpPaymentGateway
from quickcourt.services.payments.gateway import PaymentGatewayAdapter
from quickcourt.services.payments.sandbox import SandboxPaymentGateway

logger = logging.getLogger(__name__)


def build_gateway(mode: str = PAYMENT_MODE) -> PaymentGatewayAdapter:
    if mode == "sandbox":
        return SandboxPaymentGateway()
    if mode == "http":
        return HttpPaymentGateway()
    raise ValueError(f"Unknown PAYMENT_MODE: {mode!r} (expected 'sandbox' or 'http')")


class EngineRegistry:
    """
    Registry of the booking engine's long-lived services.

    Anything passed to the constructor is used as-is; the rest is built
    from configuration in :meth:`start`.
    """

    def __init__(
        self,
        catalog: CourtCatalog | None = None,
        gateway: PaymentGatewayAdapter | None = None,
        store: SqliteBookingStore | None = None,
    ) -> None:
        self.catalog = catalog
        self.gateway = gateway
        self.store = store or SqliteBookingStore()
        self._availability: AvailabilityService | None = None
        self._orchestrator: BookingOrchestrator | None = None

    async def start(self) -> None:
        if self.catalog is None:
            path = Path(COURTS_FILE)
            if path.exists():
                self.catalog = CourtCatalog.from_yaml(path)
            else:
                logger.warning("Court catalog %s not found, starting with no courts", path)
                self.catalog = CourtCatalog()
        if self.gateway is None:
            self.gateway = build_gateway()

        self._availability = AvailabilityService(self.catalog, self.store)
        self._orchestrator = BookingOrchestrator(
            self.gateway,
            self.store,
            self.catalog,
            on_refresh=self._availability.refresh,
            clock=self._availability.now,
            tz=self._availability.tz,
        )
        logger.info(
            "Booking engine started: %d courts, payments via %s",
            len(self.catalog), type(self.gateway).__name__,
        )

    async def stop(self) -> None:
        """Close the payment gateway's HTTP client."""
        if self.gateway is not None:
            await self.gateway.close()

    @property
    def availability(self) -> AvailabilityService:
        assert self._availability is not None, "Registry not started, call start() first"
        return self._availability

    @property
    def orchestrator(self) -> BookingOrchestrator:
        assert self._orchestrator is not None, "Registry not started, call start() first"
        return self._orchestrator

    async def get_court_or_404(self, court_id: str) -> Court:
        court = await self.catalog.get_court(court_id) if self.catalog is not None else None
        if court is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Court {court_id} not found",
            )
        return court


# ── Singleton instance ────────────────────────────────────────────────────
registry = EngineRegistry()
