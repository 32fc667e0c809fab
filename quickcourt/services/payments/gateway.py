"""
Abstract interface for payment gateway integrations.

The booking orchestrator only depends on this protocol, so the HTTP
integration and the in-process sandbox are interchangeable.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from quickcourt.models import PayerInfo, PaymentReceipt


class PaymentGatewayAdapter(Protocol):
    """Protocol that every payment integration must satisfy."""

    async def authorize_and_capture(
        self,
        slot_id: str,
        amount: Decimal,
        payer: PayerInfo,
    ) -> PaymentReceipt:
        """
        Charge *amount* for one slot.

        Raises ``PaymentDeclined`` when the charge is refused (terminal for
        the slot) and ``PaymentGatewayError`` on network or server failures
        (the user may retry).
        """
        ...

    async def close(self) -> None:
        """Release any underlying connections."""
        ...
