"""
In-process payment gateway for local development and tests.

Charges always succeed unless the slot id was scripted to decline or to
fail with a gateway error. Every call is recorded so tests can assert on
ordering and on the absence of duplicate charges.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

from quickcourt.errors import PaymentDeclined, PaymentGatewayError
from quickcourt.models import PayerInfo, PaymentReceipt
from quickcourt.services.payments.config import SANDBOX_REF_PREFIX

logger = logging.getLogger(__name__)


@dataclass
class SandboxCharge:
    slot_id: str
    amount: Decimal
    payer_user_id: str
    payment_ref: str | None
    outcome: str  # "captured", "declined", "error"


class SandboxPaymentGateway:
    def __init__(
        self,
        *,
        decline: set[str] | None = None,
        fail: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.decline = set(decline or ())
        self.fail = set(fail or ())
        self.delay = delay
        self.charges: list[SandboxCharge] = []

    @property
    def charged_slot_ids(self) -> list[str]:
        return [c.slot_id for c in self.charges if c.outcome == "captured"]

    async def close(self) -> None:
        pass

    async def authorize_and_capture(
        self,
        slot_id: str,
        amount: Decimal,
        payer: PayerInfo,
    ) -> PaymentReceipt:
        if self.delay:
            await asyncio.sleep(self.delay)

        if slot_id in self.decline:
            self.charges.append(SandboxCharge(slot_id, amount, payer.user_id, None, "declined"))
            raise PaymentDeclined("Card declined (sandbox)", slot_id=slot_id)
        if slot_id in self.fail:
            self.charges.append(SandboxCharge(slot_id, amount, payer.user_id, None, "error"))
            raise PaymentGatewayError("Payment service unavailable (sandbox)", slot_id=slot_id)

        ref = f"{SANDBOX_REF_PREFIX}{uuid4().hex[:12]}"
        self.charges.append(SandboxCharge(slot_id, amount, payer.user_id, ref, "captured"))
        logger.info("Sandbox captured %s for slot %s (%s)", amount, slot_id, ref)
        return PaymentReceipt(success=True, payment_ref=ref)
