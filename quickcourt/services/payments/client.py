from __future__ import annotations

import logging
from decimal import Decimal
from uuid import NAMESPACE_URL, uuid5

import httpx

from quickcourt.config import CURRENCY, PAYMENT_API_KEY, PAYMENT_API_URL, PAYMENT_TIMEOUT
from quickcourt.errors import PaymentDeclined, PaymentGatewayError
from quickcourt.models import PayerInfo, PaymentReceipt
from quickcourt.services.payments.config import (
    CHARGES_PATH,
    DECLINE_CODES,
    DECLINE_STATUSES,
    DEFAULT_HEADERS,
)
from quickcourt.services.slot_generator import parse_slot_id

logger = logging.getLogger(__name__)


def idempotency_key(slot_id: str, payer: PayerInfo) -> str:
    """Stable key so the payment service can drop duplicate charges."""
    return str(uuid5(NAMESPACE_URL, f"quickcourt:{payer.user_id}:{slot_id}"))


class HttpPaymentGateway:
    """Charges slots through the payment service's JSON API."""

    def __init__(
        self,
        base_url: str = PAYMENT_API_URL,
        *,
        api_key: str = PAYMENT_API_KEY,
        timeout: float = PAYMENT_TIMEOUT,
        currency: str = CURRENCY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = dict(DEFAULT_HEADERS)
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._currency = currency

    async def close(self) -> None:
        await self._client.aclose()

    async def authorize_and_capture(
        self,
        slot_id: str,
        amount: Decimal,
        payer: PayerInfo,
    ) -> PaymentReceipt:
        try:
            court_id, _, _ = parse_slot_id(slot_id)
        except ValueError:
            court_id = None
        payload = {
            "timeSlotId": slot_id,
            "courtId": court_id,
            "amount": str(amount),
            "currency": self._currency,
            "payerName": payer.name,
            "payerEmail": payer.email,
            "payerContact": payer.contact,
        }
        headers = {"Idempotency-Key": idempotency_key(slot_id, payer)}

        logger.debug("Charging %s %s for slot %s", amount, self._currency, slot_id)
        try:
            resp = await self._client.post(CHARGES_PATH, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Payment request for slot %s failed: %s", slot_id, exc)
            raise PaymentGatewayError(
                "Payment service unreachable", slot_id=slot_id,
            ) from exc

        return self._parse_response(slot_id, resp)

    @staticmethod
    def _parse_response(slot_id: str, resp: httpx.Response) -> PaymentReceipt:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        error_code = body.get("errorCode") or body.get("error_code")
        message = body.get("error") or body.get("message")

        if resp.status_code >= 500:
            raise PaymentGatewayError(
                message or f"Payment service error (HTTP {resp.status_code})",
                slot_id=slot_id,
                status_code=resp.status_code,
            )
        if resp.status_code in DECLINE_STATUSES:
            raise PaymentDeclined(
                message or "Payment was declined",
                slot_id=slot_id,
                error_code=error_code,
            )
        if not resp.is_success:
            raise PaymentGatewayError(
                message or f"Unexpected payment response (HTTP {resp.status_code})",
                slot_id=slot_id,
                status_code=resp.status_code,
            )

        if body.get("success") and body.get("paymentRef"):
            logger.info("Payment %s captured for slot %s", body["paymentRef"], slot_id)
            return PaymentReceipt(success=True, payment_ref=body["paymentRef"])

        if error_code in DECLINE_CODES:
            raise PaymentDeclined(
                message or "Payment was declined", slot_id=slot_id, error_code=error_code,
            )
        raise PaymentGatewayError(
            message or "Malformed payment response", slot_id=slot_id, error_code=error_code,
        )
