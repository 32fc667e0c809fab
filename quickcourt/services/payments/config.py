from __future__ import annotations

CHARGES_PATH = "/charges"

DEFAULT_HEADERS: dict[str, str] = {
    "User-Agent": "QuickCourt/0.1",
    "Accept": "application/json",
}

# errorCode values the payment service uses for a refused charge. Anything
# else in a {success: false} body is treated as a gateway fault.
DECLINE_CODES = frozenset(
    {
        "PAYMENT_DECLINED",
        "CARD_DECLINED",
        "INSUFFICIENT_FUNDS",
        "BAD_REQUEST_ERROR",
        "SLOT_UNAVAILABLE",
    }
)

# HTTP statuses that mean "refused", not "broken".
DECLINE_STATUSES = frozenset({400, 402, 409, 422})

SANDBOX_REF_PREFIX = "pay_sandbox_"
