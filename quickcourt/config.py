"""
Application configuration from environment variables.

All settings have sensible defaults for local development.
A .env file in the project root is loaded automatically (if present).
"""

from __future__ import annotations

import os
from datetime import timedelta, timezone
from pathlib import Path

from dotenv import load_dotenv

# Load .env file before reading any env vars
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

# ── Environment ───────────────────────────────────────────────────────────

ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").upper()

# ── Paths ─────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"

# SQLite database file
DB_PATH: str = os.getenv("DB_PATH", str(DATA_DIR / "quickcourt.db"))

# YAML court catalog
COURTS_FILE: str = os.getenv("COURTS_FILE", str(DATA_DIR / "courts.yaml"))

# ── Pricing ───────────────────────────────────────────────────────────────

CURRENCY: str = os.getenv("CURRENCY", "INR")

# Each slot price is rounded to this many decimal places (ROUND_HALF_UP).
PRICE_DECIMALS: int = int(os.getenv("PRICE_DECIMALS", "2"))

# ── Venue clock ───────────────────────────────────────────────────────────

# Operating hours are wall-clock times at the venue. Defaults to IST.
VENUE_UTC_OFFSET_MINUTES: int = int(os.getenv("VENUE_UTC_OFFSET_MINUTES", "330"))


def venue_timezone() -> timezone:
    """Fixed-offset timezone the venues' operating hours are expressed in."""
    return timezone(timedelta(minutes=VENUE_UTC_OFFSET_MINUTES))


# ── Booking rules ─────────────────────────────────────────────────────────

# How many days ahead a slot can be booked.
BOOKING_WINDOW_DAYS: int = int(os.getenv("BOOKING_WINDOW_DAYS", "30"))

# Upper bound accepted for player_count on API input.
MAX_PLAYER_COUNT: int = int(os.getenv("MAX_PLAYER_COUNT", "50"))

# Minutes a PENDING booking holds its slot; older holds are expired.
PENDING_HOLD_MINUTES: int = int(os.getenv("PENDING_HOLD_MINUTES", "15"))

# ── Popularity heuristic ──────────────────────────────────────────────────

# A (court, weekday, start time) is "popular" once it has at least this many
# confirmed bookings within the history window.
POPULAR_MIN_BOOKINGS: int = int(os.getenv("POPULAR_MIN_BOOKINGS", "3"))
POPULAR_HISTORY_WEEKS: int = int(os.getenv("POPULAR_HISTORY_WEEKS", "8"))

# ── Availability cache ────────────────────────────────────────────────────

# Seconds generated slots and popularity history for a (court, date) stay cached.
AVAILABILITY_CACHE_TTL: float = float(os.getenv("AVAILABILITY_CACHE_TTL", "300"))

# ── Payments ──────────────────────────────────────────────────────────────

# "sandbox" charges nothing and always succeeds unless scripted otherwise;
# "http" talks to the payment service at PAYMENT_API_URL.
PAYMENT_MODE: str = os.getenv("PAYMENT_MODE", "sandbox").lower()
PAYMENT_API_URL: str = os.getenv("PAYMENT_API_URL", "http://localhost:8100/api/payments")
PAYMENT_API_KEY: str = os.getenv("PAYMENT_API_KEY", "")
PAYMENT_TIMEOUT: float = float(os.getenv("PAYMENT_TIMEOUT", "15"))
