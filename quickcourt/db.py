"""
SQLite database layer using aiosqlite.

Stores bookings, one row per slot. Tables are created automatically on
first connect. The database is the final arbiter of slot ownership: a
slot can have at most one PENDING or CONFIRMED booking at a time.
"""

from __future__ import annotations

import logging
import secrets
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

import aiosqlite

from quickcourt.config import DB_PATH, PENDING_HOLD_MINUTES
from quickcourt.models import (
    Booking,
    BookingStatus,
    PayerInfo,
    TimeSlot,
    weekday_name,
)

logger = logging.getLogger(__name__)

# ── Module-level connection ───────────────────────────────────────────────

_db: aiosqlite.Connection | None = None

_ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


async def init_db() -> None:
    """Open the database and create tables if they don't exist."""
    global _db
    db_path = Path(DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    _db = await aiosqlite.connect(str(db_path))
    _db.row_factory = aiosqlite.Row  # dict-like rows
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")

    await _db.executescript(_SCHEMA)
    await _db.commit()
    logger.info("Database initialized at %s", db_path)
    await expire_stale_pending()


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("Database connection closed")


def get_db() -> aiosqlite.Connection:
    """Return the active database connection (must call init_db first)."""
    assert _db is not None, "Database not initialized, call init_db() first"
    return _db


# ── Schema ────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS bookings (
    id                TEXT PRIMARY KEY,
    booking_reference TEXT NOT NULL UNIQUE,
    slot_id           TEXT NOT NULL,
    court_id          TEXT NOT NULL,
    booking_date      TEXT NOT NULL,   -- ISO date
    weekday           TEXT NOT NULL,   -- monday..sunday
    start_time        TEXT NOT NULL,   -- HH:MM
    end_time          TEXT NOT NULL,   -- HH:MM
    price             TEXT NOT NULL,   -- Decimal as string
    player_count      INTEGER NOT NULL,
    payer_user_id     TEXT NOT NULL,
    payer_name        TEXT NOT NULL,
    payer_email       TEXT NOT NULL,
    payer_contact     TEXT,
    payment_ref       TEXT,
    status            TEXT NOT NULL CHECK (status IN ('PENDING', 'CONFIRMED', 'FAILED')),
    error_code        TEXT,
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_bookings_active_slot
    ON bookings(slot_id) WHERE status IN ('PENDING', 'CONFIRMED');
CREATE INDEX IF NOT EXISTS idx_bookings_court_date ON bookings(court_id, booking_date);
CREATE INDEX IF NOT EXISTS idx_bookings_payer ON bookings(payer_user_id);
"""


# ── Helpers ───────────────────────────────────────────────────────────────


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _pending_cutoff() -> str:
    return (datetime.now(timezone.utc) - timedelta(minutes=PENDING_HOLD_MINUTES)).isoformat()


def _new_reference() -> str:
    return f"QC-{secrets.token_hex(4).upper()}"


def _row_to_booking(row: aiosqlite.Row) -> Booking:
    """Convert a database row to a Booking model."""
    return Booking(
        id=row["id"],
        booking_reference=row["booking_reference"],
        slot_id=row["slot_id"],
        court_id=row["court_id"],
        booking_date=date.fromisoformat(row["booking_date"]),
        start_time=row["start_time"],
        end_time=row["end_time"],
        price=Decimal(row["price"]),
        player_count=row["player_count"],
        payer_user_id=row["payer_user_id"],
        payer_name=row["payer_name"],
        payer_email=row["payer_email"],
        payer_contact=row["payer_contact"],
        payment_ref=row["payment_ref"],
        status=BookingStatus(row["status"]),
        error_code=row["error_code"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ══════════════════════════════════════════════════════════════════════════
#                        BOOKING REPOSITORY
# ══════════════════════════════════════════════════════════════════════════


async def create_pending_booking(
    slot: TimeSlot,
    payer: PayerInfo,
    player_count: int,
) -> Booking | None:
    """
    Reserve *slot* with a PENDING booking.

    Single-statement INSERT ... WHERE NOT EXISTS, so two sessions racing for
    the same slot cannot both win. Returns None when the slot already has an
    active booking.
    """
    await expire_stale_pending()
    db = get_db()
    booking_id = str(uuid4())
    now = _now_iso()

    cur = await db.execute(
        """
        INSERT INTO bookings (
            id, booking_reference, slot_id, court_id,
            booking_date, weekday, start_time, end_time,
            price, player_count,
            payer_user_id, payer_name, payer_email, payer_contact,
            payment_ref, status, error_code, created_at, updated_at
        )
        SELECT ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, NULL, 'PENDING', NULL, ?, ?
        WHERE NOT EXISTS (
            SELECT 1 FROM bookings
            WHERE slot_id = ? AND status IN ('PENDING', 'CONFIRMED')
        )
        """,
        (
            booking_id, _new_reference(), slot.id, slot.court_id,
            slot.slot_date.isoformat(), weekday_name(slot.slot_date),
            slot.start_time, slot.end_time,
            str(slot.price), player_count,
            payer.user_id, payer.name, payer.email, payer.contact,
            now, now,
            slot.id,
        ),
    )
    await db.commit()

    if cur.rowcount != 1:
        logger.info("Slot %s already has an active booking", slot.id)
        return None
    return await get_booking(booking_id)


async def confirm_booking(booking_id: str, payment_ref: str) -> Booking | None:
    """Mark a PENDING booking as CONFIRMED with its payment reference."""
    db = get_db()
    await db.execute(
        """
        UPDATE bookings
        SET status = 'CONFIRMED', payment_ref = ?, error_code = NULL, updated_at = ?
        WHERE id = ? AND status = 'PENDING'
        """,
        (payment_ref, _now_iso(), booking_id),
    )
    await db.commit()
    return await get_booking(booking_id)


async def fail_booking(booking_id: str, error_code: str) -> Booking | None:
    """Mark a PENDING booking as FAILED, releasing its slot."""
    db = get_db()
    await db.execute(
        """
        UPDATE bookings
        SET status = 'FAILED', error_code = ?, updated_at = ?
        WHERE id = ? AND status = 'PENDING'
        """,
        (error_code, _now_iso(), booking_id),
    )
    await db.commit()
    return await get_booking(booking_id)


async def expire_stale_pending() -> int:
    """
    Mark PENDING bookings older than the hold window as FAILED (``EXPIRED``),
    releasing their slots. Returns the number of bookings expired.
    """
    db = get_db()
    cur = await db.execute(
        """
        UPDATE bookings
        SET status = 'FAILED', error_code = 'EXPIRED', updated_at = ?
        WHERE status = 'PENDING' AND created_at < ?
        """,
        (_now_iso(), _pending_cutoff()),
    )
    await db.commit()
    if cur.rowcount:
        logger.warning("Expired %d stale pending booking(s)", cur.rowcount)
    return cur.rowcount


async def get_booking(booking_id: str) -> Booking | None:
    """Fetch a single booking by ID."""
    db = get_db()
    async with db.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,)) as cur:
        row = await cur.fetchone()
    return _row_to_booking(row) if row else None


async def list_bookings(
    *,
    payer_user_id: str | None = None,
    court_id: str | None = None,
    booking_date: date | None = None,
    status: BookingStatus | None = None,
) -> list[Booking]:
    """List bookings, newest first, with optional filters."""
    db = get_db()
    sql = "SELECT * FROM bookings WHERE 1 = 1"
    params: list = []

    if payer_user_id is not None:
        sql += " AND payer_user_id = ?"
        params.append(payer_user_id)
    if court_id is not None:
        sql += " AND court_id = ?"
        params.append(court_id)
    if booking_date is not None:
        sql += " AND booking_date = ?"
        params.append(booking_date.isoformat())
    if status is not None:
        sql += " AND status = ?"
        params.append(status.value)

    sql += " ORDER BY created_at DESC"

    async with db.execute(sql, params) as cur:
        rows = await cur.fetchall()
    return [_row_to_booking(r) for r in rows]


async def list_booked_slot_ids(court_id: str, booking_date: date) -> set[str]:
    """Slot ids on a court/date held by a CONFIRMED or unexpired PENDING booking."""
    db = get_db()
    async with db.execute(
        """
        SELECT slot_id FROM bookings
        WHERE court_id = ? AND booking_date = ? AND status IN (?, ?)
          AND NOT (status = 'PENDING' AND created_at < ?)
        """,
        (court_id, booking_date.isoformat(), *_ACTIVE_STATUSES, _pending_cutoff()),
    ) as cur:
        rows = await cur.fetchall()
    return {r["slot_id"] for r in rows}


async def booking_history(
    court_id: str,
    weekday: str,
    *,
    since: date,
    until: date,
) -> dict[str, int]:
    """
    Confirmed bookings per start time for one court and weekday between
    *since* (inclusive) and *until* (exclusive).
    """
    db = get_db()
    async with db.execute(
        """
        SELECT start_time, COUNT(*) AS n FROM bookings
        WHERE court_id = ? AND weekday = ? AND status = 'CONFIRMED'
          AND booking_date >= ? AND booking_date < ?
        GROUP BY start_time
        """,
        (court_id, weekday, since.isoformat(), until.isoformat()),
    ) as cur:
        rows = await cur.fetchall()
    return {r["start_time"]: r["n"] for r in rows}


def history_window(today: date, weeks: int) -> tuple[date, date]:
    """``(since, until)`` covering the *weeks* weeks before *today*."""
    return today - timedelta(weeks=weeks), today
