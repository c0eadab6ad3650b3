"""
Booking reminder checker.

Periodically checks for upcoming bookings and emits booking_reminder events
to notify clients before their appointment.

Window: [local now, local now + REMINDER_HOURS]; may cross midnight.
A booking is reminded once: the bot marks reminded_at after a successful
delivery. While a delivery is pending, a short in-flight key in Redis keeps
the next sweep from emitting the same reminder again; if delivery fails the
key expires and a later sweep retries.

Runs as an asyncio task in backend lifespan.
Uses synchronous DB and Redis (via asyncio.to_thread).
"""

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ..config import settings
from ..database import SessionLocal
from ..models.generated import Bookings
from ..redis_client import redis_client
from .booking_store import BookingStore
from .events import emit_event
from .slots import local_now

logger = logging.getLogger(__name__)

INFLIGHT_KEY_TTL = 300  # seconds, below the check interval


def reminder_window(now: datetime, hours: int) -> tuple[datetime, datetime]:
    return now, now + timedelta(hours=hours)


async def reminder_checker_loop() -> None:
    """
    Periodic loop that checks for bookings needing a reminder.

    For each confirmed booking with reminded_at unset whose slot starts
    within the window:
    - Emit booking_reminder event to events:p2p
    - Mark as in-flight in Redis to avoid duplicates until delivery
    """
    interval = settings.reminder_check_interval
    logger.info(f"reminder_checker_loop started (every {interval}s, {settings.reminder_hours}h window)")

    try:
        while True:
            try:
                await asyncio.to_thread(run_reminder_sweep)
            except asyncio.CancelledError:
                logger.info("reminder_checker_loop cancelled")
                raise
            except Exception:
                logger.exception("reminder_checker_loop error")

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        pass


def run_reminder_sweep(db: Session | None = None, now: datetime | None = None) -> list[int]:
    """One sweep (synchronous). Returns ids of bookings a reminder was emitted for."""
    if now is None:
        now = local_now(settings.tz_offset_minutes)
    start, end = reminder_window(now, settings.reminder_hours)

    own_session = db is None
    if own_session:
        db = SessionLocal()

    emitted: list[int] = []
    try:
        bookings = BookingStore(db).list_due_for_reminder(start, end)

        for booking in bookings:
            try:
                if _process_single_booking(booking):
                    emitted.append(booking.id)
            except Exception:
                logger.exception(
                    f"Error processing booking {booking.id} for reminder"
                )
    finally:
        if own_session:
            db.close()

    if emitted:
        logger.info(f"Reminder sweep {start:%d.%m %H:%M}–{end:%d.%m %H:%M}: {len(emitted)} emitted")
    return emitted


def _process_single_booking(booking: Bookings) -> bool:
    """Emit a reminder unless one is already in flight."""
    booking_id = booking.id

    inflight_key = f"bkremind:inflight:{booking_id}"
    if redis_client.exists(inflight_key):
        return False

    if not emit_event("booking_reminder", {"booking_id": booking_id}):
        return False

    redis_client.setex(inflight_key, INFLIGHT_KEY_TTL, "1")

    logger.info(
        f"booking_reminder emitted for booking={booking_id} "
        f"(slot {booking.slot.date} {booking.slot.time})"
    )
    return True
