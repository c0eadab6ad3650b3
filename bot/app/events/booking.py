"""
Booking event handlers.

Handles: booking_created, booking_cancelled, booking_reminder.
"""

import logging

from . import register_event
from .delivery import deliver_booking_event

logger = logging.getLogger(__name__)


async def _deliver(event_type: str, data: dict) -> None:
    if not data.get("booking_id"):
        logger.error(f"{event_type} event without booking_id")
        return
    await deliver_booking_event(event_type, data)


@register_event("booking_created")
async def handle_booking_created(data: dict) -> None:
    """New booking: notify admins."""
    await _deliver("booking_created", data)


@register_event("booking_cancelled")
async def handle_booking_cancelled(data: dict) -> None:
    """Cancellation: notify the other side (admins or the customer)."""
    await _deliver("booking_cancelled", data)


@register_event("booking_reminder")
async def handle_booking_reminder(data: dict) -> None:
    """Reminder before the appointment; marked as sent only after delivery."""
    await _deliver("booking_reminder", data)
