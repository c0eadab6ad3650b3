"""
Notification delivery over Telegram.

Sending never raises: failures are logged per recipient and reported as
False, so one blocked chat does not stop the others. A reminder counts as
sent (POST /bookings/{id}/reminded) only when at least one message went out.
"""

import logging
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import InlineKeyboardMarkup

from bot.app.i18n.loader import DEFAULT_LANG
from bot.app.keyboards.admin import booking_notify_inline
from bot.app.utils.api import api
from .formatters import format_event
from .recipients import resolve_recipients

logger = logging.getLogger(__name__)

_bot: Optional[Bot] = None


def set_bot(bot: Bot) -> None:
    """Bot instance used for sending; set once by bot.app.main."""
    global _bot
    _bot = bot


async def deliver_booking_event(event_type: str, data: dict) -> None:
    """
    1. Fetch booking data
    2. Resolve recipients (initiator excluded)
    3. Format per recipient role and send
    4. Reminder: mark as sent if delivered
    """
    booking_id = data["booking_id"]

    booking = await api.get_booking(booking_id)
    if not booking:
        logger.error(f"Booking not found: {booking_id}")
        return

    if event_type == "booking_reminder" and (
        booking.get("status") != "confirmed" or booking.get("reminded_at")
    ):
        logger.info(f"Reminder for booking={booking_id} no longer needed")
        return

    recipients = resolve_recipients(
        event_type,
        booking,
        initiated_by=data.get("initiated_by"),
        initiator_id=data.get("initiator_id"),
    )

    delivered = False
    for recipient in recipients:
        text = format_event(event_type, booking, recipient.role)
        keyboard = _build_keyboard(event_type, booking, recipient.role)
        if await _send_telegram(recipient.tg_id, text, keyboard):
            delivered = True

    if event_type == "booking_reminder":
        if delivered:
            if not await api.mark_reminded(booking_id):
                logger.error(f"Reminder sent but not recorded: booking={booking_id}")
        else:
            logger.warning(f"Reminder for booking={booking_id} not delivered, will retry")


def _build_keyboard(
    event_type: str,
    booking: dict,
    recipient_role: str,
    lang: str = DEFAULT_LANG,
) -> Optional[InlineKeyboardMarkup]:
    """Admins can cancel a fresh booking right from the notification."""
    if event_type == "booking_created" and recipient_role == "admin":
        return booking_notify_inline(booking["id"], lang)
    return None


async def _send_telegram(
    tg_id: int,
    text: str,
    keyboard: Optional[InlineKeyboardMarkup] = None,
    parse_mode: Optional[str] = "HTML",
) -> bool:
    if _bot is None:
        logger.error("Bot instance is not set, cannot deliver notifications")
        return False

    try:
        await _bot.send_message(
            chat_id=tg_id,
            text=text,
            reply_markup=keyboard,
            parse_mode=parse_mode,
        )
    except TelegramAPIError as e:
        logger.warning(f"Failed to send Telegram to tg_id={tg_id}: {e}")
        return False

    logger.info(f"Telegram notification sent to tg_id={tg_id}")
    return True


async def send_plain_text(tg_id: int, text: str) -> bool:
    """Broadcast text is sent as is, without HTML parsing."""
    return await _send_telegram(tg_id, text, parse_mode=None)
