"""
Callback handlers for buttons under admin booking notifications.

- bkn:cancel:{booking_id} — cancel the booking on behalf of the admin
- bkn:hide:{booking_id}   — delete the notification message
"""

import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import CallbackQuery

from bot.app.auth import is_admin
from bot.app.i18n.loader import DEFAULT_LANG, t
from bot.app.utils import api as api_mod
from bot.app.utils.api import api

logger = logging.getLogger(__name__)


def setup():
    router = Router(name="booking_notify")

    @router.callback_query(F.data.startswith("bkn:hide:"))
    async def handle_hide(callback: CallbackQuery):
        """Delete the notification message."""
        try:
            await callback.message.delete()
        except TelegramBadRequest:
            pass
        await callback.answer(t("common:hidden", DEFAULT_LANG))

    @router.callback_query(F.data.startswith("bkn:cancel:"))
    async def handle_cancel(callback: CallbackQuery):
        lang = DEFAULT_LANG
        admin_id = callback.from_user.id
        if not is_admin(admin_id):
            await callback.answer(t("common:no_access", lang))
            return

        booking_id = int(callback.data.split(":")[2])
        logger.info(f"[BKN] Cancel booking={booking_id} by admin={admin_id}")
        result = await api.cancel_booking(booking_id, requester_id=admin_id, as_admin=True)

        if result.status == api_mod.NOT_FOUND:
            await callback.answer(t("client:bookings:not_found", lang), show_alert=True)
            await callback.message.edit_reply_markup(reply_markup=None)
            return

        if not result.ok:
            await callback.answer(t("common:error", lang), show_alert=True)
            return

        await callback.message.edit_text(
            f"{callback.message.html_text}\n\n{t('notify:cancel_done', lang)}",
            reply_markup=None,
        )
        await callback.answer(t("notify:cancel_done", lang))

    return router
