# bot/app/flows/client/my_bookings.py
"""
Flow для просмотра и отмены записей клиента.

Callbacks:
- mybk:cancel:{booking_id} — отмена своей записи
"""

import logging

from aiogram import F, Router
from aiogram.types import CallbackQuery, Message

from bot.app.flows.client.menu import client_menu
from bot.app.i18n.loader import DEFAULT_LANG, t
from bot.app.keyboards.client import cancel_bookings_inline
from bot.app.utils import api as api_mod
from bot.app.utils.api import api
from bot.app.utils.dates import format_dmy, weekday_full

logger = logging.getLogger(__name__)


def format_bookings_list(bookings: list[dict]) -> str:
    return "\n".join(
        f"📅 {format_dmy(b['slot_date'])} ⏰ {b['slot_time']}" for b in bookings
    )


async def show_my_bookings(message: Message, tg_id: int, lang: str = DEFAULT_LANG) -> None:
    bookings = await api.get_requester_bookings(tg_id)
    if not bookings:
        await message.answer(t("client:bookings:empty", lang))
        return
    await message.answer(t("client:bookings:list", lang, format_bookings_list(bookings)))


async def show_cancel_picker(message: Message, tg_id: int, lang: str = DEFAULT_LANG) -> None:
    bookings = await api.get_requester_bookings(tg_id)
    if not bookings:
        await message.answer(t("client:bookings:no_active", lang))
        return
    await message.answer(
        t("client:bookings:select_cancel", lang),
        reply_markup=cancel_bookings_inline(bookings),
    )


def setup():
    """Настройка роутера."""
    router = Router(name="client_my_bookings")

    @router.callback_query(F.data.startswith("mybk:cancel:"))
    async def handle_cancel(callback: CallbackQuery):
        lang = DEFAULT_LANG
        tg_id = callback.from_user.id
        booking_id = int(callback.data.split(":")[2])

        logger.info(f"[MY_BOOKINGS] Cancel booking={booking_id} by tg_id={tg_id}")
        result = await api.cancel_booking(booking_id, requester_id=tg_id)

        if result.status == api_mod.NOT_FOUND:
            await callback.message.edit_text(t("client:bookings:not_found", lang))
            await callback.answer()
            return

        if not result.ok:
            await callback.answer(t("common:error", lang), show_alert=True)
            return

        booking = result.data or {}
        await callback.message.edit_text(t("client:bookings:cancelled", lang))
        if booking.get("slot_date"):
            await callback.message.answer(
                t(
                    "client:bookings:cancelled_details",
                    lang,
                    format_dmy(booking["slot_date"]),
                    weekday_full(booking["slot_date"]),
                    booking["slot_time"],
                )
            )
        await client_menu.show_main(callback.message, lang)
        await callback.answer()

    return router
