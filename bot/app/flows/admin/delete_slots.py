"""
bot/app/flows/admin/delete_slots.py

Удаление слотов (админ): пикер по дням, по три времени в ряд.

Callbacks:
- delslot:del:{slot_id}   — удалить свободный слот
- delslot:booked:{id}     — забронированный слот (удаление запрещено)
- delslot:remaining       — оставшиеся слоты списком
- delslot:back            — снова пикер
- delslot:ignore          — заголовок дня
"""

import logging
from itertools import groupby

from aiogram import F, Router
from aiogram.types import CallbackQuery, Message

from bot.app.auth import is_admin
from bot.app.i18n.loader import DEFAULT_LANG, t
from bot.app.keyboards.admin import after_delete_inline, back_to_delete_inline, delete_slots_inline
from bot.app.utils import api as api_mod
from bot.app.utils.api import api
from bot.app.utils.dates import format_dmy, parse_date, weekday_full

logger = logging.getLogger(__name__)


def remaining_text(slots: list[dict]) -> str:
    blocks = []
    for day, day_slots in groupby(slots, key=lambda s: s["date"]):
        times = ", ".join(
            f"{s['time']}🔒" if s["is_booked"] else s["time"] for s in day_slots
        )
        blocks.append(f"📅 {format_dmy(day)} ({weekday_full(day)}): {times}")
    return "\n".join(blocks)


async def show_picker(message: Message, lang: str = DEFAULT_LANG, edit: bool = False) -> None:
    slots = await api.get_slots(available_only=False)
    if not slots:
        text, kb = t("admin:delete:empty", lang), None
    else:
        text, kb = t("admin:delete:select", lang), delete_slots_inline(slots, lang)

    if edit:
        await message.edit_text(text, reply_markup=kb)
    else:
        await message.answer(text, reply_markup=kb)


async def delete_by_args(message: Message, args: list[str], lang: str = DEFAULT_LANG) -> None:
    """/deleteslot YYYY-MM-DD HH:MM"""
    if len(args) != 2:
        await message.answer(t("admin:delete:usage", lang))
        return

    date_str, time_str = args
    try:
        parse_date(date_str)
    except ValueError:
        await message.answer(t("admin:delete:usage", lang))
        return

    result = await api.delete_slot_at(date_str, time_str)
    if result.ok:
        logger.info(f"[DELSLOT] Removed {date_str} {time_str}")
        await message.answer(t("admin:delete:short_done", lang))
    elif result.status == api_mod.NOT_FOUND:
        await message.answer(t("admin:delete:not_found", lang))
    elif result.status == api_mod.UNAVAILABLE:
        await message.answer(t("admin:delete:booked", lang))
    elif result.status == api_mod.INVALID:
        await message.answer(t("admin:delete:usage", lang))
    else:
        await message.answer(t("common:error", lang))


def setup():
    router = Router(name="admin_delete_slots")

    @router.callback_query(F.data.startswith("delslot:"))
    async def handle_delslot(callback: CallbackQuery):
        lang = DEFAULT_LANG
        if not is_admin(callback.from_user.id):
            await callback.answer(t("common:no_access", lang))
            return

        parts = callback.data.split(":")
        action = parts[1]

        if action == "ignore":
            await callback.answer()

        elif action == "booked":
            await callback.answer(t("admin:delete:booked", lang), show_alert=True)

        elif action == "del":
            await delete_slot(callback, int(parts[2]), lang)

        elif action == "remaining":
            slots = await api.get_slots(available_only=False)
            if not slots:
                await callback.message.edit_text(t("admin:delete:none_left", lang))
            else:
                await callback.message.edit_text(
                    t("admin:delete:remaining", lang, remaining_text(slots)),
                    reply_markup=back_to_delete_inline(lang),
                )
            await callback.answer()

        elif action == "back":
            await show_picker(callback.message, lang, edit=True)
            await callback.answer()

        else:
            await callback.answer()

    async def delete_slot(callback: CallbackQuery, slot_id: int, lang: str):
        result = await api.delete_slot(slot_id)

        if result.status == api_mod.NOT_FOUND:
            await callback.answer(t("admin:delete:not_found", lang))
            await callback.message.edit_text(t("admin:delete:not_found", lang))
            return

        if result.status == api_mod.UNAVAILABLE:
            await callback.answer(t("admin:delete:booked", lang), show_alert=True)
            await show_picker(callback.message, lang, edit=True)
            return

        if not result.ok or not result.data:
            await callback.answer(t("common:error", lang), show_alert=True)
            return

        removed = result.data
        logger.info(f"[DELSLOT] Removed slot={slot_id} ({removed['date']} {removed['time']})")
        await callback.answer(t("admin:delete:short_done", lang))
        await callback.message.edit_text(
            t("admin:delete:done", lang, format_dmy(removed["date"]), weekday_full(removed["date"]), removed["time"]),
            reply_markup=after_delete_inline(lang),
        )

    return router
