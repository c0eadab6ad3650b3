"""
bot/app/flows/admin/broadcast.py

Рассылка всем, кто когда-либо записывался.

Ожидание текста — отдельное состояние AdminBroadcast.text (истекает вместе
с FSM-сессией). Метки меню текстом рассылки не считаются: «❌ Отменить
рассылку» выходит, любая другая метка выходит и передаётся меню.
"""

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup
from aiogram.types import Message

from bot.app.flows.admin.menu import admin_menu
from bot.app.i18n.loader import DEFAULT_LANG, t
from bot.app.keyboards.admin import ADMIN_MENU_KEYS, broadcast_reply
from bot.app.keyboards.client import CLIENT_MENU_KEYS
from bot.app.utils.api import api

logger = logging.getLogger(__name__)


RESERVED_LABELS = {
    t(key, DEFAULT_LANG)
    for key in [*CLIENT_MENU_KEYS, *(k for row in ADMIN_MENU_KEYS for k in row)]
}


class AdminBroadcast(StatesGroup):
    text = State()


async def send_broadcast(message: Message, text: str, lang: str = DEFAULT_LANG) -> None:
    """Постановка рассылки в очередь и отчёт админу."""
    text = text.strip()
    if not text:
        await message.answer(t("admin:broadcast:empty", lang))
        return

    recipients = await api.broadcast(text)
    if recipients is None:
        await message.answer(t("common:error", lang))
    elif recipients == 0:
        await message.answer(t("admin:broadcast:no_users", lang))
    else:
        logger.info(f"[BROADCAST] Queued for {recipients} recipients")
        await message.answer(t("admin:broadcast:sent", lang, recipients))


def setup(forward_menu_label):
    router = Router(name="admin_broadcast")

    async def start_broadcast(message: Message, state: FSMContext, lang: str = DEFAULT_LANG):
        logger.info(f"[BROADCAST] Waiting for text from tg_id={message.chat.id}")
        await state.clear()
        await state.set_state(AdminBroadcast.text)
        await state.update_data(lang=lang)
        await message.answer(t("admin:broadcast:enter", lang), reply_markup=broadcast_reply(lang))

    @router.message(AdminBroadcast.text, F.text == t("admin:broadcast:cancel", DEFAULT_LANG))
    async def handle_cancel(message: Message, state: FSMContext):
        data = await state.get_data()
        await state.clear()
        logger.info("[BROADCAST] Cancelled")
        lang = data.get("lang", DEFAULT_LANG)
        await admin_menu.show_main(message, lang, t("admin:broadcast:cancelled", lang))

    @router.message(AdminBroadcast.text)
    async def handle_text(message: Message, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)

        if message.text in RESERVED_LABELS:
            logger.info(f"[BROADCAST] Aborted by menu label '{message.text}'")
            await state.clear()
            await forward_menu_label(message, state)
            return

        text = (message.text or "").strip()
        if not text:
            await message.answer(t("admin:broadcast:empty", lang))
            return

        await state.clear()
        await send_broadcast(message, text, lang)
        await admin_menu.show_main(message, lang)

    router.start_broadcast = start_broadcast
    return router
