"""
bot/app/handlers/admin_reply.py

Роутинг Reply-кнопок админа.
"""

from aiogram import Router, F
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from bot.app.auth import is_admin
from bot.app.i18n.loader import t, DEFAULT_LANG
from bot.app.keyboards.admin import ADMIN_MENU_KEYS
from bot.app.flows.admin import add_slots as add_slots_flow
from bot.app.flows.admin import bookings_list
from bot.app.flows.admin import booking_notify
from bot.app.flows.admin import broadcast as broadcast_flow
from bot.app.flows.admin import delete_slots as delete_slots_flow

import logging
logger = logging.getLogger(__name__)

ADMIN_LABELS = [t(key, DEFAULT_LANG) for row in ADMIN_MENU_KEYS for key in row]


def setup(client_dispatch):
    """
    Настройка роутера админа.

    client_dispatch(message, state) -> bool: клиентские метки меню,
    на которые уходит всё, что не является админской меткой.
    """

    router = Router(name="admin_main")

    # Reply роутер (ПОСЛЕДНИЙ)
    reply_router = Router(name="admin_reply")

    async def dispatch_admin_label(message: Message, state: FSMContext) -> bool:
        """
        Метка меню → действие. Активная сессия завершается.
        Возвращает False, если текст не метка меню.
        """
        lang = DEFAULT_LANG
        text = message.text
        tg_id = message.from_user.id

        if text not in ADMIN_LABELS or not is_admin(tg_id):
            return await client_dispatch(message, state)

        await state.clear()
        logger.info(f"[ADMIN_REPLY] tg_id={tg_id}, label='{text}'")

        if text == t("admin:main:today", lang):
            await bookings_list.show_day(message, 0, lang)

        elif text == t("admin:main:tomorrow", lang):
            await bookings_list.show_day(message, 1, lang)

        elif text == t("admin:main:week", lang):
            await bookings_list.show_week(message, lang)

        elif text == t("admin:main:month", lang):
            await bookings_list.show_month(message, lang)

        elif text == t("admin:main:free", lang):
            await bookings_list.show_free_slots(message, lang)

        elif text == t("admin:main:stats", lang):
            await bookings_list.show_stats(message, lang)

        elif text == t("admin:main:add", lang):
            await add_slots_router.start_add_slots(message, state, lang)

        elif text == t("admin:main:delete", lang):
            await delete_slots_flow.show_picker(message, lang)

        elif text == t("admin:main:broadcast", lang):
            await broadcast_router.start_broadcast(message, state, lang)

        return True

    # FSM роутеры
    add_slots_router = add_slots_flow.setup(dispatch_admin_label)
    broadcast_router = broadcast_flow.setup(dispatch_admin_label)

    @reply_router.message(F.text.in_(ADMIN_LABELS))
    async def handle_admin_reply(message: Message, state: FSMContext):
        if not is_admin(message.from_user.id):
            return
        await dispatch_admin_label(message, state)

    # =====================================================
    # ПОРЯДОК: FSM → callbacks → Reply
    # =====================================================
    router.include_router(add_slots_router)
    router.include_router(broadcast_router)
    router.include_router(delete_slots_flow.setup())
    router.include_router(booking_notify.setup())
    router.include_router(reply_router)

    router.dispatch_label = dispatch_admin_label
    router.start_add_slots = add_slots_router.start_add_slots
    router.start_broadcast = broadcast_router.start_broadcast
    return router
