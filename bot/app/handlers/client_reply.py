"""
bot/app/handlers/client_reply.py

Роутинг Reply-кнопок клиента.
"""

from aiogram import Router, F
from aiogram.types import Message
from aiogram.fsm.context import FSMContext

from bot.app.i18n.loader import t, DEFAULT_LANG
from bot.app.flows.client.menu import client_menu
from bot.app.flows.client import booking as booking_flow
from bot.app.flows.client import my_bookings as my_bookings_flow
from bot.app.keyboards.client import CLIENT_MENU_KEYS

import logging
logger = logging.getLogger(__name__)

CLIENT_LABELS = [t(key, DEFAULT_LANG) for key in CLIENT_MENU_KEYS]


def setup():
    """Настройка роутера клиента."""

    router = Router(name="client_main")

    # Reply роутер (ПОСЛЕДНИЙ)
    reply_router = Router(name="client_reply")

    async def dispatch_label(message: Message, state: FSMContext) -> bool:
        """
        Пункт главного меню клиента → действие.

        Активная сессия заменяется. Возвращает False, если текст не метка меню.
        """
        lang = DEFAULT_LANG
        text = message.text
        tg_id = message.from_user.id

        if text == t("client:main:book", lang):
            await booking_router.start_booking(message, state, lang)

        elif text == t("client:main:bookings", lang):
            await state.clear()
            await my_bookings_flow.show_my_bookings(message, tg_id, lang)

        elif text == t("client:main:cancel", lang):
            await state.clear()
            await my_bookings_flow.show_cancel_picker(message, tg_id, lang)

        elif text == t("client:main:help", lang):
            await client_menu.show_help(message, lang)

        elif text == t("client:main:home", lang):
            await state.clear()
            await client_menu.show_main(message, lang)

        else:
            return False

        logger.info(f"[CLIENT_REPLY] tg_id={tg_id}, label='{text}'")
        return True

    # FSM роутеры
    booking_router = booking_flow.setup(dispatch_label)
    my_bookings_router = my_bookings_flow.setup()

    # Активные flow перехватывают свои состояния раньше
    @reply_router.message(F.text.in_(CLIENT_LABELS))
    async def handle_client_reply(message: Message, state: FSMContext):
        await dispatch_label(message, state)

    # =====================================================
    # ПОРЯДОК: FSM → Reply
    # =====================================================
    router.include_router(booking_router)
    router.include_router(my_bookings_router)
    router.include_router(reply_router)

    router.dispatch_label = dispatch_label
    return router
