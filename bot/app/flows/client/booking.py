# bot/app/flows/client/booking.py
"""
FSM бронирования для клиента.

Flow:
1. Дата (календарь; выбираемы только будущие даты со свободными слотами)
2. Время (перечитывается из backend при каждом показе)
3. Подтверждение → POST /bookings

Занятый за время подтверждения слот возвращает на шаг времени
(или к календарю, если на дату больше нет свободных слотов).
На любом шаге: «🏠 Главное меню» — выход, «ℹ️ Помощь» — справка.
"""

import logging

from aiogram import Router, F
from aiogram.filters import StateFilter
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup

from bot.app.flows.client.menu import client_menu
from bot.app.i18n.loader import t, DEFAULT_LANG
from bot.app.keyboards.calendar import calendar_inline, parse_month_callback
from bot.app.keyboards.client import booking_flow_reply
from bot.app.keyboards.common import confirm_inline, times_inline
from bot.app.utils import api as api_mod
from bot.app.utils.api import api
from bot.app.utils.dates import format_dmy, local_today, parse_date, weekday_full

logger = logging.getLogger(__name__)

PREFIX = "book"


# ==============================================================
# FSM States
# ==============================================================

class ClientBooking(StatesGroup):
    """FSM состояния бронирования."""
    date = State()      # Выбор дня
    time = State()      # Выбор времени
    confirm = State()   # Подтверждение


# ==============================================================
# Render helpers
# ==============================================================

async def render_calendar(state: FSMContext, lang: str, year: int | None = None, month: int | None = None):
    """Календарь с актуальной доступностью. Сохраняет показанный месяц."""
    today = local_today()
    data = await state.get_data()
    year = year or data.get("year") or today.year
    month = month or data.get("month") or today.month
    await state.update_data(year=year, month=month)

    available = set(await api.get_slot_dates(available_only=True))
    return calendar_inline(year, month, today, available, lang, PREFIX, require_marked=True)


def select_time_text(date_str: str, lang: str) -> str:
    return t("client:booking:select_time", lang, format_dmy(date_str), weekday_full(date_str))


# ==============================================================
# Flow Setup
# ==============================================================

def setup(forward_menu_label):
    """
    Настройка роутера бронирования.

    forward_menu_label(message, state) -> bool: обработчик пунктов
    главного меню, вызывается для меток меню, нажатых внутри flow.
    """
    router = Router(name="client_booking")

    # ==========================================================
    # START
    # ==========================================================

    async def start_booking(message: Message, state: FSMContext, lang: str = DEFAULT_LANG):
        """Точка входа: старая сессия (если была) заменяется новой."""
        logger.info(f"[BOOKING] Starting for tg_id={message.chat.id}")

        await state.clear()
        await state.set_state(ClientBooking.date)
        await state.update_data(lang=lang)

        kb = await render_calendar(state, lang)
        await message.answer(t("client:booking:select_date", lang), reply_markup=booking_flow_reply(lang))
        await message.answer(t("client:booking:select_date", lang), reply_markup=kb)

    # ==========================================================
    # CONTROL LABELS (любой шаг)
    # ==========================================================

    @router.message(StateFilter(ClientBooking), F.text == t("client:main:home", DEFAULT_LANG))
    async def handle_home(message: Message, state: FSMContext):
        data = await state.get_data()
        await state.clear()
        await client_menu.show_main(message, data.get("lang", DEFAULT_LANG))

    @router.message(StateFilter(ClientBooking), F.text == t("client:main:help", DEFAULT_LANG))
    async def handle_help(message: Message, state: FSMContext):
        data = await state.get_data()
        await client_menu.show_help(message, data.get("lang", DEFAULT_LANG))

    @router.message(StateFilter(ClientBooking))
    async def handle_free_text(message: Message, state: FSMContext):
        data = await state.get_data()
        if await forward_menu_label(message, state):
            return
        await message.answer(t("common:use_buttons", data.get("lang", DEFAULT_LANG)))

    # ==========================================================
    # DATE
    # ==========================================================

    @router.callback_query(ClientBooking.date, F.data.startswith(f"{PREFIX}:month:"))
    async def handle_month(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        try:
            year, month = parse_month_callback(callback.data)
        except ValueError:
            logger.warning(f"[BOOKING] Bad month callback: {callback.data}")
            await callback.answer(t("common:error", lang), show_alert=True)
            return

        # Продлевает TTL ключа состояния вместе с данными
        await state.set_state(ClientBooking.date)
        kb = await render_calendar(state, lang, year, month)
        await callback.message.edit_reply_markup(reply_markup=kb)
        await callback.answer()

    @router.callback_query(ClientBooking.date, F.data.startswith(f"{PREFIX}:day:"))
    async def handle_day(callback: CallbackQuery, state: FSMContext):
        date_str = callback.data.split(":", 2)[2]
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)

        if parse_date(date_str) < local_today():
            await callback.answer(t("client:booking:past_date", lang), show_alert=True)
            return

        slots = await api.get_day_slots(date_str)
        if not slots:
            logger.info(f"[BOOKING] Day {date_str} has no free slots")
            kb = await render_calendar(state, lang)
            await callback.message.edit_text(
                t("client:booking:no_free_on_date", lang, format_dmy(date_str)),
                reply_markup=kb,
            )
            await callback.answer()
            return

        logger.info(f"[BOOKING] Day: {date_str}")
        await state.update_data(selected_date=date_str)
        await state.set_state(ClientBooking.time)

        kb = times_inline(slots, PREFIX, lang, back_key="client:booking:back_to_calendar")
        await callback.message.edit_text(select_time_text(date_str, lang), reply_markup=kb)
        await callback.answer()

    @router.callback_query(ClientBooking.date, F.data == f"{PREFIX}:back")
    async def handle_back_to_main(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        await state.clear()
        await callback.message.edit_text(t("client:main:title", lang))
        await client_menu.show_main(callback.message, lang)
        await callback.answer()

    # ==========================================================
    # TIME
    # ==========================================================

    @router.callback_query(ClientBooking.time, F.data.startswith(f"{PREFIX}:time:"))
    async def handle_time(callback: CallbackQuery, state: FSMContext):
        time_str = callback.data.split(":", 2)[2]
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        date_str = data.get("selected_date")

        logger.info(f"[BOOKING] Time: {date_str} {time_str}")
        await state.update_data(selected_time=time_str)
        await state.set_state(ClientBooking.confirm)

        await callback.message.edit_text(
            t("client:booking:confirm_text", lang, format_dmy(date_str), time_str),
            reply_markup=confirm_inline(PREFIX, lang),
        )
        await callback.answer()

    @router.callback_query(ClientBooking.time, F.data == f"{PREFIX}:back")
    async def handle_back_to_calendar(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        await state.update_data(selected_date=None)
        await state.set_state(ClientBooking.date)

        kb = await render_calendar(state, lang)
        await callback.message.edit_text(t("client:booking:select_date", lang), reply_markup=kb)
        await callback.answer()

    # ==========================================================
    # CONFIRM
    # ==========================================================

    @router.callback_query(ClientBooking.confirm, F.data == f"{PREFIX}:yes")
    async def handle_confirm(callback: CallbackQuery, state: FSMContext):
        """Создание записи."""
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        date_str = data.get("selected_date")
        time_str = data.get("selected_time")
        user = callback.from_user

        logger.info(f"[BOOKING] Creating: tg_id={user.id}, slot={date_str} {time_str}")

        result = await api.reserve(
            requester_id=user.id,
            day=date_str,
            time=time_str,
            requester_handle=user.username,
            requester_name=user.first_name,
        )

        if result.status == api_mod.UNAVAILABLE:
            await callback.answer()
            await show_slot_taken(callback, state, date_str, lang)
            return

        if not result.ok:
            await callback.message.edit_text(t("common:error", lang), reply_markup=None)
            await state.clear()
            await client_menu.show_main(callback.message, lang)
            await callback.answer()
            return

        await state.clear()
        await callback.message.edit_text(
            t("client:booking:success", lang, format_dmy(date_str), weekday_full(date_str), time_str),
            reply_markup=None,
        )
        await client_menu.show_main(callback.message, lang)
        await callback.answer()

    async def show_slot_taken(callback: CallbackQuery, state: FSMContext, date_str: str, lang: str):
        """Слот заняли: снова время на ту же дату или календарь."""
        await state.update_data(selected_time=None)
        slots = await api.get_day_slots(date_str)

        if slots:
            logger.info(f"[BOOKING] Slot taken, re-rendering times for {date_str}")
            await state.set_state(ClientBooking.time)
            kb = times_inline(slots, PREFIX, lang, back_key="client:booking:back_to_calendar")
            await callback.message.edit_text(
                t("client:booking:slot_taken", lang) + "\n\n" + select_time_text(date_str, lang),
                reply_markup=kb,
            )
            return

        logger.info(f"[BOOKING] Slot taken, {date_str} is full, back to calendar")
        await state.update_data(selected_date=None)
        await state.set_state(ClientBooking.date)
        kb = await render_calendar(state, lang)
        await callback.message.edit_text(t("client:booking:slot_taken_no_day", lang), reply_markup=kb)

    @router.callback_query(ClientBooking.confirm, F.data == f"{PREFIX}:no")
    async def handle_decline(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        await state.clear()
        await callback.message.edit_text(t("client:booking:cancelled", lang), reply_markup=None)
        await client_menu.show_main(callback.message, lang)
        await callback.answer()

    @router.callback_query(F.data == f"{PREFIX}:ignore")
    async def handle_ignore(callback: CallbackQuery):
        await callback.answer()

    router.start_booking = start_booking
    return router
