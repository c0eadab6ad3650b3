"""
bot/app/flows/admin/add_slots.py

FSM добавления слотов (админ).

Flow:
1. Дата (календарь; любая непрошедшая дата, даты со слотами помечены 📅)
2. Времена: "10:00 12:30 15:45" (строгий HH:MM, повторы схлопываются,
   уже существующие показываются отдельно)
3. Подтверждение → POST /slots/batch, итог по дню

Reply-кнопки на шаге 2: «⬅️ Назад к выбору даты» — flow заново,
«❌ Отмена» — выход. Прочие метки меню не разбираются как время.
"""

import logging

from aiogram import Router, F
from aiogram.filters import StateFilter
from aiogram.types import Message, CallbackQuery
from aiogram.fsm.context import FSMContext
from aiogram.fsm.state import State, StatesGroup

from bot.app.flows.admin.menu import admin_menu
from bot.app.i18n.loader import t, DEFAULT_LANG
from bot.app.keyboards.admin import add_slots_times_reply
from bot.app.keyboards.calendar import calendar_inline, parse_month_callback
from bot.app.keyboards.common import confirm_inline
from bot.app.utils import api as api_mod
from bot.app.utils.api import api
from bot.app.utils.dates import format_dmy, local_today, parse_date, weekday_full
from bot.app.utils.slot_times import parse_times, split_existing

logger = logging.getLogger(__name__)

PREFIX = "add"


class AdminAddSlots(StatesGroup):
    date = State()
    times = State()
    confirm = State()


# ==============================================================
# Text builders
# ==============================================================

def day_summary_lines(slots: list[dict], lang: str) -> list[str]:
    """Забронированные / свободные времена дня."""
    booked = [s["time"] for s in slots if s["is_booked"]]
    free = [s["time"] for s in slots if not s["is_booked"]]
    lines = []
    if booked:
        lines.append(t("admin:add:booked", lang, ", ".join(booked)))
    if free:
        lines.append(t("admin:add:free", lang, ", ".join(free)))
    return lines


def date_prompt_text(date_str: str, slots: list[dict], lang: str) -> str:
    lines = [t("admin:add:date_header", lang, format_dmy(date_str), weekday_full(date_str)), ""]
    if slots:
        lines.extend(day_summary_lines(slots, lang))
    else:
        lines.append(t("admin:add:none", lang))
    lines.extend(["", t("admin:add:enter_times", lang)])
    return "\n".join(lines)


def confirm_text(date_str: str, new_times: list[str], duplicates: list[str], lang: str) -> str:
    lines = [t("admin:add:confirm_header", lang, format_dmy(date_str), weekday_full(date_str)), ""]
    lines.append(t("admin:add:confirm_new", lang, ", ".join(new_times)))
    if duplicates:
        lines.append(t("admin:add:confirm_exist", lang, ", ".join(duplicates)))
    lines.extend(["", t("admin:add:confirm_question", lang)])
    return "\n".join(lines)


def result_text(date_str: str, created: list[str], day_slots: list[dict], lang: str) -> str:
    dmy, weekday = format_dmy(date_str), weekday_full(date_str)
    lines = [t("admin:add:done", lang, len(created), dmy, weekday, ", ".join(created)), ""]
    lines.append(t("admin:add:totals", lang, dmy))
    booked = [s["time"] for s in day_slots if s["is_booked"]]
    free = [s["time"] for s in day_slots if not s["is_booked"]]
    if booked:
        lines.append(t("admin:add:totals_booked", lang, ", ".join(booked)))
    if free:
        lines.append(t("admin:add:free", lang, ", ".join(free)))
    lines.extend(["", t("admin:add:total_count", lang, len(day_slots))])
    return "\n".join(lines)


async def render_calendar(state: FSMContext, lang: str, year: int | None = None, month: int | None = None):
    today = local_today()
    data = await state.get_data()
    year = year or data.get("year") or today.year
    month = month or data.get("month") or today.month
    await state.update_data(year=year, month=month)

    with_slots = set(await api.get_slot_dates(available_only=False))
    return calendar_inline(year, month, today, with_slots, lang, PREFIX, require_marked=False)


# ==============================================================
# Flow Setup
# ==============================================================

def setup(forward_menu_label):
    """
    forward_menu_label(message, state) -> bool: обработчик меток
    админ-меню, нажатых посреди flow.
    """
    router = Router(name="admin_add_slots")

    # ==========================================================
    # START
    # ==========================================================

    async def start_add_slots(message: Message, state: FSMContext, lang: str = DEFAULT_LANG):
        logger.info(f"[ADDSLOT] Starting for tg_id={message.chat.id}")

        await state.clear()
        await state.set_state(AdminAddSlots.date)
        await state.update_data(lang=lang)

        kb = await render_calendar(state, lang)
        await message.answer(t("admin:add:select_date", lang), reply_markup=kb)

    async def leave(message: Message, state: FSMContext, lang: str, text_key: str):
        await state.clear()
        await admin_menu.show_main(message, lang, t(text_key, lang))

    # ==========================================================
    # CONTROL LABELS
    # ==========================================================

    @router.message(StateFilter(AdminAddSlots), F.text == t("common:cancel", DEFAULT_LANG))
    async def handle_cancel_label(message: Message, state: FSMContext):
        data = await state.get_data()
        logger.info("[ADDSLOT] Cancelled")
        await leave(message, state, data.get("lang", DEFAULT_LANG), "admin:add:cancelled")

    @router.message(StateFilter(AdminAddSlots), F.text == t("admin:add:back_to_date", DEFAULT_LANG))
    async def handle_back_label(message: Message, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        await message.answer(t("admin:add:returning", lang), reply_markup=None)
        await start_add_slots(message, state, lang)

    # ==========================================================
    # DATE
    # ==========================================================

    @router.callback_query(AdminAddSlots.date, F.data.startswith(f"{PREFIX}:month:"))
    async def handle_month(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        try:
            year, month = parse_month_callback(callback.data)
        except ValueError:
            logger.warning(f"[ADDSLOT] Bad month callback: {callback.data}")
            await callback.answer(t("common:error", lang), show_alert=True)
            return

        # Продлевает TTL ключа состояния вместе с данными
        await state.set_state(AdminAddSlots.date)
        kb = await render_calendar(state, lang, year, month)
        await callback.message.edit_reply_markup(reply_markup=kb)
        await callback.answer()

    @router.callback_query(AdminAddSlots.date, F.data.startswith(f"{PREFIX}:day:"))
    async def handle_day(callback: CallbackQuery, state: FSMContext):
        date_str = callback.data.split(":", 2)[2]
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)

        if parse_date(date_str) < local_today():
            await callback.answer(t("admin:add:past_date", lang), show_alert=True)
            return

        day_slots = await api.get_day_slots(date_str, available_only=False)

        logger.info(f"[ADDSLOT] Date: {date_str} ({len(day_slots)} existing)")
        await state.update_data(selected_date=date_str)
        await state.set_state(AdminAddSlots.times)

        await callback.message.edit_text(date_prompt_text(date_str, day_slots, lang), reply_markup=None)
        await callback.message.answer(t("admin:add:waiting", lang), reply_markup=add_slots_times_reply(lang))
        await callback.answer()

    @router.callback_query(AdminAddSlots.date, F.data == f"{PREFIX}:back")
    async def handle_back_to_menu(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        await callback.message.edit_text(t("admin:add:cancelled", lang), reply_markup=None)
        await leave(callback.message, state, lang, "admin:main:title")
        await callback.answer()

    @router.message(AdminAddSlots.date)
    async def handle_date_text(message: Message, state: FSMContext):
        if await forward_menu_label(message, state):
            return
        data = await state.get_data()
        await message.answer(t("admin:add:select_date", data.get("lang", DEFAULT_LANG)))

    # ==========================================================
    # TIMES
    # ==========================================================

    @router.message(AdminAddSlots.times)
    async def handle_times(message: Message, state: FSMContext):
        if await forward_menu_label(message, state):
            return

        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        date_str = data.get("selected_date")

        text = (message.text or "").strip()
        if not text:
            await message.answer(t("admin:add:empty", lang))
            return

        parsed = parse_times(text)
        if not parsed.ok:
            logger.info(f"[ADDSLOT] Invalid tokens: {parsed.invalid}")
            await message.answer(t("admin:add:invalid", lang, ", ".join(parsed.invalid)))
            return

        day_slots = await api.get_day_slots(date_str, available_only=False)
        new_times, duplicates = split_existing(parsed.times, {s["time"] for s in day_slots})

        if not new_times:
            await message.answer(t("admin:add:all_exist", lang, ", ".join(duplicates)))
            return

        await state.update_data(new_times=new_times, duplicates=duplicates)
        await state.set_state(AdminAddSlots.confirm)

        await message.answer(
            confirm_text(date_str, new_times, duplicates, lang),
            reply_markup=confirm_inline(PREFIX, lang, no_key="common:cancel"),
        )

    # ==========================================================
    # CONFIRM
    # ==========================================================

    @router.callback_query(AdminAddSlots.confirm, F.data == f"{PREFIX}:yes")
    async def handle_confirm(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        date_str = data.get("selected_date")
        new_times = data.get("new_times", [])

        result = await api.add_slots(date_str, new_times)
        if not result.ok or not result.data:
            logger.error(f"[ADDSLOT] Batch insert failed: {date_str} {new_times} ({result.status})")
            await callback.message.edit_text(t("common:error", lang), reply_markup=None)
            await leave(callback.message, state, lang, "admin:main:title")
            await callback.answer()
            return

        created = result.data.get("created", [])
        logger.info(f"[ADDSLOT] Added {created} on {date_str}")

        day_slots = await api.get_day_slots(date_str, available_only=False)
        await callback.message.edit_text(result_text(date_str, created, day_slots, lang), reply_markup=None)
        await leave(callback.message, state, lang, "admin:main:title")
        await callback.answer()

    @router.callback_query(AdminAddSlots.confirm, F.data == f"{PREFIX}:no")
    async def handle_decline(callback: CallbackQuery, state: FSMContext):
        data = await state.get_data()
        lang = data.get("lang", DEFAULT_LANG)
        await callback.message.edit_text(t("admin:add:cancelled", lang), reply_markup=None)
        await leave(callback.message, state, lang, "admin:main:title")
        await callback.answer()

    @router.message(AdminAddSlots.confirm)
    async def handle_confirm_text(message: Message, state: FSMContext):
        if await forward_menu_label(message, state):
            return
        data = await state.get_data()
        await message.answer(t("common:use_buttons", data.get("lang", DEFAULT_LANG)))

    @router.callback_query(F.data == f"{PREFIX}:ignore")
    async def handle_ignore(callback: CallbackQuery):
        await callback.answer()

    router.start_add_slots = start_add_slots
    return router


async def add_single_slot(message: Message, args: list[str], lang: str = DEFAULT_LANG) -> None:
    """/addslot YYYY-MM-DD HH:MM — добавление без диалога."""
    if len(args) != 2:
        await message.answer(t("admin:add:usage", lang))
        return

    date_str, time_str = args
    try:
        parse_date(date_str)
    except ValueError:
        await message.answer(t("admin:add:usage", lang))
        return

    result = await api.add_slot(date_str, time_str)
    if result.ok:
        await message.answer(t("admin:add:single_done", lang, date_str, time_str))
    elif result.status == api_mod.UNAVAILABLE:
        await message.answer(t("admin:add:single_exists", lang, date_str, time_str))
    elif result.status == api_mod.INVALID:
        await message.answer(t("admin:add:usage", lang))
    else:
        await message.answer(t("common:error", lang))
