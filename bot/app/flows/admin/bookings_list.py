"""
bot/app/flows/admin/bookings_list.py

Списки для админа: записи на сегодня / завтра / неделю / месяц,
свободные слоты, статистика.
"""

import calendar
import logging
from datetime import date, timedelta
from itertools import groupby

from aiogram.types import Message

from bot.app.i18n.loader import DEFAULT_LANG, t
from bot.app.utils.api import api
from bot.app.utils.dates import format_dmy, local_today, weekday_full

logger = logging.getLogger(__name__)


def requester_label(b: dict) -> str:
    handle = f"@{b['requester_handle']}" if b.get("requester_handle") else "—"
    name = b.get("requester_name") or ""
    return f"{handle} ({name})" if name else handle


def format_day_list(bookings: list[dict]) -> str:
    """Записи одного дня: '10:00 — @user (Имя)'."""
    return "\n".join(f"{b['slot_time']} — {requester_label(b)}" for b in bookings)


def format_grouped_list(bookings: list[dict]) -> str:
    """Записи по датам, внутри даты — по времени."""
    blocks = []
    for day, items in groupby(bookings, key=lambda b: b["slot_date"]):
        lines = [f"📅 {format_dmy(day)} ({weekday_full(day)})"]
        lines.extend(f"  {b['slot_time']} — {requester_label(b)}" for b in items)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_free_slots(slots: list[dict]) -> str:
    blocks = []
    for day, items in groupby(slots, key=lambda s: s["date"]):
        times = ", ".join(s["time"] for s in items)
        blocks.append(f"📅 {format_dmy(day)} ({weekday_full(day)}): {times}")
    return "\n".join(blocks)


def month_range(today: date) -> tuple[date, date]:
    """С сегодняшнего дня до конца текущего месяца."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today, today.replace(day=last_day)


async def show_day(message: Message, offset_days: int, lang: str = DEFAULT_LANG) -> None:
    day = local_today() + timedelta(days=offset_days)
    key = "admin:list:today" if offset_days == 0 else "admin:list:tomorrow"

    bookings = await api.get_bookings(day, day)
    if not bookings:
        await message.answer(t(f"{key}_empty", lang))
        return
    await message.answer(t(key, lang, format_dmy(day), weekday_full(day), format_day_list(bookings)))


async def show_week(message: Message, lang: str = DEFAULT_LANG) -> None:
    today = local_today()
    bookings = await api.get_bookings(today, today + timedelta(days=6))
    if not bookings:
        await message.answer(t("admin:list:week_empty", lang))
        return
    await message.answer(t("admin:list:week", lang, format_grouped_list(bookings)))


async def show_month(message: Message, lang: str = DEFAULT_LANG) -> None:
    date_from, date_to = month_range(local_today())
    bookings = await api.get_bookings(date_from, date_to)
    if not bookings:
        await message.answer(t("admin:list:month_empty", lang))
        return
    await message.answer(t("admin:list:month", lang, format_grouped_list(bookings)))


async def show_free_slots(message: Message, lang: str = DEFAULT_LANG) -> None:
    slots = await api.get_slots(available_only=True)
    if not slots:
        await message.answer(t("admin:list:free_empty", lang))
        return
    await message.answer(t("admin:list:free", lang, format_free_slots(slots)))


async def show_stats(message: Message, lang: str = DEFAULT_LANG) -> None:
    stats = await api.get_stats()
    if stats is None:
        await message.answer(t("common:error", lang))
        return
    await message.answer(
        t("admin:stats", lang, stats["requesters"], stats["active_bookings"], stats["free_slots"])
    )
