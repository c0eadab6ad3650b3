"""
bot/app/keyboards/calendar.py

Inline-календарь на месяц.

       Январь 2026
[Пн][Вт][Ср][Чт][Пт][Сб][Вс]
[  ][  ][  ][ 1][ 2][❌3][ 4]
...
[◀️]              [▶️]
[⬅️ Назад]

callback_data:
  {prefix}:month:{year}:{month}  — навигация
  {prefix}:day:{YYYY-MM-DD}      — выбор даты
  {prefix}:ignore                — неактивная кнопка
  {prefix}:back                  — выход
"""

import calendar
from datetime import date

from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from bot.app.i18n.loader import t
from bot.app.utils.dates import WEEKDAYS_SHORT


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """(2026, 12) + 1 → (2027, 1)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_weeks(year: int, month: int) -> list[list[int]]:
    """Недели месяца, понедельник первый; 0 — день другого месяца."""
    if not 1 <= month <= 12:
        raise ValueError(f"invalid month: {month}")
    return calendar.Calendar(firstweekday=0).monthdayscalendar(year, month)


def day_button(
    day: date,
    today: date,
    marked: set[str],
    require_marked: bool,
) -> tuple[str, bool]:
    """
    Подпись и выбираемость дня.

    require_marked=True (клиент): выбираемы только будущие даты со свободными слотами.
    require_marked=False (админ): выбираема любая непрошедшая дата, даты со слотами помечены.
    """
    is_marked = day.isoformat() in marked

    if day < today:
        return f"❌{day.day}", False

    if require_marked:
        if is_marked:
            return str(day.day), True
        return f"❌{day.day}", False

    if is_marked:
        return f"📅{day.day}", True
    return str(day.day), True


def calendar_inline(
    year: int,
    month: int,
    today: date,
    marked: set[str],
    lang: str,
    prefix: str,
    require_marked: bool = True,
) -> InlineKeyboardMarkup:
    buttons = [
        [InlineKeyboardButton(
            text=f"{t(f'calendar:month:{month}', lang)} {year}",
            callback_data=f"{prefix}:ignore",
        )],
        [InlineKeyboardButton(text=name, callback_data=f"{prefix}:ignore") for name in WEEKDAYS_SHORT],
    ]

    for week in month_weeks(year, month):
        row = []
        for day_num in week:
            if day_num == 0:
                row.append(InlineKeyboardButton(text=" ", callback_data=f"{prefix}:ignore"))
                continue

            day = date(year, month, day_num)
            label, selectable = day_button(day, today, marked, require_marked)
            callback = f"{prefix}:day:{day.isoformat()}" if selectable else f"{prefix}:ignore"
            row.append(InlineKeyboardButton(text=label, callback_data=callback))
        buttons.append(row)

    prev_year, prev_month = shift_month(year, month, -1)
    next_year, next_month = shift_month(year, month, 1)
    buttons.append([
        InlineKeyboardButton(text="◀️", callback_data=f"{prefix}:month:{prev_year}:{prev_month}"),
        InlineKeyboardButton(text="▶️", callback_data=f"{prefix}:month:{next_year}:{next_month}"),
    ])
    buttons.append([InlineKeyboardButton(text=t("common:back", lang), callback_data=f"{prefix}:back")])

    return InlineKeyboardMarkup(inline_keyboard=buttons)


def parse_month_callback(data: str) -> tuple[int, int]:
    """'book:month:2026:3' → (2026, 3)."""
    _, _, year, month = data.split(":")
    year, month = int(year), int(month)
    if not 1 <= month <= 12 or year < 2000:
        raise ValueError(f"invalid calendar params: {data}")
    return year, month
