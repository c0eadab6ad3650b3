"""
bot/app/keyboards/admin.py

Клавиатуры админа.
- Reply: навигация (is_persistent=True)
- Inline: работа с данными
"""

from itertools import groupby

from aiogram.types import (
    ReplyKeyboardMarkup,
    KeyboardButton,
    InlineKeyboardMarkup,
    InlineKeyboardButton,
)
from bot.app.i18n.loader import t
from bot.app.utils.dates import format_dmy, weekday_full


# ============================================================
# REPLY KEYBOARDS (навигация)
# ============================================================

ADMIN_MENU_KEYS = [
    ["admin:main:today", "admin:main:free"],
    ["admin:main:tomorrow", "admin:main:add"],
    ["admin:main:week", "admin:main:delete"],
    ["admin:main:month", "admin:main:stats"],
    ["admin:main:broadcast"],
]


def admin_main(lang: str) -> ReplyKeyboardMarkup:
    """Главное меню админа."""
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=t(key, lang)) for key in row]
            for row in ADMIN_MENU_KEYS
        ],
        resize_keyboard=True,
        is_persistent=True,
    )


def add_slots_times_reply(lang: str) -> ReplyKeyboardMarkup:
    """Ввод времён: назад к дате / отмена."""
    return ReplyKeyboardMarkup(
        keyboard=[[
            KeyboardButton(text=t("admin:add:back_to_date", lang)),
            KeyboardButton(text=t("common:cancel", lang)),
        ]],
        resize_keyboard=True,
    )


def broadcast_reply(lang: str) -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=t("admin:broadcast:cancel", lang))]],
        resize_keyboard=True,
    )


# ============================================================
# INLINE KEYBOARDS
# ============================================================

def delete_slots_inline(slots: list[dict], lang: str, per_row: int = 3) -> InlineKeyboardMarkup:
    """
    Слоты, сгруппированные по дням.

    [📅 28.01.2026 (Среда)]
    [❌ 09:00] [❌ 10:00] [🔒 11:00]

    callback_data: delslot:del:{id} / delslot:booked:{id} / delslot:ignore
    """
    buttons = []
    for day, day_slots in groupby(slots, key=lambda s: s["date"]):
        buttons.append([InlineKeyboardButton(
            text=f"📅 {format_dmy(day)} ({weekday_full(day)})",
            callback_data="delslot:ignore",
        )])
        row = []
        for slot in day_slots:
            if slot["is_booked"]:
                btn = InlineKeyboardButton(text=f"🔒 {slot['time']}", callback_data=f"delslot:booked:{slot['id']}")
            else:
                btn = InlineKeyboardButton(text=f"❌ {slot['time']}", callback_data=f"delslot:del:{slot['id']}")
            row.append(btn)
            if len(row) == per_row:
                buttons.append(row)
                row = []
        if row:
            buttons.append(row)

    return InlineKeyboardMarkup(inline_keyboard=buttons)


def after_delete_inline(lang: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=t("admin:delete:show_remaining", lang), callback_data="delslot:remaining")],
        [InlineKeyboardButton(text=t("admin:delete:back", lang), callback_data="delslot:back")],
    ])


def back_to_delete_inline(lang: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text=t("admin:delete:back", lang), callback_data="delslot:back")],
    ])


def booking_notify_inline(booking_id: int, lang: str) -> InlineKeyboardMarkup:
    """Кнопки под уведомлением о записи для админа."""
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(text=t("notify:cancel_booking", lang), callback_data=f"bkn:cancel:{booking_id}"),
        InlineKeyboardButton(text=t("common:hide", lang), callback_data=f"bkn:hide:{booking_id}"),
    ]])
