# bot/app/keyboards/client.py

from aiogram.types import (
    ReplyKeyboardMarkup,
    KeyboardButton,
    InlineKeyboardMarkup,
    InlineKeyboardButton,
)
from bot.app.i18n.loader import t
from bot.app.utils.dates import format_dmy


CLIENT_MENU_KEYS = (
    "client:main:book",
    "client:main:bookings",
    "client:main:cancel",
    "client:main:help",
    "client:main:home",
)


def client_main(lang: str) -> ReplyKeyboardMarkup:
    """
    Главное Reply-меню клиента.
    Используется как якорь навигации.
    """
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=t("client:main:book", lang))],
            [
                KeyboardButton(text=t("client:main:bookings", lang)),
                KeyboardButton(text=t("client:main:cancel", lang)),
            ],
            [KeyboardButton(text=t("client:main:help", lang))],
        ],
        resize_keyboard=True,
        is_persistent=True,
    )


def booking_flow_reply(lang: str) -> ReplyKeyboardMarkup:
    """Reply-кнопки, доступные на любом шаге записи."""
    return ReplyKeyboardMarkup(
        keyboard=[
            [
                KeyboardButton(text=t("client:main:home", lang)),
                KeyboardButton(text=t("client:main:help", lang)),
            ],
        ],
        resize_keyboard=True,
    )


def cancel_bookings_inline(bookings: list[dict]) -> InlineKeyboardMarkup:
    """Одна кнопка на активную запись: mybk:cancel:{id}."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(
                text=f"❌ {format_dmy(b['slot_date'])} {b['slot_time']}",
                callback_data=f"mybk:cancel:{b['id']}",
            )
        ]
        for b in bookings
    ])
