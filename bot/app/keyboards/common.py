from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from bot.app.i18n.loader import t


def confirm_inline(prefix: str, lang: str, no_key: str = "common:no") -> InlineKeyboardMarkup:
    """[✅ Да] [❌ Нет] → {prefix}:yes / {prefix}:no"""
    return InlineKeyboardMarkup(inline_keyboard=[
        [
            InlineKeyboardButton(text=t("common:yes", lang), callback_data=f"{prefix}:yes"),
            InlineKeyboardButton(text=t(no_key, lang), callback_data=f"{prefix}:no"),
        ]
    ])


def times_inline(
    slots: list[dict],
    prefix: str,
    lang: str,
    back_key: str = "common:back",
    per_row: int = 3,
) -> InlineKeyboardMarkup:
    """Кнопки времён: {prefix}:time:{HH:MM}."""
    buttons = []
    row = []
    for slot in slots:
        row.append(InlineKeyboardButton(text=slot["time"], callback_data=f"{prefix}:time:{slot['time']}"))
        if len(row) == per_row:
            buttons.append(row)
            row = []
    if row:
        buttons.append(row)

    buttons.append([InlineKeyboardButton(text=t(back_key, lang), callback_data=f"{prefix}:back")])
    return InlineKeyboardMarkup(inline_keyboard=buttons)
