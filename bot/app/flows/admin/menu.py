"""
bot/app/flows/admin/menu.py

Логика навигации админ-меню (Reply→Reply).
"""

from aiogram.types import Message

from bot.app.keyboards.admin import admin_main
from bot.app.i18n.loader import t


class AdminMenuFlow:

    async def show_main(self, message: Message, lang: str, text: str | None = None) -> None:
        await message.answer(text or t("admin:main:title", lang), reply_markup=admin_main(lang))


admin_menu = AdminMenuFlow()
