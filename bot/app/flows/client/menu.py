# bot/app/flows/client/menu.py
"""
Логика навигации клиентского меню (Reply → Reply).
"""

from aiogram.types import Message

from bot.app.config import SUPPORT_CONTACT
from bot.app.keyboards.client import client_main
from bot.app.i18n.loader import t


class ClientMenuFlow:

    async def show_main(self, message: Message, lang: str, welcome: bool = False) -> None:
        key = "client:main:welcome" if welcome else "client:main:title"
        await message.answer(t(key, lang), reply_markup=client_main(lang))

    async def show_help(self, message: Message, lang: str) -> None:
        await message.answer(t("client:help:text", lang, SUPPORT_CONTACT))


client_menu = ClientMenuFlow()
