"""
bot/app/handlers/commands.py

Команды бота. /start доступен всем, остальные только админам
(для прочих молча игнорируются). Команда начинает новую сессию:
незавершённый flow сбрасывается.
"""

import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from bot.app.auth import is_admin
from bot.app.flows.admin import add_slots as add_slots_flow
from bot.app.flows.admin import bookings_list
from bot.app.flows.admin import broadcast as broadcast_flow
from bot.app.flows.admin import delete_slots as delete_slots_flow
from bot.app.flows.admin.menu import admin_menu
from bot.app.flows.client.menu import client_menu
from bot.app.i18n.loader import DEFAULT_LANG, t

logger = logging.getLogger(__name__)

ADMIN_COMMANDS = (
    "admin", "addslot", "deleteslot", "today", "tomorrow",
    "week", "month", "freeslots", "stats", "broadcast",
)


def _args(command: CommandObject) -> list[str]:
    return command.args.split() if command.args else []


def setup(admin_router):
    """
    admin_router: роутер из handlers.admin_reply (точки входа
    в диалоги добавления слотов и рассылки).
    """
    router = Router(name="commands")

    @router.message(CommandStart())
    async def cmd_start(message: Message, state: FSMContext):
        await state.clear()
        await client_menu.show_main(message, DEFAULT_LANG, welcome=True)

    # Админ-команды: фильтр по allow-list, остальные не доходят до handler
    admin_only = F.from_user.func(lambda user: is_admin(user.id))

    @router.message(Command("admin"), admin_only)
    async def cmd_admin(message: Message, state: FSMContext):
        await state.clear()
        await admin_menu.show_main(message, DEFAULT_LANG)

    @router.message(Command("addslot"), admin_only)
    async def cmd_addslot(message: Message, command: CommandObject, state: FSMContext):
        args = _args(command)
        if args:
            await state.clear()
            await add_slots_flow.add_single_slot(message, args, DEFAULT_LANG)
        else:
            await admin_router.start_add_slots(message, state, DEFAULT_LANG)

    @router.message(Command("deleteslot"), admin_only)
    async def cmd_deleteslot(message: Message, command: CommandObject, state: FSMContext):
        await state.clear()
        args = _args(command)
        if args:
            await delete_slots_flow.delete_by_args(message, args, DEFAULT_LANG)
        else:
            await delete_slots_flow.show_picker(message, DEFAULT_LANG)

    @router.message(Command("today"), admin_only)
    async def cmd_today(message: Message, state: FSMContext):
        await state.clear()
        await bookings_list.show_day(message, 0, DEFAULT_LANG)

    @router.message(Command("tomorrow"), admin_only)
    async def cmd_tomorrow(message: Message, state: FSMContext):
        await state.clear()
        await bookings_list.show_day(message, 1, DEFAULT_LANG)

    @router.message(Command("week"), admin_only)
    async def cmd_week(message: Message, state: FSMContext):
        await state.clear()
        await bookings_list.show_week(message, DEFAULT_LANG)

    @router.message(Command("month"), admin_only)
    async def cmd_month(message: Message, state: FSMContext):
        await state.clear()
        await bookings_list.show_month(message, DEFAULT_LANG)

    @router.message(Command("freeslots"), admin_only)
    async def cmd_freeslots(message: Message, state: FSMContext):
        await state.clear()
        await bookings_list.show_free_slots(message, DEFAULT_LANG)

    @router.message(Command("stats"), admin_only)
    async def cmd_stats(message: Message, state: FSMContext):
        await state.clear()
        await bookings_list.show_stats(message, DEFAULT_LANG)

    @router.message(Command("broadcast"), admin_only)
    async def cmd_broadcast(message: Message, command: CommandObject, state: FSMContext):
        if command.args and command.args.strip():
            await state.clear()
            await broadcast_flow.send_broadcast(message, command.args, DEFAULT_LANG)
        else:
            await admin_router.start_broadcast(message, state, DEFAULT_LANG)

    @router.message(Command(*ADMIN_COMMANDS))
    async def ignore_non_admin(message: Message):
        logger.debug(f"Admin command from non-admin tg_id={message.from_user.id}")

    return router


def setup_fallback():
    """
    Последний роутер: callback-и, которые никто не обработал
    (старые клавиатуры, истёкшая сессия).
    """
    router = Router(name="fallback")

    @router.callback_query()
    async def handle_stale(callback: CallbackQuery):
        logger.info(f"Stale callback '{callback.data}' from tg_id={callback.from_user.id}")
        await callback.answer(t("common:session_expired", DEFAULT_LANG), show_alert=True)

    return router
