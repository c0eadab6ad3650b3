"""
bot/app/main.py

Точка входа Telegram-бота.

ТОЛЬКО:
- Инициализация bot, dp (FSM в Redis с TTL сессий)
- Регистрация handlers
- Запуск consumer-ов событий backend и long polling

НЕ содержит бизнес-логики меню.
"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.fsm.storage.redis import RedisStorage

from bot.app.auth import ADMIN_IDS
from bot.app.config import BOT_TOKEN, FLOW_SESSION_TTL, REDIS_URL
from bot.app.events import delivery
from bot.app.events.consumer import (
    broadcast_consumer_loop,
    p2p_consumer_loop,
    retry_consumer_loop,
)
from bot.app.handlers import admin_reply, client_reply, commands
from bot.app.i18n.loader import load_messages


# ------------------------------------------------------------------
# Setup
# ------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

bot = Bot(token=BOT_TOKEN, default=DefaultBotProperties(parse_mode="HTML"))

# Незавершённые диалоги истекают сами
storage = RedisStorage.from_url(
    REDIS_URL,
    state_ttl=FLOW_SESSION_TTL,
    data_ttl=FLOW_SESSION_TTL,
)
dp = Dispatcher(storage=storage)

load_messages()


# ------------------------------------------------------------------
# Register handlers
# ------------------------------------------------------------------

client_router = client_reply.setup()
admin_router = admin_reply.setup(client_router.dispatch_label)

# =====================================================
# ПОРЯДОК ВАЖЕН! Команды → админ → клиент → устаревшие callback-и
# =====================================================
dp.include_router(commands.setup(admin_router))
dp.include_router(admin_router)
dp.include_router(client_router)
dp.include_router(commands.setup_fallback())


# ------------------------------------------------------------------
# Entrypoint
# ------------------------------------------------------------------

async def main() -> None:
    if not ADMIN_IDS:
        logger.critical("No admin ids configured (ADMIN_IDS / ADMIN_ID / BOT_CONFIG_FILE)")
        raise SystemExit(1)

    logger.info(f"Starting bot, admins: {ADMIN_IDS}")
    delivery.set_bot(bot)

    tasks = [
        asyncio.create_task(p2p_consumer_loop(REDIS_URL)),
        asyncio.create_task(broadcast_consumer_loop(REDIS_URL)),
        asyncio.create_task(retry_consumer_loop(REDIS_URL)),
    ]

    try:
        await dp.start_polling(bot)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await storage.close()
        await bot.session.close()
        logger.info("Bot stopped")


if __name__ == "__main__":
    asyncio.run(main())
