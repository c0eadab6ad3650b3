import json
from datetime import datetime
from unittest.mock import AsyncMock

import pytest
from aiogram import Bot, Dispatcher
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import Chat, Message, Update, User

from bot.app import config
from bot.app import main as bot_main
from bot.app.auth import load_admin_ids
from bot.app.flows.admin import add_slots as add_slots_flow
from bot.app.flows.admin.add_slots import AdminAddSlots
from bot.app.flows.client import booking as booking_flow
from bot.app.flows.client.booking import ClientBooking
from bot.app.handlers import commands

from bot_helpers import ADMIN_ID, USER_ID, find_handler


# ── configuration ────────────────────────────────────────────────────────

def test_missing_token_is_fatal(monkeypatch):
    monkeypatch.delenv("TG_BOT_TOKEN", raising=False)
    monkeypatch.setitem(config.Settings.model_config, "env_file", None)

    with pytest.raises(SystemExit) as exc:
        config.load_settings()

    assert exc.value.code == 1


async def test_bot_refuses_to_start_without_admins(monkeypatch):
    monkeypatch.setattr(bot_main, "ADMIN_IDS", [])
    start_polling = AsyncMock()
    monkeypatch.setattr(bot_main.dp, "start_polling", start_polling)

    with pytest.raises(SystemExit) as exc:
        await bot_main.main()

    assert exc.value.code == 1
    start_polling.assert_not_awaited()


@pytest.mark.parametrize(
    "content",
    [
        [1, 2],
        {"ADMIN_IDS": ["1", "boss"]},
        {"ADMIN_IDS": {"id": 1}},
        {"ADMIN_ID": "x"},
        {"ADMIN_IDS": [True]},
    ],
)
def test_malformed_admin_file_is_fatal(tmp_path, content):
    path = tmp_path / "bot.json"
    path.write_text(json.dumps(content), encoding="utf-8")
    cfg = config.Settings(TG_BOT_TOKEN="1:x", ADMIN_IDS="", BOT_CONFIG_FILE=path)

    with pytest.raises(SystemExit) as exc:
        load_admin_ids(cfg)

    assert exc.value.code == 1


def test_unreadable_admin_file_is_fatal(tmp_path):
    path = tmp_path / "bot.json"
    path.write_text("{not json", encoding="utf-8")
    cfg = config.Settings(TG_BOT_TOKEN="1:x", ADMIN_IDS="", BOT_CONFIG_FILE=path)

    with pytest.raises(SystemExit):
        load_admin_ids(cfg)


def test_admin_file_accepts_string_list(tmp_path):
    path = tmp_path / "bot.json"
    path.write_text(json.dumps({"ADMIN_IDS": "5, 6"}), encoding="utf-8")
    cfg = config.Settings(TG_BOT_TOKEN="1:x", ADMIN_IDS="", BOT_CONFIG_FILE=path)

    assert load_admin_ids(cfg) == [5, 6]


# ── session expiry ───────────────────────────────────────────────────────

def test_sessions_expire_after_idle_ttl():
    assert bot_main.storage.state_ttl == config.FLOW_SESSION_TTL
    assert bot_main.storage.data_ttl == config.FLOW_SESSION_TTL


@pytest.mark.parametrize(
    "flow,state_tag,data",
    [
        (booking_flow, ClientBooking.date, "book:month:2026:3"),
        (add_slots_flow, AdminAddSlots.date, "add:month:2026:3"),
    ],
)
async def test_month_navigation_refreshes_state(flow, state_tag, data, make_callback, state, fake_api, monkeypatch):
    fake_api.get_slot_dates.return_value = []
    await state.set_state(state_tag)
    set_state = AsyncMock(wraps=state.set_state)
    monkeypatch.setattr(state, "set_state", set_state)

    router = flow.setup(AsyncMock(return_value=False))
    await find_handler(router, "handle_month")(make_callback(data, ADMIN_ID), state)

    set_state.assert_awaited_once_with(state_tag)
    assert await state.get_state() == state_tag.state
    assert (await state.get_data())["month"] == 3


# ── admin commands from non-admins ───────────────────────────────────────

@pytest.fixture
def sent(monkeypatch):
    """Every Bot API call made while handling an update."""
    call = AsyncMock()
    monkeypatch.setattr(Bot, "__call__", call)
    return call


async def feed_command(text: str, user_id: int):
    admin_router = AsyncMock()
    dp = Dispatcher(storage=MemoryStorage())
    dp.include_router(commands.setup(admin_router))

    update = Update(
        update_id=1,
        message=Message(
            message_id=1,
            date=datetime.now(),
            chat=Chat(id=user_id, type="private"),
            from_user=User(id=user_id, is_bot=False, first_name="Alice"),
            text=text,
        ),
    )
    return await dp.feed_update(Bot("123456:TEST-token"), update)


async def test_admin_command_from_non_admin_is_ignored(sent, fake_api):
    result = await feed_command("/stats", USER_ID)

    assert result is not UNHANDLED
    fake_api.get_stats.assert_not_awaited()
    sent.assert_not_awaited()


async def test_admin_command_from_admin_is_handled(sent, fake_api):
    fake_api.get_stats.return_value = {"requesters": 1, "active_bookings": 2, "free_slots": 3}

    await feed_command("/stats", ADMIN_ID)

    fake_api.get_stats.assert_awaited_once()
    sent.assert_awaited_once()
