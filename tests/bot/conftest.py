from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage

from bot.app import auth
from bot.app.utils.api import api
from bot.app.utils.dates import local_today

from bot_helpers import ADMIN_ID, USER_ID, make_user


@pytest.fixture(autouse=True)
def admin_ids(monkeypatch):
    monkeypatch.setattr(auth, "ADMIN_IDS", [ADMIN_ID])
    return auth.ADMIN_IDS


@pytest.fixture
def state():
    return FSMContext(
        storage=MemoryStorage(),
        key=StorageKey(bot_id=1, chat_id=USER_ID, user_id=USER_ID),
    )


@pytest.fixture
def make_message():
    def _make(text: str = "", user_id: int = USER_ID):
        message = AsyncMock()
        message.text = text
        message.from_user = make_user(user_id)
        message.chat = SimpleNamespace(id=user_id)
        return message
    return _make


@pytest.fixture
def make_callback():
    def _make(data: str, user_id: int = USER_ID):
        callback = AsyncMock()
        callback.data = data
        callback.from_user = make_user(user_id)
        callback.message = AsyncMock()
        callback.message.chat = SimpleNamespace(id=user_id)
        return callback
    return _make


@pytest.fixture
def fake_api(monkeypatch):
    """Every backend call of the shared ApiClient replaced by an AsyncMock."""
    names = [
        "get_slots", "get_day_slots", "get_slot_dates", "add_slot", "add_slots",
        "delete_slot", "delete_slot_at", "reserve", "cancel_booking", "get_booking",
        "get_bookings", "get_requester_bookings", "mark_reminded", "get_stats", "broadcast",
    ]
    for name in names:
        monkeypatch.setattr(api, name, AsyncMock())
    return api


@pytest.fixture
def tomorrow():
    return local_today() + timedelta(days=1)

