import json
from unittest.mock import AsyncMock

import pytest

from bot.app import events
from bot.app.events import consumer, delivery
from bot.app.events.formatters import format_event, format_requester
from bot.app.events.recipients import resolve_recipients

from bot_helpers import ADMIN_ID, USER_ID


def booking(**overrides):
    data = {
        "id": 7,
        "slot_id": 3,
        "slot_date": "2026-01-28",
        "slot_time": "10:00",
        "requester_id": USER_ID,
        "requester_handle": "alice",
        "requester_name": "Alice",
        "status": "confirmed",
        "created_at": "2026-01-20T10:00:00",
        "reminded_at": None,
    }
    data.update(overrides)
    return data


# ── recipients ───────────────────────────────────────────────────────────

def pairs(recipients):
    return [(r.role, r.tg_id) for r in recipients]


def test_created_goes_to_admins():
    assert pairs(resolve_recipients("booking_created", booking())) == [("admin", ADMIN_ID)]


def test_admin_booking_for_self_notifies_nobody():
    assert resolve_recipients("booking_created", booking(requester_id=ADMIN_ID)) == []


def test_client_cancel_goes_to_admins():
    recipients = resolve_recipients(
        "booking_cancelled", booking(), initiated_by="client", initiator_id=USER_ID
    )
    assert pairs(recipients) == [("admin", ADMIN_ID)]


def test_admin_cancel_goes_to_client_not_initiator(admin_ids):
    admin_ids.append(2002)
    recipients = resolve_recipients(
        "booking_cancelled", booking(), initiated_by="admin", initiator_id=ADMIN_ID
    )
    assert pairs(recipients) == [("client", USER_ID), ("admin", 2002)]


def test_reminder_goes_to_client():
    assert pairs(resolve_recipients("booking_reminder", booking())) == [("client", USER_ID)]


# ── formatters ───────────────────────────────────────────────────────────

def test_admin_notification_text():
    text = format_event("booking_created", booking(), "admin")
    assert text.splitlines() == [
        "<b>🆕 Новая запись</b>",
        "",
        "👤 Пользователь: @alice (Alice)",
        "📅 Дата: 28.01.2026 (Среда)",
        "⏰ Время: 10:00",
    ]


def test_client_cancel_text():
    text = format_event("booking_cancelled", booking(), "client")
    assert "администратором" in text
    assert text.endswith("Вы можете выбрать новую запись.")


def test_requester_label_is_escaped():
    assert format_requester(booking(requester_handle=None, requester_name="<b>Bob</b>")) == "&lt;b&gt;Bob&lt;/b&gt;"
    assert format_requester(booking(requester_handle=None, requester_name=None)) == str(USER_ID)


# ── delivery ─────────────────────────────────────────────────────────────

@pytest.fixture
def sent(monkeypatch):
    send = AsyncMock(return_value=True)
    monkeypatch.setattr(delivery, "_send_telegram", send)
    return send


async def test_reminder_is_marked_after_delivery(sent, fake_api):
    fake_api.get_booking.return_value = booking()
    fake_api.mark_reminded.return_value = True

    await events.process_event({"type": "booking_reminder", "booking_id": 7})

    assert sent.await_args.args[0] == USER_ID
    fake_api.mark_reminded.assert_awaited_once_with(7)


async def test_failed_reminder_is_not_marked(sent, fake_api):
    sent.return_value = False
    fake_api.get_booking.return_value = booking()

    await events.process_event({"type": "booking_reminder", "booking_id": 7})

    fake_api.mark_reminded.assert_not_awaited()


@pytest.mark.parametrize("state", [{"status": "cancelled"}, {"reminded_at": "2026-01-28T08:00:00"}])
async def test_stale_reminder_is_dropped(sent, fake_api, state):
    fake_api.get_booking.return_value = booking(**state)

    await events.process_event({"type": "booking_reminder", "booking_id": 7})

    sent.assert_not_awaited()
    fake_api.mark_reminded.assert_not_awaited()


async def test_admin_notification_has_cancel_button(sent, fake_api):
    fake_api.get_booking.return_value = booking()

    await events.process_event({"type": "booking_created", "booking_id": 7})

    tg_id, _, keyboard = sent.await_args.args
    assert tg_id == ADMIN_ID
    assert [b.callback_data for b in keyboard.inline_keyboard[0]] == ["bkn:cancel:7", "bkn:hide:7"]


async def test_broadcast_event_is_plain_text(sent):
    await events.process_event({"type": "broadcast_message", "tg_id": 5, "text": "<hi>"})

    sent.assert_awaited_once_with(5, "<hi>", parse_mode=None)


async def test_send_failure_is_reported(monkeypatch):
    from aiogram.exceptions import TelegramForbiddenError

    bot = AsyncMock()
    bot.send_message.side_effect = TelegramForbiddenError(method=AsyncMock(), message="blocked")
    monkeypatch.setattr(delivery, "_bot", bot)

    assert await delivery._send_telegram(5, "text") is False


# ── consumer ─────────────────────────────────────────────────────────────

@pytest.fixture
def redis_mock():
    return AsyncMock()


async def test_invalid_json_goes_to_dead_letter(redis_mock):
    await consumer.process_raw_event(redis_mock, "{oops", "q:retry", "q:dead")

    redis_mock.rpush.assert_awaited_once_with("q:dead", "{oops")


async def test_failed_event_is_retried_then_parked(redis_mock, monkeypatch):
    monkeypatch.setattr(events, "process_event", AsyncMock(side_effect=RuntimeError("boom")))

    await consumer.process_raw_event(redis_mock, json.dumps({"type": "x"}), "q:retry", "q:dead")
    queue, raw = redis_mock.rpush.await_args.args
    assert queue == "q:retry"
    assert json.loads(raw)["_attempt"] == 2

    last = json.dumps({"type": "x", "_attempt": consumer.MAX_RETRIES})
    await consumer.process_raw_event(redis_mock, last, "q:retry", "q:dead")
    assert redis_mock.rpush.await_args.args[0] == "q:dead"


async def test_handled_event_is_not_requeued(redis_mock, monkeypatch):
    handler = AsyncMock()
    monkeypatch.setattr(events, "process_event", handler)

    await consumer.process_raw_event(redis_mock, json.dumps({"type": "x"}), "q:retry", "q:dead")

    handler.assert_awaited_once_with({"type": "x"})
    redis_mock.rpush.assert_not_awaited()
