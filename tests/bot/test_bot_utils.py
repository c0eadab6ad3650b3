import json
from datetime import date

import httpx
import pytest

from bot.app.auth import load_admin_ids
from bot.app.config import Settings
from bot.app.flows.admin.bookings_list import format_day_list, format_grouped_list, month_range
from bot.app.i18n import loader
from bot.app.i18n.loader import t
from bot.app.keyboards.calendar import (
    calendar_inline,
    day_button,
    month_weeks,
    parse_month_callback,
    shift_month,
)
from bot.app.utils import api as api_mod
from bot.app.utils.api import ApiClient
from bot.app.utils.dates import format_dmy, weekday_full
from bot.app.utils.slot_times import parse_times, split_existing


# ── slot times ───────────────────────────────────────────────────────────

def test_parse_times_collapses_repeats():
    parsed = parse_times("09:00 09:00  10:00")
    assert parsed.times == ["09:00", "10:00"]
    assert parsed.invalid == []
    assert parsed.ok


@pytest.mark.parametrize("token", ["24:00", "9:00", "09:60", "0900", "09:00am"])
def test_parse_times_rejects(token):
    parsed = parse_times(f"10:00 {token}")
    assert parsed.invalid == [token]
    assert not parsed.ok


def test_parse_times_bounds():
    assert parse_times("00:00 23:59").times == ["00:00", "23:59"]
    assert not parse_times("   ").ok


def test_split_existing_keeps_order():
    assert split_existing(["12:00", "10:00", "11:00"], {"10:00"}) == (["12:00", "11:00"], ["10:00"])


# ── calendar ─────────────────────────────────────────────────────────────

def test_shift_month_crosses_year():
    assert shift_month(2026, 12, 1) == (2027, 1)
    assert shift_month(2026, 1, -1) == (2025, 12)
    assert shift_month(2026, 5, 0) == (2026, 5)


def test_month_weeks_start_on_monday():
    weeks = month_weeks(2026, 1)  # 1 января 2026 года: четверг
    assert weeks[0] == [0, 0, 0, 1, 2, 3, 4]
    with pytest.raises(ValueError):
        month_weeks(2026, 13)


def test_day_button_client_mode():
    today = date(2026, 1, 10)
    marked = {"2026-01-12"}
    assert day_button(date(2026, 1, 9), today, marked, True) == ("❌9", False)
    assert day_button(date(2026, 1, 11), today, marked, True) == ("❌11", False)
    assert day_button(date(2026, 1, 12), today, marked, True) == ("12", True)


def test_day_button_admin_mode():
    today = date(2026, 1, 10)
    marked = {"2026-01-12"}
    assert day_button(date(2026, 1, 9), today, marked, False) == ("❌9", False)
    assert day_button(date(2026, 1, 11), today, marked, False) == ("11", True)
    assert day_button(date(2026, 1, 12), today, marked, False) == ("📅12", True)


def test_calendar_callbacks():
    kb = calendar_inline(2026, 1, date(2026, 1, 10), {"2026-01-12"}, "ru", "book")
    callbacks = [b.callback_data for row in kb.inline_keyboard for b in row]

    assert kb.inline_keyboard[0][0].text == f"{t('calendar:month:1')} 2026"
    assert "book:day:2026-01-12" in callbacks
    assert not any(c.startswith("book:day:") and c != "book:day:2026-01-12" for c in callbacks)
    assert "book:month:2025:12" in callbacks
    assert "book:month:2026:2" in callbacks
    assert callbacks[-1] == "book:back"


def test_parse_month_callback():
    assert parse_month_callback("book:month:2026:3") == (2026, 3)
    with pytest.raises(ValueError):
        parse_month_callback("book:month:2026:13")
    with pytest.raises(ValueError):
        parse_month_callback("book:month:x")


# ── dates, texts ─────────────────────────────────────────────────────────

def test_russian_dates():
    assert format_dmy("2026-01-28") == "28.01.2026"
    assert weekday_full(date(2026, 2, 1)) == "Воскресенье"


def test_translation_substitution():
    assert t("notify:time", "ru", "10:00") == "⏰ Время: 10:00"
    assert t("no:such:key") == "no:such:key"


def test_messages_file_format(tmp_path, monkeypatch):
    monkeypatch.setattr(loader, "MESSAGES", {})
    path = tmp_path / "messages.txt"
    path.write_text(
        "# comment\n"
        "ru:greet | \"Привет, %s!\\nДобро пожаловать\"\n"
        "not a message line\n",
        encoding="utf-8",
    )

    loader.load_messages(path)

    assert loader.MESSAGES == {"ru": {"greet": "Привет, %s!\nДобро пожаловать"}}
    assert t("greet", "en", "Аня") == "Привет, Аня!\nДобро пожаловать"
    assert t("greet", "ru", "a", "b") == "Привет, %s!\nДобро пожаловать"


# ── admin listings ───────────────────────────────────────────────────────

def listed(day, time_str, handle="bob", name="Bob"):
    return {"slot_date": day, "slot_time": time_str, "requester_handle": handle, "requester_name": name}


def test_day_list():
    text = format_day_list([listed("2026-01-28", "09:00"), listed("2026-01-28", "10:00", None, "Ann")])
    assert text == "09:00 — @bob (Bob)\n10:00 — — (Ann)"


def test_grouped_list():
    text = format_grouped_list([
        listed("2026-01-28", "09:00"),
        listed("2026-01-28", "10:00"),
        listed("2026-01-29", "09:00"),
    ])
    blocks = text.split("\n\n")
    assert blocks[0].splitlines()[0] == "📅 28.01.2026 (Среда)"
    assert len(blocks[0].splitlines()) == 3
    assert blocks[1].startswith("📅 29.01.2026 (Четверг)")


def test_month_range():
    assert month_range(date(2026, 2, 10)) == (date(2026, 2, 10), date(2026, 2, 28))
    assert month_range(date(2028, 2, 29)) == (date(2028, 2, 29), date(2028, 2, 29))


# ── admin ids ────────────────────────────────────────────────────────────

def test_admin_ids_merged_from_all_sources(tmp_path):
    config = tmp_path / "bot.json"
    config.write_text(json.dumps({"ADMIN_IDS": [3, 1], "ADMIN_ID": 4}), encoding="utf-8")

    cfg = Settings(TG_BOT_TOKEN="1:x", ADMIN_IDS="1, 2,bad", ADMIN_ID=2, BOT_CONFIG_FILE=config)

    assert load_admin_ids(cfg) == [1, 2, 3, 4]


def test_missing_config_file_is_ignored(tmp_path):
    cfg = Settings(TG_BOT_TOKEN="1:x", ADMIN_IDS="", BOT_CONFIG_FILE=tmp_path / "nope.json")
    assert load_admin_ids(cfg) == []


# ── api client ───────────────────────────────────────────────────────────

def client_returning(monkeypatch, response=None, error=None):
    client = ApiClient("http://backend")

    async def send(method, path, **kwargs):
        if error:
            raise error
        return response

    monkeypatch.setattr(client, "_send", send)
    return client


@pytest.mark.parametrize(
    "code,status",
    [(201, api_mod.OK), (409, api_mod.UNAVAILABLE), (404, api_mod.NOT_FOUND),
     (422, api_mod.INVALID), (500, api_mod.ERROR)],
)
async def test_result_status_mapping(monkeypatch, code, status):
    client = client_returning(monkeypatch, httpx.Response(code, json={"detail": "x"}))
    result = await client.reserve(1, "2026-01-28", "10:00")
    assert result.status == status


async def test_transport_error_never_raises(monkeypatch):
    client = client_returning(monkeypatch, error=httpx.ConnectError("down"))

    assert await client.get_slots() == []
    assert await client.get_slot_dates() == []
    assert await client.get_stats() is None
    assert await client.broadcast("hi") is None
    assert (await client.cancel_booking(1, requester_id=2)).status == api_mod.ERROR


async def test_broadcast_returns_count(monkeypatch):
    client = client_returning(monkeypatch, httpx.Response(200, json={"recipients": 4}))
    assert await client.broadcast("hi") == 4
