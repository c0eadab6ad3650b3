"""
bot/app/utils/dates.py

Даты в локальном времени салона и их отображение по-русски.
"""

from datetime import date, datetime, timedelta

from bot.app.config import TZ_OFFSET_MINUTES

WEEKDAYS_FULL = ["Понедельник", "Вторник", "Среда", "Четверг", "Пятница", "Суббота", "Воскресенье"]
WEEKDAYS_SHORT = ["Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"]


def local_now() -> datetime:
    return datetime.utcnow() + timedelta(minutes=TZ_OFFSET_MINUTES)


def local_today() -> date:
    return local_now().date()


def parse_date(value: str | date) -> date:
    """'YYYY-MM-DD' → date."""
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_dmy(value: str | date) -> str:
    """'2026-01-28' → '28.01.2026'."""
    return parse_date(value).strftime("%d.%m.%Y")


def weekday_full(value: str | date) -> str:
    return WEEKDAYS_FULL[parse_date(value).weekday()]
