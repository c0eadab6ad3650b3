# backend/app/services/slots/times.py
"""
Slot time helpers.

Slot times are stored as "HH:MM" strings in resource-local time.
"Local now" is UTC shifted by the configured offset (minutes).
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterable

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def is_valid_time(value: str) -> bool:
    """Strict HH:MM check (00:00..23:59)."""
    return bool(TIME_RE.match(value or ""))


def normalize_times(times: Iterable[str]) -> list[str]:
    """
    Validate and de-duplicate requested times, keeping input order.

    Raises ValueError listing every malformed token.
    """
    cleaned = [str(t).strip() for t in times]
    invalid = [t for t in cleaned if not is_valid_time(t)]
    if invalid:
        raise ValueError(f"invalid time format: {', '.join(invalid)}")

    result: list[str] = []
    for t in cleaned:
        if t not in result:
            result.append(t)
    return result


def local_now(offset_minutes: int = 0) -> datetime:
    """Naive local datetime of the resource."""
    return datetime.utcnow() + timedelta(minutes=offset_minutes)


def local_today(offset_minutes: int = 0) -> date:
    return local_now(offset_minutes).date()


def slot_datetime(day: date, time_str: str) -> datetime:
    """Combine slot date and HH:MM into a naive local datetime."""
    return datetime.strptime(f"{day.isoformat()} {time_str}", "%Y-%m-%d %H:%M")
