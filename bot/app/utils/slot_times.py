"""
bot/app/utils/slot_times.py

Разбор времён слотов, введённых админом.

Строгий формат HH:MM (00:00–23:59), токены через пробел.
"""

import re
from dataclasses import dataclass, field

TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass
class ParsedTimes:
    times: list[str] = field(default_factory=list)    # валидные, без повторов
    invalid: list[str] = field(default_factory=list)  # отвергнутые токены

    @property
    def ok(self) -> bool:
        return bool(self.times) and not self.invalid


def is_valid_time(value: str) -> bool:
    return bool(TIME_RE.match(value))


def parse_times(text: str) -> ParsedTimes:
    """
    "09:00 09:00 10:00" → times=["09:00", "10:00"].

    Any malformed token makes the whole input invalid; repeats collapse.
    """
    result = ParsedTimes()
    for token in (text or "").split():
        if not is_valid_time(token):
            result.invalid.append(token)
        elif token not in result.times:
            result.times.append(token)
    return result


def split_existing(times: list[str], existing: set[str] | list[str]) -> tuple[list[str], list[str]]:
    """Split requested times into (new, already existing), keeping order."""
    existing = set(existing)
    new = [t for t in times if t not in existing]
    duplicates = [t for t in times if t in existing]
    return new, duplicates
