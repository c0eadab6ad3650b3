# backend/app/services/slots/__init__.py
"""
Slots module.

SlotStore: persistent (date, time) units with a booked flag
times: HH:MM validation and resource-local clock
"""

from .store import SlotStore
from .times import (
    is_valid_time,
    local_now,
    local_today,
    normalize_times,
    slot_datetime,
)

__all__ = [
    "SlotStore",
    "is_valid_time",
    "local_now",
    "local_today",
    "normalize_times",
    "slot_datetime",
]
