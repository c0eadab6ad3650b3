# backend/app/schemas/bookings.py

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, model_validator


class BookingCreate(BaseModel):
    requester_id: int
    requester_handle: Optional[str] = None
    requester_name: Optional[str] = None

    # Слот: по id или по дате и времени
    slot_id: Optional[int] = None
    slot_date: Optional[date] = None
    slot_time: Optional[str] = None

    @model_validator(mode="after")
    def check_slot_ref(self):
        if self.slot_id is None and (self.slot_date is None or self.slot_time is None):
            raise ValueError("slot_id or slot_date+slot_time required")
        return self


class BookingRead(BaseModel):
    id: int
    slot_id: int
    slot_date: date
    slot_time: str

    requester_id: int
    requester_handle: Optional[str] = None
    requester_name: Optional[str] = None

    status: str
    created_at: datetime
    reminded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingCancel(BaseModel):
    requester_id: Optional[int] = None
    as_admin: bool = False


class StatsRead(BaseModel):
    requesters: int
    active_bookings: int
    free_slots: int


class BroadcastCreate(BaseModel):
    text: str


class BroadcastResult(BaseModel):
    recipients: int
