# backend/app/schemas/slots.py

from datetime import date
from pydantic import BaseModel, Field


class SlotCreate(BaseModel):
    date: date
    time: str


class SlotBatchCreate(BaseModel):
    date: date
    times: list[str] = Field(min_length=1)


class SlotRead(BaseModel):
    id: int
    date: date
    time: str
    is_booked: bool

    model_config = {"from_attributes": True}


class SlotBatchResult(BaseModel):
    date: date
    created: list[str]
    duplicates: list[str]


class SlotDatesResponse(BaseModel):
    dates: list[date]


class SlotRemoved(BaseModel):
    date: date
    time: str
