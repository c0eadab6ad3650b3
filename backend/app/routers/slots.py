# backend/app/routers/slots.py
"""
Slots API endpoints.

GET    /slots         - future slots (all or only free)
GET    /slots/day     - slots of one day
GET    /slots/dates   - days that have (free) slots
POST   /slots         - add one slot
POST   /slots/batch   - add several times on one day
DELETE /slots/{id}    - remove a free slot
DELETE /slots         - remove a free slot by date and time
"""

from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas.slots import (
    SlotBatchCreate,
    SlotBatchResult,
    SlotCreate,
    SlotDatesResponse,
    SlotRead,
    SlotRemoved,
)
from ..services.reservation import (
    DuplicateSlotError,
    InvalidSlotError,
    ReservationEngine,
    SlotBookedError,
    SlotNotFoundError,
)
from ..services.slots import SlotStore, local_now


router = APIRouter(prefix="/slots", tags=["slots"])


@router.get("", response_model=list[SlotRead])
def list_slots(
    available_only: bool = True,
    from_date: date | None = None,
    db: Session = Depends(get_db),
):
    store = SlotStore(db)
    if from_date is None:
        from_date = local_now(settings.tz_offset_minutes).date()
    if available_only:
        return store.list_available(from_date)
    return store.list_all(from_date)


@router.get("/day", response_model=list[SlotRead])
def get_slots_day(
    target_date: date = Query(..., alias="date"),
    available_only: bool = True,
    db: Session = Depends(get_db),
):
    """Slots of a day. Free-slot view of today hides times that have started."""
    store = SlotStore(db)
    slots = store.list_available_by_date(target_date) if available_only else store.list_by_date(target_date)

    now = local_now(settings.tz_offset_minutes)
    if available_only and target_date == now.date():
        current = now.strftime("%H:%M")
        slots = [s for s in slots if s.time > current]
    return slots


@router.get("/dates", response_model=SlotDatesResponse)
def get_slot_dates(
    available_only: bool = True,
    from_date: date | None = None,
    db: Session = Depends(get_db),
):
    store = SlotStore(db)
    if from_date is None:
        from_date = local_now(settings.tz_offset_minutes).date()
    if available_only:
        dates = store.list_dates_with_availability(from_date)
    else:
        dates = store.list_dates_with_slots(from_date)
    return SlotDatesResponse(dates=dates)


@router.post("", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
def create_slot(data: SlotCreate, db: Session = Depends(get_db)):
    engine = ReservationEngine(db)
    try:
        return engine.add_slot(data.date, data.time)
    except DuplicateSlotError as e:
        raise HTTPException(status_code=409, detail=e.code)
    except InvalidSlotError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/batch", response_model=SlotBatchResult, status_code=status.HTTP_201_CREATED)
def create_slots_batch(data: SlotBatchCreate, db: Session = Depends(get_db)):
    engine = ReservationEngine(db)
    try:
        result = engine.add_slots(data.date, data.times)
    except DuplicateSlotError as e:
        raise HTTPException(status_code=409, detail=e.code)
    except InvalidSlotError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return SlotBatchResult(date=result.date, created=result.created, duplicates=result.duplicates)


@router.delete("/{id}", response_model=SlotRemoved)
def delete_slot(id: int, db: Session = Depends(get_db)):
    engine = ReservationEngine(db)
    try:
        day, time = engine.remove_slot(id)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except SlotBookedError as e:
        raise HTTPException(status_code=409, detail=e.code)
    return SlotRemoved(date=day, time=time)


@router.delete("", response_model=SlotRemoved)
def delete_slot_at(
    target_date: date = Query(..., alias="date"),
    time: str = Query(...),
    db: Session = Depends(get_db),
):
    engine = ReservationEngine(db)
    try:
        day, removed_time = engine.remove_slot_at(target_date, time)
    except SlotNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    except SlotBookedError as e:
        raise HTTPException(status_code=409, detail=e.code)
    return SlotRemoved(date=day, time=removed_time)
