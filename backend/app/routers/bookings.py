# backend/app/routers/bookings.py
# Бронирования не редактируются и не удаляются: только создание и отмена.

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRead,
)
from ..services.booking_store import BookingStore
from ..services.reservation import (
    BookingNotFoundError,
    InvalidSlotError,
    ReservationEngine,
    SlotUnavailableError,
)
from ..services.slots import local_now

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=list[BookingRead])
def list_bookings(
    date_from: date | None = None,
    date_to: date | None = None,
    db: Session = Depends(get_db),
):
    """Confirmed bookings between two dates (inclusive), ordered by slot."""
    today = local_now(settings.tz_offset_minutes).date()
    date_from = date_from or today
    date_to = date_to or date_from
    if date_to < date_from:
        raise HTTPException(status_code=400, detail="date_to before date_from")
    return BookingStore(db).list_confirmed_between(date_from, date_to)


@router.get("/requesters", response_model=list[int])
def list_requesters(db: Session = Depends(get_db)):
    """Everyone who has ever booked (broadcast audience)."""
    return BookingStore(db).list_requester_ids()


@router.get("/by-requester/{requester_id}", response_model=list[BookingRead])
def list_requester_bookings(requester_id: int, db: Session = Depends(get_db)):
    today = local_now(settings.tz_offset_minutes).date()
    return BookingStore(db).list_active_for_requester(requester_id, from_date=today)


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, db: Session = Depends(get_db)):
    obj = BookingStore(db).get_with_slot(id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    return obj


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
):
    engine = ReservationEngine(db)
    try:
        return engine.reserve(
            requester_id=data.requester_id,
            slot_id=data.slot_id,
            day=data.slot_date,
            time=data.slot_time,
            requester_handle=data.requester_handle,
            requester_name=data.requester_name,
        )
    except SlotUnavailableError as e:
        raise HTTPException(status_code=409, detail=e.code)
    except InvalidSlotError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel,
    db: Session = Depends(get_db),
):
    engine = ReservationEngine(db)
    try:
        return engine.cancel(id, requester_id=data.requester_id, as_admin=data.as_admin)
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")


@router.post("/{id}/reminded", response_model=BookingRead)
def mark_booking_reminded(id: int, db: Session = Depends(get_db)):
    """Record a delivered reminder. Repeated calls keep the first timestamp."""
    store = BookingStore(db)
    obj = store.get(id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")

    store.mark_reminded(id, datetime.utcnow())
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}")
def delete_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )
