"""
Reservation engine.

Owns every mutation that touches the slot/booking invariant:

    FREE  --reserve-->  BOOKED
    BOOKED --cancel-->  FREE
    FREE  --remove-->   DELETED      (BOOKED slots cannot be removed)

Each operation is a single transaction built from conditional updates,
so two interleaved reserve() calls on one slot cannot both succeed.
Notifications are emitted after commit and are best-effort.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..models.generated import Bookings, Slots
from .booking_store import BookingStore
from .events import emit_event
from .slots import SlotStore, local_now, normalize_times, slot_datetime

logger = logging.getLogger(__name__)

BATCH_ADD_ATTEMPTS = 3


# ==============================================================
# Errors
# ==============================================================

class ReservationError(Exception):
    """Base class for recoverable reservation outcomes."""
    code = "reservation_error"


class SlotUnavailableError(ReservationError):
    """Slot is booked, gone or already in the past."""
    code = "slot_unavailable"


class SlotNotFoundError(ReservationError):
    code = "slot_not_found"


class SlotBookedError(ReservationError):
    """Booked slot cannot be removed: cancel the booking first."""
    code = "slot_booked"


class DuplicateSlotError(ReservationError):
    code = "slot_exists"


class InvalidSlotError(ReservationError):
    code = "invalid_slot"


class BookingNotFoundError(ReservationError):
    """Unknown, foreign or already cancelled booking."""
    code = "booking_not_found"


@dataclass
class BatchAddResult:
    date: date
    created: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)


# ==============================================================
# Engine
# ==============================================================

class ReservationEngine:

    def __init__(self, db: Session, now: datetime | None = None):
        self.db = db
        self.slots = SlotStore(db)
        self.bookings = BookingStore(db)
        self._now = now

    @property
    def now(self) -> datetime:
        """Resource-local "now"; fixed when passed to the constructor."""
        return self._now or local_now(settings.tz_offset_minutes)

    # ------------------------------------------------------------------
    # reserve
    # ------------------------------------------------------------------

    def reserve(
        self,
        requester_id: int,
        slot_id: int | None = None,
        day: date | None = None,
        time: str | None = None,
        requester_handle: str | None = None,
        requester_name: str | None = None,
    ) -> Bookings:
        """
        Book a free slot for a requester.

        The slot is addressed by id or by (day, time).
        Raises SlotUnavailableError when the slot is missing, already
        booked (possibly by a concurrent request) or in the past.
        """
        if slot_id is not None:
            slot = self.slots.get(slot_id)
        elif day is not None and time is not None:
            slot = self.slots.get_by_datetime(day, time)
        else:
            raise InvalidSlotError("slot_id or (date, time) required")

        if slot is None:
            raise SlotUnavailableError("slot not found")

        if slot_datetime(slot.date, slot.time) < self.now:
            raise SlotUnavailableError("slot is in the past")

        slot_id = slot.id
        try:
            if not self.slots.set_booked(slot_id, True):
                self.db.rollback()
                raise SlotUnavailableError("slot already booked")

            booking = self.bookings.insert(
                slot_id=slot_id,
                requester_id=requester_id,
                requester_handle=requester_handle,
                requester_name=requester_name,
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise SlotUnavailableError("slot already booked")

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: slot={slot_id} requester={requester_id}"
        )

        emit_event("booking_created", {"booking_id": booking.id})
        return booking

    # ------------------------------------------------------------------
    # cancel
    # ------------------------------------------------------------------

    def cancel(
        self,
        booking_id: int,
        requester_id: int | None = None,
        as_admin: bool = False,
    ) -> Bookings:
        """
        Cancel a confirmed booking and free its slot.

        A requester may cancel only own bookings; admins may cancel any.
        Raises BookingNotFoundError for unknown, foreign or already
        cancelled bookings.
        """
        if requester_id is None and not as_admin:
            raise BookingNotFoundError("requester required")

        booking = self.bookings.get(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"booking {booking_id} not found")

        owner = None if as_admin else requester_id
        if not self.bookings.mark_cancelled(booking_id, requester_id=owner):
            self.db.rollback()
            raise BookingNotFoundError(f"booking {booking_id} not active")

        if not self.slots.set_booked(booking.slot_id, False):
            logger.warning(
                f"Booking {booking_id} cancelled but slot {booking.slot_id} was not booked"
            )
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking_id} cancelled (admin={as_admin})")

        emit_event(
            "booking_cancelled",
            {
                "booking_id": booking_id,
                "initiated_by": "admin" if as_admin else "client",
                "initiator_id": requester_id,
            },
        )
        return booking

    # ------------------------------------------------------------------
    # slot inventory
    # ------------------------------------------------------------------

    def add_slots(self, day: date, times: list[str]) -> BatchAddResult:
        """
        Batch add: new times are created, existing ones reported back.

        Literal repeats in `times` collapse to a single time.
        """
        if day < self.now.date():
            raise InvalidSlotError("date is in the past")

        try:
            times = normalize_times(times)
        except ValueError as e:
            raise InvalidSlotError(str(e))

        if not times:
            raise InvalidSlotError("no times given")

        # Параллельное добавление тех же времён: откат и пересчёт дубликатов
        for attempt in range(1, BATCH_ADD_ATTEMPTS + 1):
            try:
                created, duplicates = self.slots.create_batch(day, times)
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"Concurrent slot insert on {day} (attempt {attempt})")
        else:
            raise DuplicateSlotError(f"slots on {day} are being changed concurrently")

        logger.info(
            f"Slots added on {day}: created={[s.time for s in created]} duplicates={duplicates}"
        )
        return BatchAddResult(date=day, created=[s.time for s in created], duplicates=duplicates)

    def add_slot(self, day: date, time: str) -> Slots:
        result = self.add_slots(day, [time])
        if not result.created:
            raise DuplicateSlotError(f"slot {day} {time} already exists")
        return self.slots.get_by_datetime(day, result.created[0])

    def remove_slot(self, slot_id: int) -> tuple[date, str]:
        """
        Delete a free slot. Returns (date, time) of the removed slot.

        Historical (cancelled) bookings go with it (ON DELETE CASCADE).
        """
        slot = self.slots.get(slot_id)
        if slot is None:
            raise SlotNotFoundError(f"slot {slot_id} not found")

        day, time = slot.date, slot.time
        if slot.is_booked:
            raise SlotBookedError(f"slot {day} {time} is booked")

        if not self.slots.delete(slot_id):
            # Забронировали между чтением и удалением
            self.db.rollback()
            raise SlotBookedError(f"slot {day} {time} is booked")

        self.db.commit()
        logger.info(f"Slot {slot_id} removed: {day} {time}")
        return day, time

    def remove_slot_at(self, day: date, time: str) -> tuple[date, str]:
        slot = self.slots.get_by_datetime(day, time)
        if slot is None:
            raise SlotNotFoundError(f"slot {day} {time} not found")
        return self.remove_slot(slot.id)
