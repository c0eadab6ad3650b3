"""
Booking Store: reservations referencing a slot.

Session-bound; never commits. All status mutations are conditional
updates so that concurrent callers cannot both succeed.
"""

from datetime import date, datetime

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session, contains_eager, joinedload

from ..models.generated import BOOKING_CANCELLED, BOOKING_CONFIRMED, Bookings, Slots


def window_predicate(start: datetime, end: datetime):
    """
    SQL predicate "slot (date, time) within [start, end]".

    A window crossing midnight is split into the before-midnight tail,
    whole days in between and the after-midnight head.
    """
    start_day, start_time = start.date(), start.strftime("%H:%M")
    end_day, end_time = end.date(), end.strftime("%H:%M")

    if start_day == end_day:
        return and_(Slots.date == start_day, Slots.time >= start_time, Slots.time <= end_time)

    return or_(
        and_(Slots.date == start_day, Slots.time >= start_time),
        and_(Slots.date > start_day, Slots.date < end_day),
        and_(Slots.date == end_day, Slots.time <= end_time),
    )


class BookingStore:
    """Persistence wrapper for `bookings`."""

    def __init__(self, db: Session):
        self.db = db

    def _confirmed_with_slot(self):
        return (
            self.db.query(Bookings)
            .join(Slots, Bookings.slot_id == Slots.id)
            .options(contains_eager(Bookings.slot))
            .filter(Bookings.status == BOOKING_CONFIRMED)
        )

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, booking_id: int) -> Bookings | None:
        return self.db.get(Bookings, booking_id)

    def get_with_slot(self, booking_id: int) -> Bookings | None:
        return (
            self.db.query(Bookings)
            .options(joinedload(Bookings.slot))
            .filter(Bookings.id == booking_id)
            .first()
        )

    def list_active_for_requester(
        self, requester_id: int, from_date: date | None = None
    ) -> list[Bookings]:
        query = self._confirmed_with_slot().filter(Bookings.requester_id == requester_id)
        if from_date is not None:
            query = query.filter(Slots.date >= from_date)
        return query.order_by(Slots.date, Slots.time).all()

    def list_confirmed_between(self, date_from: date, date_to: date) -> list[Bookings]:
        return (
            self._confirmed_with_slot()
            .filter(Slots.date >= date_from, Slots.date <= date_to)
            .order_by(Slots.date, Slots.time)
            .all()
        )

    def list_due_for_reminder(self, start: datetime, end: datetime) -> list[Bookings]:
        """Confirmed, not yet reminded bookings whose slot falls into the window."""
        return (
            self._confirmed_with_slot()
            .filter(Bookings.reminded_at.is_(None), window_predicate(start, end))
            .order_by(Slots.date, Slots.time)
            .all()
        )

    def list_requester_ids(self) -> list[int]:
        rows = (
            self.db.query(Bookings.requester_id)
            .distinct()
            .order_by(Bookings.requester_id)
            .all()
        )
        return [row.requester_id for row in rows]

    def count_requesters(self) -> int:
        return self.db.query(func.count(func.distinct(Bookings.requester_id))).scalar() or 0

    def count_confirmed(self) -> int:
        return (
            self.db.query(func.count(Bookings.id))
            .filter(Bookings.status == BOOKING_CONFIRMED)
            .scalar()
        ) or 0

    # ── Write ────────────────────────────────────────────────────────────

    def insert(
        self,
        slot_id: int,
        requester_id: int,
        requester_handle: str | None = None,
        requester_name: str | None = None,
    ) -> Bookings:
        booking = Bookings(
            slot_id=slot_id,
            requester_id=requester_id,
            requester_handle=requester_handle,
            requester_name=requester_name,
            status=BOOKING_CONFIRMED,
            created_at=datetime.utcnow(),
        )
        self.db.add(booking)
        self.db.flush()
        return booking

    def mark_cancelled(self, booking_id: int, requester_id: int | None = None) -> bool:
        """confirmed → cancelled; ownership checked when requester_id is given."""
        query = self.db.query(Bookings).filter(
            Bookings.id == booking_id,
            Bookings.status == BOOKING_CONFIRMED,
        )
        if requester_id is not None:
            query = query.filter(Bookings.requester_id == requester_id)
        updated = query.update({Bookings.status: BOOKING_CANCELLED}, synchronize_session="fetch")
        return updated == 1

    def mark_reminded(self, booking_id: int, at: datetime) -> bool:
        """Set reminded_at once; a second call is a no-op."""
        updated = (
            self.db.query(Bookings)
            .filter(
                Bookings.id == booking_id,
                Bookings.status == BOOKING_CONFIRMED,
                Bookings.reminded_at.is_(None),
            )
            .update({Bookings.reminded_at: at}, synchronize_session="fetch")
        )
        return updated == 1
