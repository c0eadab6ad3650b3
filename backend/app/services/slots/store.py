# backend/app/services/slots/store.py
"""
Slot Store: table of bookable (date, time) units.

Session-bound; never commits. Transactions belong to the caller
(ReservationEngine or router).
"""

from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models.generated import Slots


class SlotStore:
    """Persistence wrapper for `slots`."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, from_date: date | None = None):
        query = self.db.query(Slots)
        if from_date is not None:
            query = query.filter(Slots.date >= from_date)
        return query

    # ── Read ─────────────────────────────────────────────────────────────

    def get(self, slot_id: int) -> Slots | None:
        return self.db.get(Slots, slot_id)

    def get_by_datetime(self, day: date, time_str: str) -> Slots | None:
        return (
            self.db.query(Slots)
            .filter(Slots.date == day, Slots.time == time_str)
            .first()
        )

    def list_all(self, from_date: date | None = None) -> list[Slots]:
        return self._query(from_date).order_by(Slots.date, Slots.time).all()

    def list_available(self, from_date: date | None = None) -> list[Slots]:
        return (
            self._query(from_date)
            .filter(Slots.is_booked.is_(False))
            .order_by(Slots.date, Slots.time)
            .all()
        )

    def list_by_date(self, day: date) -> list[Slots]:
        return self.db.query(Slots).filter(Slots.date == day).order_by(Slots.time).all()

    def list_available_by_date(self, day: date) -> list[Slots]:
        return (
            self.db.query(Slots)
            .filter(Slots.date == day, Slots.is_booked.is_(False))
            .order_by(Slots.time)
            .all()
        )

    def list_dates_with_availability(self, from_date: date | None = None) -> list[date]:
        query = self.db.query(Slots.date).filter(Slots.is_booked.is_(False))
        if from_date is not None:
            query = query.filter(Slots.date >= from_date)
        return [row.date for row in query.distinct().order_by(Slots.date).all()]

    def list_dates_with_slots(self, from_date: date | None = None) -> list[date]:
        query = self.db.query(Slots.date)
        if from_date is not None:
            query = query.filter(Slots.date >= from_date)
        return [row.date for row in query.distinct().order_by(Slots.date).all()]

    def existing_times(self, day: date) -> set[str]:
        return {row.time for row in self.db.query(Slots.time).filter(Slots.date == day).all()}

    def count_free(self) -> int:
        return (
            self.db.query(func.count(Slots.id))
            .filter(Slots.is_booked.is_(False))
            .scalar()
        ) or 0

    # ── Write ────────────────────────────────────────────────────────────

    def create(self, day: date, time_str: str) -> Slots:
        slot = Slots(date=day, time=time_str, is_booked=False)
        self.db.add(slot)
        self.db.flush()
        return slot

    def create_batch(self, day: date, times: list[str]) -> tuple[list[Slots], list[str]]:
        """
        Insert the times that do not exist yet on `day`.

        Returns (created slots, times that already existed).
        `times` must already be validated and de-duplicated.
        """
        existing = self.existing_times(day)
        duplicates = [t for t in times if t in existing]
        created = [Slots(date=day, time=t, is_booked=False) for t in times if t not in existing]
        if created:
            self.db.add_all(created)
            self.db.flush()
        return created, duplicates

    def delete(self, slot_id: int) -> bool:
        """Delete a slot only while it is not booked."""
        deleted = (
            self.db.query(Slots)
            .filter(Slots.id == slot_id, Slots.is_booked.is_(False))
            .delete(synchronize_session=False)
        )
        return deleted == 1

    def set_booked(self, slot_id: int, booked: bool) -> bool:
        """
        Conditional flip of the booked flag.

        UPDATE slots SET is_booked=:booked WHERE id=:id AND is_booked=:not_booked
        Returns True only if this call changed the row.
        """
        updated = (
            self.db.query(Slots)
            .filter(Slots.id == slot_id, Slots.is_booked.is_(not booked))
            .update({Slots.is_booked: booked}, synchronize_session="fetch")
        )
        return updated == 1
