from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, text
from sqlalchemy.sql import expression

from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"


class Slots(Base):
    __tablename__ = 'slots'
    __table_args__ = (
        UniqueConstraint('date', 'time', name='uq_slots_date_time'),
    )

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)  # HH:MM, локальное время салона
    is_booked = Column(Boolean, nullable=False, default=False, server_default=expression.false())

    bookings = relationship('Bookings', back_populates='slot', passive_deletes=True)


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # Не больше одной подтверждённой записи на слот
        Index(
            'uq_bookings_slot_confirmed',
            'slot_id',
            unique=True,
            sqlite_where=text("status = 'confirmed'"),
            postgresql_where=text("status = 'confirmed'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    slot_id = Column(ForeignKey('slots.id', ondelete='CASCADE'), nullable=False, index=True)
    requester_id = Column(BigInteger, nullable=False, index=True)
    requester_handle = Column(Text)
    requester_name = Column(Text)
    status = Column(Text, nullable=False, default=BOOKING_CONFIRMED, server_default=text("'confirmed'"))
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    reminded_at = Column(DateTime)

    slot = relationship('Slots', back_populates='bookings')

    @property
    def slot_date(self):
        return self.slot.date

    @property
    def slot_time(self):
        return self.slot.time
