from .generated import Base, Bookings, Slots, BOOKING_CANCELLED, BOOKING_CONFIRMED

__all__ = ["Base", "Bookings", "Slots", "BOOKING_CANCELLED", "BOOKING_CONFIRMED"]
