import sys, pathlib
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from sqlalchemy import text
from backend.app.database import SessionLocal
from backend.app.services.booking_store import BookingStore
from backend.app.services.slots import SlotStore


def main():
    db = SessionLocal()
    try:
        print("DB OK:", db.execute(text("SELECT 1")).scalar())
        slots = SlotStore(db)
        bookings = BookingStore(db)
        print("Slots:", len(slots.list_all()))
        print("Free slots:", slots.count_free())
        print("Active bookings:", bookings.count_confirmed())
        print("Requesters:", bookings.count_requesters())
    finally:
        db.close()


if __name__ == "__main__":
    main()
