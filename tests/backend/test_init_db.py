from datetime import timedelta

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from backend.app.init_db import SEED_DAYS, SEED_TIMES, init_db, seed_demo_slots
from backend.app.services.slots import SlotStore, local_today


def test_init_creates_tables(engine):
    assert {"slots", "bookings"} <= set(inspect(engine).get_table_names())


def test_seed_fills_empty_table_once(engine):
    init_db(engine, seed=True)

    with Session(engine) as db:
        slots = SlotStore(db).list_all()
        assert len(slots) == SEED_DAYS * len(SEED_TIMES) == 70
        assert slots[0].date == local_today()
        assert slots[-1].date == local_today() + timedelta(days=SEED_DAYS - 1)
        assert [s.time for s in slots[:len(SEED_TIMES)]] == SEED_TIMES

        assert seed_demo_slots(db) == 0


def test_no_seed_by_default(engine):
    init_db(engine, seed=False)

    with Session(engine) as db:
        assert SlotStore(db).list_all() == []


def test_existing_slots_are_not_reseeded(engine, make_slots, tomorrow):
    make_slots(tomorrow, "10:00")

    with Session(engine) as db:
        assert seed_demo_slots(db) == 0
        assert len(SlotStore(db).list_all()) == 1
