# backend/app/init_db.py
"""
Schema creation and demo data.

Tables are created from the models (create_all). With SEED_DEMO_SLOTS
enabled, an empty slot table is filled with 7 days of hourly slots
09:00–18:00 starting today.
"""

import logging
from datetime import timedelta
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session

from .config import settings
from .models.generated import Base, Slots
from .services.slots import local_today

logger = logging.getLogger(__name__)

SEED_DAYS = 7
SEED_TIMES = [f"{h:02d}:00" for h in range(9, 19)]


def ensure_sqlite_dir(url: str) -> None:
    if not url.startswith("sqlite"):
        return
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_schema(engine: Engine) -> None:
    ensure_sqlite_dir(str(engine.url))
    Base.metadata.create_all(bind=engine)


def seed_demo_slots(db: Session, days: int = SEED_DAYS) -> int:
    """Fill an empty slot table. Returns the number of slots created."""
    if db.query(func.count(Slots.id)).scalar():
        return 0

    start = local_today(settings.tz_offset_minutes)
    slots = [
        Slots(date=start + timedelta(days=i), time=t, is_booked=False)
        for i in range(days)
        for t in SEED_TIMES
    ]
    db.add_all(slots)
    db.commit()
    logger.info(f"Seeded {len(slots)} demo slots from {start}")
    return len(slots)


def init_db(engine: Engine, seed: bool | None = None) -> None:
    create_schema(engine)

    if seed is None:
        seed = settings.seed_demo_slots
    if not seed:
        return

    with Session(engine) as db:
        seed_demo_slots(db)
