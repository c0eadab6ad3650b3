import json
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from backend.app.database import get_db, make_engine
from backend.app.init_db import create_schema
from backend.app import main as main_mod
from backend.app.main import app
from backend.app.services import events as events_mod
from backend.app.services import reminder_checker
from backend.app.services.slots import SlotStore, local_today


class FakeRedis:
    """In-memory stand-in for the few redis calls the backend makes."""

    def __init__(self):
        self.lists: dict[str, list[str]] = {}
        self.keys: dict[str, str] = {}
        self.fail_push = False

    def rpush(self, name, value):
        if self.fail_push:
            raise ConnectionError("redis down")
        self.lists.setdefault(name, []).append(value)
        return len(self.lists[name])

    def exists(self, name):
        return int(name in self.keys)

    def setex(self, name, ttl, value):
        self.keys[name] = value
        return True

    def delete(self, name):
        return int(self.keys.pop(name, None) is not None)

    def ping(self):
        return True

    def events(self, queue: str = events_mod.P2P_QUEUE) -> list[dict]:
        return [json.loads(raw) for raw in self.lists.get(queue, [])]


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(events_mod, "redis_client", fake)
    monkeypatch.setattr(reminder_checker, "redis_client", fake)
    monkeypatch.setattr(main_mod, "redis_client", fake)
    return fake


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    create_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Без `with`: lifespan (init_db на боевом движке, цикл напоминаний) не запускается
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def tomorrow():
    return local_today() + timedelta(days=1)


@pytest.fixture
def make_slots(db):
    def _make(day, *times):
        store = SlotStore(db)
        slots = [store.create(day, t) for t in times]
        db.commit()
        return slots
    return _make
