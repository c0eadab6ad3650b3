from datetime import timedelta

import redis
from sqlalchemy.exc import IntegrityError

from backend.app.services import events as events_mod
from backend.app.services.slots import SlotStore


def add_slots(client, day, *times):
    resp = client.post("/slots/batch", json={"date": str(day), "times": list(times)})
    assert resp.status_code == 201
    return resp.json()


def reserve(client, day, time_str, requester_id=42, **extra):
    return client.post(
        "/bookings",
        json={"requester_id": requester_id, "slot_date": str(day), "slot_time": time_str, **extra},
    )


# ── slots ────────────────────────────────────────────────────────────────

def test_batch_add_and_listing(client, tomorrow):
    assert add_slots(client, tomorrow, "10:00", "09:00", "09:00") == {
        "date": str(tomorrow),
        "created": ["10:00", "09:00"],
        "duplicates": [],
    }
    assert add_slots(client, tomorrow, "09:00", "11:00")["duplicates"] == ["09:00"]

    day = client.get("/slots/day", params={"date": str(tomorrow)}).json()
    assert [s["time"] for s in day] == ["09:00", "10:00", "11:00"]

    dates = client.get("/slots/dates").json()
    assert dates == {"dates": [str(tomorrow)]}


def test_batch_add_invalid_time(client, tomorrow):
    resp = client.post("/slots/batch", json={"date": str(tomorrow), "times": ["10:00", "1000"]})
    assert resp.status_code == 422

    resp = client.post("/slots/batch", json={"date": str(tomorrow), "times": []})
    assert resp.status_code == 422


def test_single_slot_duplicate(client, tomorrow):
    body = {"date": str(tomorrow), "time": "10:00"}
    assert client.post("/slots", json=body).status_code == 201

    resp = client.post("/slots", json=body)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "slot_exists"


def test_booked_slots_hidden_from_free_views(client, tomorrow):
    add_slots(client, tomorrow, "10:00", "11:00")
    assert reserve(client, tomorrow, "10:00").status_code == 201

    free = client.get("/slots").json()
    assert [s["time"] for s in free] == ["11:00"]

    everything = client.get("/slots", params={"available_only": "false"}).json()
    assert [(s["time"], s["is_booked"]) for s in everything] == [("10:00", True), ("11:00", False)]

    reserve(client, tomorrow, "11:00", requester_id=43)
    assert client.get("/slots/dates").json() == {"dates": []}
    assert client.get("/slots/dates", params={"available_only": "false"}).json() == {
        "dates": [str(tomorrow)]
    }


def test_delete_slot(client, tomorrow):
    added = add_slots(client, tomorrow, "10:00", "11:00")
    assert added["created"] == ["10:00", "11:00"]
    slots = client.get("/slots").json()
    booked_id, free_id = slots[0]["id"], slots[1]["id"]
    reserve(client, tomorrow, "10:00")

    resp = client.delete(f"/slots/{booked_id}")
    assert resp.status_code == 409
    assert resp.json()["detail"] == "slot_booked"

    resp = client.delete(f"/slots/{free_id}")
    assert resp.status_code == 200
    assert resp.json() == {"date": str(tomorrow), "time": "11:00"}

    assert client.delete(f"/slots/{free_id}").status_code == 404


def test_delete_slot_by_date_and_time(client, tomorrow):
    add_slots(client, tomorrow, "10:00")

    resp = client.delete("/slots", params={"date": str(tomorrow), "time": "10:00"})
    assert resp.status_code == 200

    resp = client.delete("/slots", params={"date": str(tomorrow), "time": "10:00"})
    assert resp.status_code == 404


# ── bookings ─────────────────────────────────────────────────────────────

def test_reserve_and_conflict(client, tomorrow, fake_redis):
    add_slots(client, tomorrow, "10:00")

    resp = reserve(client, tomorrow, "10:00", requester_handle="alice", requester_name="Alice")
    assert resp.status_code == 201
    booking = resp.json()
    assert booking["slot_date"] == str(tomorrow)
    assert booking["slot_time"] == "10:00"
    assert booking["status"] == "confirmed"
    assert booking["reminded_at"] is None

    resp = reserve(client, tomorrow, "10:00", requester_id=43)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "slot_unavailable"

    assert [e["type"] for e in fake_redis.events()] == ["booking_created"]


def test_reserve_needs_slot_reference(client):
    resp = client.post("/bookings", json={"requester_id": 1})
    assert resp.status_code == 422


def test_requester_bookings_and_cancel(client, tomorrow):
    add_slots(client, tomorrow, "10:00", "12:00")
    first = reserve(client, tomorrow, "12:00").json()
    second = reserve(client, tomorrow, "10:00").json()
    reserve(client, tomorrow + timedelta(days=1), "10:00")  # нет слота → 409

    mine = client.get("/bookings/by-requester/42").json()
    assert [b["id"] for b in mine] == [second["id"], first["id"]]

    resp = client.post(f"/bookings/{first['id']}/cancel", json={"requester_id": 99})
    assert resp.status_code == 404

    resp = client.post(f"/bookings/{first['id']}/cancel", json={"requester_id": 42})
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"

    resp = client.post(f"/bookings/{first['id']}/cancel", json={"requester_id": 42})
    assert resp.status_code == 404

    assert [b["id"] for b in client.get("/bookings/by-requester/42").json()] == [second["id"]]
    assert "12:00" in [s["time"] for s in client.get("/slots").json()]


def test_admin_cancel(client, tomorrow, fake_redis):
    add_slots(client, tomorrow, "10:00")
    booking = reserve(client, tomorrow, "10:00").json()

    resp = client.post(
        f"/bookings/{booking['id']}/cancel", json={"requester_id": 1001, "as_admin": True}
    )

    assert resp.status_code == 200
    event = fake_redis.events()[-1]
    assert event["type"] == "booking_cancelled"
    assert event["initiated_by"] == "admin"
    assert event["initiator_id"] == 1001


def test_list_bookings_by_period(client, tomorrow):
    day_after = tomorrow + timedelta(days=1)
    add_slots(client, tomorrow, "10:00")
    add_slots(client, day_after, "09:00")
    a = reserve(client, tomorrow, "10:00").json()
    b = reserve(client, day_after, "09:00", requester_id=7).json()

    resp = client.get("/bookings", params={"date_from": str(tomorrow), "date_to": str(day_after)})
    assert [x["id"] for x in resp.json()] == [a["id"], b["id"]]

    resp = client.get("/bookings", params={"date_from": str(day_after)})
    assert [x["id"] for x in resp.json()] == [b["id"]]

    resp = client.get("/bookings", params={"date_from": str(day_after), "date_to": str(tomorrow)})
    assert resp.status_code == 400


def test_mark_reminded_is_idempotent(client, tomorrow):
    add_slots(client, tomorrow, "10:00")
    booking = reserve(client, tomorrow, "10:00").json()

    first = client.post(f"/bookings/{booking['id']}/reminded")
    assert first.status_code == 200
    assert first.json()["reminded_at"] is not None

    second = client.post(f"/bookings/{booking['id']}/reminded")
    assert second.json()["reminded_at"] == first.json()["reminded_at"]

    assert client.post("/bookings/999/reminded").status_code == 404


def test_bookings_are_not_editable(client):
    assert client.patch("/bookings/1").status_code == 405
    assert client.delete("/bookings/1").status_code == 405


# ── admin ────────────────────────────────────────────────────────────────

def test_stats(client, tomorrow):
    add_slots(client, tomorrow, "10:00", "11:00", "12:00")
    reserve(client, tomorrow, "10:00", requester_id=1)
    cancelled = reserve(client, tomorrow, "11:00", requester_id=2).json()
    client.post(f"/bookings/{cancelled['id']}/cancel", json={"requester_id": 2})

    assert client.get("/stats").json() == {
        "requesters": 2,
        "active_bookings": 1,
        "free_slots": 2,
    }


def test_broadcast_queues_one_event_per_requester(client, tomorrow, fake_redis):
    add_slots(client, tomorrow, "10:00", "11:00", "12:00")
    reserve(client, tomorrow, "10:00", requester_id=1)
    reserve(client, tomorrow, "11:00", requester_id=2)
    reserve(client, tomorrow, "12:00", requester_id=1)  # вторая запись того же клиента

    resp = client.post("/broadcast", json={"text": "  Скидки!  "})

    assert resp.json() == {"recipients": 2}
    queued = fake_redis.events(events_mod.BROADCAST_QUEUE)
    assert sorted(e["tg_id"] for e in queued) == [1, 2]
    assert {e["text"] for e in queued} == {"Скидки!"}


def test_broadcast_empty_text(client, fake_redis):
    assert client.post("/broadcast", json={"text": "   "}).status_code == 422
    assert fake_redis.events(events_mod.BROADCAST_QUEUE) == []


def test_broadcast_without_requesters(client):
    assert client.post("/broadcast", json={"text": "hi"}).json() == {"recipients": 0}


def test_health(client):
    assert client.get("/health").json() == {"redis": True}


def test_health_reports_redis_down(client, fake_redis, monkeypatch):
    def ping():
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(fake_redis, "ping", ping)

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"redis": False}


def test_batch_add_conflict_under_concurrent_inserts(client, tomorrow, monkeypatch):
    def create_batch(self, day, times):
        raise IntegrityError("INSERT INTO slots", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(SlotStore, "create_batch", create_batch)

    resp = client.post("/slots/batch", json={"date": str(tomorrow), "times": ["10:00"]})

    assert resp.status_code == 409
    assert resp.json() == {"detail": "slot_exists"}
