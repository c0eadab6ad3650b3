# backend/app/routers/admin.py
"""
Admin endpoints.

GET  /stats     - requesters, active bookings, free slots
POST /broadcast - queue a message for every requester
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.bookings import BroadcastCreate, BroadcastResult, StatsRead
from ..services.booking_store import BookingStore
from ..services.events import emit_broadcast
from ..services.slots import SlotStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


@router.get("/stats", response_model=StatsRead)
def get_stats(db: Session = Depends(get_db)):
    bookings = BookingStore(db)
    return StatsRead(
        requesters=bookings.count_requesters(),
        active_bookings=bookings.count_confirmed(),
        free_slots=SlotStore(db).count_free(),
    )


@router.post("/broadcast", response_model=BroadcastResult)
def create_broadcast(data: BroadcastCreate, db: Session = Depends(get_db)):
    """One broadcast_message event per requester; the bot throttles delivery."""
    text = data.text.strip()
    if not text:
        raise HTTPException(status_code=422, detail="text is empty")

    recipients = BookingStore(db).list_requester_ids()
    queued = 0
    for tg_id in recipients:
        if emit_broadcast("broadcast_message", {"tg_id": tg_id, "text": text}):
            queued += 1

    logger.info(f"Broadcast queued for {queued}/{len(recipients)} requesters")
    return BroadcastResult(recipients=queued)
