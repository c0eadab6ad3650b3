"""
backend/app/services/events.py

Event emitter: pushes events to Redis queues for consumption by the bot.

Two queues:
- events:p2p — instant delivery (booking notifications, reminders)
- events:broadcast — throttled delivery (admin broadcast)
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"
BROADCAST_QUEUE = "events:broadcast"


def emit_event(event_type: str, payload: dict) -> bool:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    Returns False when the queue is unreachable; callers treat
    notifications as best-effort.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(P2P_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
        return True
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False


def emit_broadcast(event_type: str, payload: dict) -> bool:
    """
    Emit a broadcast event (throttled delivery, 30 msg/sec).

    Pushed to Redis list `events:broadcast` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(BROADCAST_QUEUE, json.dumps(event))
        return True
    except Exception as e:
        logger.error(f"Failed to emit broadcast {event_type}: {e}")
        return False
