"""
Redis event consumer loops.

- p2p_consumer_loop: booking notifications and reminders from events:p2p
- broadcast_consumer_loop: admin broadcast messages from events:broadcast,
  throttled to stay under Telegram's ~30 msg/sec limit
- retry_consumer_loop: moves failed events back to their queue

The backend RPUSHes, consumers BLPOP: events are handled in emission order.
A failed event is retried up to MAX_RETRIES times, then parked in a
dead-letter list.
"""

import asyncio
import json
import logging

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"
BROADCAST_QUEUE = "events:broadcast"

RETRY_QUEUES = {
    f"{P2P_QUEUE}:retry": P2P_QUEUE,
    f"{BROADCAST_QUEUE}:retry": BROADCAST_QUEUE,
}

MAX_RETRIES = 3
POP_TIMEOUT = 5
BROADCAST_INTERVAL = 1.0 / 30


async def _consume(redis_url: str, queue: str, interval: float = 0.0) -> None:
    r = aioredis.from_url(redis_url, decode_responses=True)
    logger.info(f"Consumer for {queue} started")

    try:
        while True:
            try:
                result = await r.blpop(queue, timeout=POP_TIMEOUT)
                if result is None:
                    continue

                _, raw = result
                await process_raw_event(r, raw, f"{queue}:retry", f"{queue}:dead")

                if interval:
                    await asyncio.sleep(interval)

            except asyncio.CancelledError:
                logger.info(f"Consumer for {queue} cancelled")
                raise
            except Exception:
                logger.exception(f"Consumer for {queue} failed, retrying in 2s")
                await asyncio.sleep(2)
    finally:
        await r.aclose()


async def p2p_consumer_loop(redis_url: str) -> None:
    await _consume(redis_url, P2P_QUEUE)


async def broadcast_consumer_loop(redis_url: str) -> None:
    await _consume(redis_url, BROADCAST_QUEUE, interval=BROADCAST_INTERVAL)


async def process_raw_event(
    r: aioredis.Redis,
    raw: str,
    retry_queue: str,
    dead_queue: str,
) -> None:
    """
    Parse and dispatch a single queued event.

    On handler failure the event goes to retry_queue with an incremented
    "_attempt" counter; after MAX_RETRIES attempts it goes to dead_queue.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in event queue: {raw[:200]}")
        await r.rpush(dead_queue, raw)
        return

    attempt = data.get("_attempt", 1)

    try:
        from bot.app.events import process_event
        await process_event(data)
    except Exception:
        logger.exception(
            f"Failed to process event type={data.get('type')} "
            f"(attempt {attempt}/{MAX_RETRIES})"
        )

        if attempt < MAX_RETRIES:
            data["_attempt"] = attempt + 1
            await r.rpush(retry_queue, json.dumps(data))
        else:
            await r.rpush(dead_queue, json.dumps(data))
            logger.warning(f"Event moved to {dead_queue}: type={data.get('type')}")


async def retry_consumer_loop(redis_url: str) -> None:
    """Move retry-queue events back to their main queue, pausing when idle."""
    r = aioredis.from_url(redis_url, decode_responses=True)
    logger.info("retry_consumer_loop started")

    try:
        while True:
            try:
                moved = False
                for retry_q, main_q in RETRY_QUEUES.items():
                    raw = await r.lpop(retry_q)
                    if raw:
                        await r.rpush(main_q, raw)
                        moved = True

                if not moved:
                    await asyncio.sleep(POP_TIMEOUT)

            except asyncio.CancelledError:
                logger.info("retry_consumer_loop cancelled")
                raise
            except Exception:
                logger.exception("retry_consumer_loop error, retrying in 5s")
                await asyncio.sleep(5)
    finally:
        await r.aclose()
