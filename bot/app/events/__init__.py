"""
Backend → bot event dispatch.

The backend pushes JSON events ({"type": ..., **payload}) onto Redis lists;
the consumer loops started by bot.app.main pop them and hand each one to
process_event(), which looks the handler up by type.
"""

import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict], Awaitable[None]]

EVENT_HANDLERS: dict[str, EventHandler] = {}


def register_event(event_type: str):
    """Decorator: bind a coroutine to an event type."""
    def decorator(func: EventHandler) -> EventHandler:
        EVENT_HANDLERS[event_type] = func
        return func
    return decorator


async def process_event(data: dict) -> None:
    """Run the handler for data["type"]. Handler errors propagate to the consumer."""
    event_type = data.get("type")
    if not event_type:
        logger.warning(f"Event without type, skipping: {data}")
        return

    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.warning(f"No handler for event type: {event_type}")
        return

    logger.info(f"Processing event: {event_type}")
    await handler(data)


# Handler modules register themselves on import
from . import booking  # noqa: E402, F401
from . import broadcast  # noqa: E402, F401
