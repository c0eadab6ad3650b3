"""
Admin broadcast delivery: one event per recipient on events:broadcast.
"""

import logging

from . import register_event
from .delivery import send_plain_text

logger = logging.getLogger(__name__)


@register_event("broadcast_message")
async def handle_broadcast_message(data: dict) -> None:
    tg_id = data.get("tg_id")
    text = data.get("text")
    if not tg_id or not text:
        logger.error(f"broadcast_message event without tg_id/text: {data}")
        return

    await send_plain_text(tg_id, text)
