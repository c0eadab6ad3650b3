"""
Recipient resolution for booking notification events.

- booking_created: every admin
- booking_cancelled: admins when the customer cancelled; the customer
  (and the other admins) when an admin cancelled
- booking_reminder: the customer

The initiator of an action is never notified about it.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from bot.app import auth

logger = logging.getLogger(__name__)


@dataclass
class Recipient:
    tg_id: int
    role: str   # "admin" | "client"


def resolve_recipients(
    event_type: str,
    booking: dict,
    initiated_by: Optional[str] = None,
    initiator_id: Optional[int] = None,
) -> list[Recipient]:
    requester_id = booking.get("requester_id")
    admins = [Recipient(tg_id, "admin") for tg_id in auth.ADMIN_IDS]

    if event_type == "booking_created":
        # Создатель записи: сам клиент
        initiator_id = initiator_id or requester_id
        recipients = admins

    elif event_type == "booking_cancelled":
        if initiated_by == "admin":
            recipients = [Recipient(requester_id, "client"), *admins]
        else:
            initiator_id = initiator_id or requester_id
            recipients = admins

    elif event_type == "booking_reminder":
        recipients = [Recipient(requester_id, "client")]

    else:
        logger.warning(f"No recipient rule for {event_type}")
        return []

    # Без инициатора и без повторов (админ может быть и клиентом)
    seen = set()
    unique = []
    for r in recipients:
        if not r.tg_id or r.tg_id == initiator_id or r.tg_id in seen:
            continue
        seen.add(r.tg_id)
        unique.append(r)

    logger.info(
        f"Resolved {len(unique)} recipients for {event_type}: "
        f"{[(r.role, r.tg_id) for r in unique]}"
    )
    return unique
