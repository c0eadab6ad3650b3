"""
Message formatting for notification events.

Per event_type + per recipient role. HTML parse_mode for Telegram.
"""

import html

from bot.app.i18n.loader import DEFAULT_LANG, t
from bot.app.utils.dates import format_dmy, weekday_full


def format_requester(booking: dict) -> str:
    """'@handle (Имя)', '@handle', 'Имя' или id."""
    handle = booking.get("requester_handle")
    name = booking.get("requester_name")
    if handle and name:
        label = f"@{handle} ({name})"
    else:
        label = f"@{handle}" if handle else (name or str(booking.get("requester_id", "—")))
    return html.escape(label)


def _slot_lines(booking: dict, lang: str) -> list[str]:
    day = booking["slot_date"]
    return [
        t("notify:date", lang, format_dmy(day), weekday_full(day)),
        t("notify:time", lang, booking["slot_time"]),
    ]


def format_event(
    event_type: str,
    booking: dict,
    recipient_role: str,
    lang: str = DEFAULT_LANG,
) -> str:
    if event_type == "booking_reminder":
        lines = [f"<b>{t('notify:reminder:title', lang)}</b>", "", *_slot_lines(booking, lang)]

    elif event_type == "booking_cancelled" and recipient_role == "client":
        lines = [
            f"<b>{t('notify:cancelled:title:client', lang)}</b>",
            "",
            *_slot_lines(booking, lang),
            "",
            t("notify:cancelled:new_booking", lang),
        ]

    else:
        title_key = "notify:created:title" if event_type == "booking_created" else "notify:cancelled:title"
        lines = [
            f"<b>{t(title_key, lang)}</b>",
            "",
            t("notify:user", lang, format_requester(booking)),
            *_slot_lines(booking, lang),
        ]

    return "\n".join(lines)
