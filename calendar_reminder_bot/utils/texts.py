from __future__ import annotations

from datetime import datetime
from typing import Sequence
from zoneinfo import ZoneInfo

from aiogram.utils.text_decorations import html_decoration

from ..locales import get_text
from ..models.event import Event
from .datetime import minutes_until, to_local

DESCRIPTION_LIMIT = 100


def escape(value: str | None) -> str:
    if not value:
        return ""
    return html_decoration.quote(value)


def format_start(event: Event, tz: ZoneInfo) -> str:
    if event.all_day:
        return event.starts_at.strftime("%d.%m.%Y")
    return to_local(event.starts_at, tz).strftime("%d.%m.%Y %H:%M")


def time_status(minutes: int, lead_minutes: int, language: str) -> str:
    """Relative-time bucket shown next to each event in the list."""

    if minutes < 0:
        return get_text(language, "status_started")
    if minutes <= lead_minutes:
        return get_text(language, "status_soon")
    if minutes <= 60:
        return get_text(language, "status_minutes", value=minutes)
    if minutes <= 1440:
        return get_text(language, "status_hours", value=minutes // 60)
    return get_text(language, "status_days", value=minutes // 1440)


def format_reminder(event: Event, minutes: int, tz: ZoneInfo, language: str) -> str:
    title = event.title or get_text(language, "untitled")
    lines = [
        get_text(language, "reminder_header"),
        get_text(language, "reminder_body", minutes=minutes, title=escape(title)),
        get_text(language, "reminder_time", time=format_start(event, tz)),
    ]
    if event.location:
        lines.append(f"📍 {escape(event.location)}")
    text = "\n".join(lines)
    if event.description:
        text = f"{text}\n\n{escape(event.description)}"
    return text


def _truncate(value: str, limit: int = DESCRIPTION_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return f"{value[:limit]}..."


def format_event_list(
    events: Sequence[Event],
    *,
    now: datetime,
    lead_minutes: int,
    tz: ZoneInfo,
    language: str,
) -> str:
    if not events:
        return get_text(language, "no_events")

    blocks = [get_text(language, "event_list_header")]
    for index, event in enumerate(events, start=1):
        title = event.title or get_text(language, "untitled")
        status = time_status(minutes_until(event.starts_at, now, tz), lead_minutes, language)
        lines = [
            f"{index}. <b>{escape(title)}</b>",
            f"   {status}",
            f"   🗓 {format_start(event, tz)}",
        ]
        if event.location:
            lines.append(f"   📍 {escape(event.location)}")
        if event.description:
            lines.append(f"   {escape(_truncate(event.description))}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
