from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional

logger = logging.getLogger("calendar_reminder_bot.models.event")


@dataclass(slots=True, frozen=True)
class Event:
    """A single calendar entry as returned by the calendar API.

    ``starts_at`` is an aware datetime for timed events and a plain ``date``
    for all-day events.
    """

    id: str
    starts_at: datetime | date
    title: str
    location: Optional[str] = None
    description: Optional[str] = None

    @property
    def all_day(self) -> bool:
        return not isinstance(self.starts_at, datetime)

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Optional["Event"]:
        """Build an event from a Google Calendar ``events#resource`` item.

        Returns ``None`` when the item has no usable id or start.
        """

        event_id = item.get("id")
        start = item.get("start") or {}
        if not event_id or not isinstance(start, dict):
            return None

        starts_at: datetime | date
        if start.get("dateTime"):
            starts_at = _parse_datetime(start["dateTime"])
        elif start.get("date"):
            starts_at = date.fromisoformat(start["date"])
        else:
            return None

        return cls(
            id=str(event_id),
            starts_at=starts_at,
            title=item.get("summary") or "",
            location=item.get("location") or None,
            description=item.get("description") or None,
        )


def _parse_datetime(value: str) -> datetime:
    # fromisoformat() before 3.11 does not accept a trailing "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        raise ValueError(f"datetime without offset: {value}")
    return parsed


def parse_events(items: Iterable[Any]) -> list[Event]:
    events: list[Event] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("skipping calendar item of type %s", type(item).__name__)
            continue
        try:
            event = Event.from_api(item)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("skipping malformed calendar item id=%s error=%s", item.get("id"), exc)
            continue
        if event is not None:
            events.append(event)
    return events
