from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


UTC = timezone.utc


def now_utc() -> datetime:
    return datetime.now(tz=UTC)


def to_local(dt: datetime, tz: ZoneInfo) -> datetime:
    return dt.astimezone(tz)


def start_of_day(value: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(value, time.min, tzinfo=tz)


def minutes_until(starts_at: datetime | date, now: datetime, tz: ZoneInfo | None = None) -> int:
    """Whole minutes from ``now`` until ``starts_at``, rounded half up.

    Plain dates are taken as local midnight in ``tz`` (UTC when omitted).
    """

    if not isinstance(starts_at, datetime):
        starts_at = start_of_day(starts_at, tz or ZoneInfo("UTC"))
    seconds = (starts_at - now).total_seconds()
    return math.floor(seconds / 60 + 0.5)


def is_reminder_due(minutes: int, lead_minutes: int) -> bool:
    return 0 <= minutes <= lead_minutes
