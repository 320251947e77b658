from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from calendar_reminder_bot.utils.datetime import is_reminder_due, minutes_until


NOW = datetime(2024, 10, 1, 12, tzinfo=timezone.utc)


def test_minutes_until_rounds_half_up():
    assert minutes_until(NOW + timedelta(seconds=90), NOW) == 2
    assert minutes_until(NOW + timedelta(seconds=89), NOW) == 1
    assert minutes_until(NOW - timedelta(seconds=30), NOW) == 0
    assert minutes_until(NOW - timedelta(seconds=31), NOW) == -1


def test_minutes_until_handles_offsets():
    start = datetime(2024, 10, 1, 15, 10, tzinfo=ZoneInfo("Europe/Moscow"))
    assert minutes_until(start, NOW) == 10


def test_minutes_until_all_day_uses_local_midnight():
    tz = ZoneInfo("Europe/Moscow")
    assert minutes_until(date(2024, 10, 2), NOW, tz) == 9 * 60


def test_reminder_window_boundaries():
    assert is_reminder_due(0, 15)
    assert is_reminder_due(15, 15)
    assert not is_reminder_due(-1, 15)
    assert not is_reminder_due(16, 15)
