import asyncio
from datetime import date, datetime, timedelta, timezone

import httplib2

from calendar_reminder_bot.models.event import Event
from calendar_reminder_bot.services.calendar import CalendarGateway
from calendar_reminder_bot.services.reminders import ReminderService
from calendar_reminder_bot.storage.notified import NotifiedStore

from fakes import FakeCalendar, FakeService, FakeTelegram


T = datetime(2024, 10, 1, 12, tzinfo=timezone.utc)


def _service(tmp_path, events, *, lead_minutes=15):
    calendar = FakeCalendar(events)
    telegram = FakeTelegram()
    store = NotifiedStore(tmp_path / "notified.json")
    store.load()
    service = ReminderService(
        calendar=calendar,
        telegram=telegram,
        store=store,
        chat_id=42,
        lead_minutes=lead_minutes,
    )
    return service, calendar, telegram, store


def test_event_is_notified_once(tmp_path):
    async def scenario():
        event = Event(id="a", starts_at=T + timedelta(minutes=10), title="Standup")
        service, _calendar, telegram, store = _service(tmp_path, [event])

        assert await service.dispatch_due_events(now=T) == 1
        assert await service.dispatch_due_events(now=T + timedelta(minutes=1)) == 0

        assert len(telegram.sent) == 1
        chat_id, text = telegram.sent[0]
        assert chat_id == 42
        assert "Standup" in text
        assert "10" in text
        assert store.contains("a")

        restarted = NotifiedStore(tmp_path / "notified.json")
        assert "a" in restarted.load()

    asyncio.run(scenario())


def test_failed_send_is_retried_next_tick(tmp_path):
    async def scenario():
        event = Event(id="a", starts_at=T + timedelta(minutes=5), title="Demo")
        service, _calendar, telegram, store = _service(tmp_path, [event])

        telegram.fail = True
        assert await service.dispatch_due_events(now=T) == 0
        assert not store.contains("a")

        telegram.fail = False
        assert await service.dispatch_due_events(now=T + timedelta(minutes=1)) == 1
        assert store.contains("a")
        assert len(telegram.sent) == 1

    asyncio.run(scenario())


def test_window_boundaries(tmp_path):
    async def scenario():
        events = [
            Event(id="now", starts_at=T, title="now"),
            Event(id="past", starts_at=T - timedelta(minutes=1), title="past"),
            Event(id="edge", starts_at=T + timedelta(minutes=15), title="edge"),
            Event(id="late", starts_at=T + timedelta(minutes=16), title="late"),
        ]
        service, _calendar, _telegram, store = _service(tmp_path, events)

        assert await service.dispatch_due_events(now=T) == 2
        assert store.contains("now")
        assert store.contains("edge")
        assert not store.contains("past")
        assert not store.contains("late")

    asyncio.run(scenario())


def test_all_day_events_are_skipped(tmp_path):
    async def scenario():
        event = Event(id="holiday", starts_at=date(2024, 10, 1), title="Holiday")
        service, _calendar, telegram, store = _service(tmp_path, [event])

        assert await service.dispatch_due_events(now=T) == 0
        assert not telegram.sent
        assert len(store) == 0

    asyncio.run(scenario())


def test_calendar_failure_skips_tick(tmp_path):
    async def scenario():
        event = Event(id="a", starts_at=T + timedelta(minutes=5), title="Demo")
        service, calendar, telegram, _store = _service(tmp_path, [event])

        calendar.fail = True
        assert await service.dispatch_due_events(now=T) == 0
        assert not telegram.sent

        calendar.fail = False
        assert await service.dispatch_due_events(now=T) == 1

    asyncio.run(scenario())


def test_already_notified_on_previous_run(tmp_path):
    async def scenario():
        (tmp_path / "notified.json").write_text('["a"]', encoding="utf-8")
        event = Event(id="a", starts_at=T + timedelta(minutes=5), title="Demo")
        service, _calendar, telegram, _store = _service(tmp_path, [event])

        assert await service.dispatch_due_events(now=T) == 0
        assert not telegram.sent

    asyncio.run(scenario())


def test_reminder_text_escapes_html(tmp_path):
    async def scenario():
        event = Event(
            id="a",
            starts_at=T + timedelta(minutes=3),
            title="R&D <sync>",
            location="Room <1>",
            description="a & b",
        )
        service, _calendar, telegram, _store = _service(tmp_path, [event])
        await service.dispatch_due_events(now=T)

        _chat_id, text = telegram.sent[0]
        assert "<b>R&amp;D &lt;sync&gt;</b>" in text
        assert "📍 Room &lt;1&gt;" in text
        assert text.endswith("a &amp; b")

    asyncio.run(scenario())


def test_network_failure_skips_tick(tmp_path):
    async def scenario():
        service = FakeService(error=httplib2.ServerNotFoundError("Unable to find the server"))
        telegram = FakeTelegram()
        service_under_test = ReminderService(
            calendar=CalendarGateway(service, "primary"),
            telegram=telegram,
            store=NotifiedStore(tmp_path / "notified.json"),
            chat_id=42,
            lead_minutes=15,
        )
        assert await service_under_test.dispatch_due_events(now=T) == 0
        assert not telegram.sent

    asyncio.run(scenario())
