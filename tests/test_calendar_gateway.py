import asyncio
import threading
import time
from datetime import date, datetime, timedelta, timezone

import httplib2
import pytest

from calendar_reminder_bot.models.event import Event, parse_events
from calendar_reminder_bot.services.calendar import CalendarGateway, CalendarUnavailableError

from fakes import FakeService


def test_list_upcoming_requests_expanded_instances():
    async def scenario():
        since = datetime(2024, 10, 1, 12, tzinfo=timezone.utc)
        service = FakeService(
            {
                "items": [
                    {
                        "id": "evt_1",
                        "summary": "Standup",
                        "location": "Room 1",
                        "start": {"dateTime": "2024-10-01T15:10:00+03:00"},
                    },
                    {"id": "evt_2", "start": {"date": "2024-10-02"}},
                ]
            }
        )
        gateway = CalendarGateway(service, "team@example.com")
        events = await gateway.list_upcoming(since, 20)

        assert service.kwargs == {
            "calendarId": "team@example.com",
            "timeMin": since.isoformat(),
            "maxResults": 20,
            "singleEvents": True,
            "orderBy": "startTime",
        }
        assert [event.id for event in events] == ["evt_1", "evt_2"]
        assert events[0].starts_at == since + timedelta(minutes=10)
        assert events[0].location == "Room 1"
        assert events[1].all_day
        assert events[1].starts_at == date(2024, 10, 2)
        assert events[1].title == ""

    asyncio.run(scenario())


def test_list_upcoming_without_items():
    async def scenario():
        gateway = CalendarGateway(FakeService({}), "primary")
        assert await gateway.list_upcoming(datetime.now(timezone.utc), 10) == []

    asyncio.run(scenario())


def test_transport_errors_are_wrapped():
    async def scenario():
        gateway = CalendarGateway(FakeService(error=OSError("connection reset")), "primary")
        with pytest.raises(CalendarUnavailableError):
            await gateway.list_upcoming(datetime.now(timezone.utc), 10)

    asyncio.run(scenario())


def test_httplib2_errors_are_wrapped():
    async def scenario():
        service = FakeService(error=httplib2.ServerNotFoundError("Unable to find the server"))
        gateway = CalendarGateway(service, "primary")
        with pytest.raises(CalendarUnavailableError):
            await gateway.list_upcoming(datetime.now(timezone.utc), 10)

    asyncio.run(scenario())


def test_requests_never_overlap():
    async def scenario():
        guard = threading.Lock()
        running = 0
        peak = 0

        def slow_execute():
            nonlocal running, peak
            with guard:
                running += 1
                peak = max(peak, running)
            time.sleep(0.1)
            with guard:
                running -= 1

        gateway = CalendarGateway(FakeService({"items": []}, on_execute=slow_execute), "primary")
        now = datetime.now(timezone.utc)
        await asyncio.gather(gateway.list_upcoming(now, 20), gateway.list_upcoming(now, 10))
        assert peak == 1

    asyncio.run(scenario())


def test_unexpected_payload_is_rejected():
    async def scenario():
        gateway = CalendarGateway(FakeService({"items": "nope"}), "primary")
        with pytest.raises(CalendarUnavailableError):
            await gateway.list_upcoming(datetime.now(timezone.utc), 10)

    asyncio.run(scenario())


def test_parse_events_skips_malformed_items():
    events = parse_events(
        [
            {"id": "ok", "start": {"dateTime": "2024-10-01T12:00:00Z"}, "summary": "A"},
            {"id": "no-start"},
            {"start": {"dateTime": "2024-10-01T12:00:00Z"}},
            {"id": "bad", "start": {"dateTime": "yesterday"}},
            {"id": "naive", "start": {"dateTime": "2024-10-01T12:00:00"}},
            "garbage",
        ]
    )
    assert events == [
        Event(id="ok", starts_at=datetime(2024, 10, 1, 12, tzinfo=timezone.utc), title="A"),
    ]
