from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from ..models.event import Event
from ..storage.notified import NotifiedStore
from ..utils.datetime import is_reminder_due, minutes_until, now_utc
from ..utils.texts import format_reminder
from .calendar import CalendarGateway, CalendarUnavailableError
from .telegram import TelegramGateway

logger = logging.getLogger("calendar_reminder_bot.services.reminders")
audit_logger = logging.getLogger("calendar_reminder_bot.audit")


class ReminderService:
    """Sends one reminder per event once it enters the lead-time window.

    An event id is recorded in the store only after the message went out, so a
    failed send is retried on the next tick.
    """

    def __init__(
        self,
        *,
        calendar: CalendarGateway,
        telegram: TelegramGateway,
        store: NotifiedStore,
        chat_id: int | str,
        lead_minutes: int,
        fetch_limit: int = 20,
        timezone: ZoneInfo | None = None,
        language: str = "ru",
    ) -> None:
        self._calendar = calendar
        self._telegram = telegram
        self._store = store
        self._chat_id = chat_id
        self._lead_minutes = lead_minutes
        self._fetch_limit = fetch_limit
        self._timezone = timezone or ZoneInfo("UTC")
        self._language = language

    async def dispatch_due_events(self, now: datetime | None = None) -> int:
        """Run one tick and return the number of reminders sent."""

        now = now or now_utc()
        try:
            events = await self._calendar.list_upcoming(now, self._fetch_limit)
        except CalendarUnavailableError as exc:
            logger.warning("skipping reminder tick, calendar unavailable: %s", exc)
            return 0

        sent = 0
        for event in events:
            if await self._handle_event(event, now):
                sent += 1
        return sent

    async def _handle_event(self, event: Event, now: datetime) -> bool:
        # all-day events have no start time to count down to
        if event.all_day:
            return False
        minutes = minutes_until(event.starts_at, now)
        if not is_reminder_due(minutes, self._lead_minutes):
            return False
        if event.id in self._store:
            return False

        text = format_reminder(event, minutes, self._timezone, self._language)
        if not await self._telegram.send_message(self._chat_id, text):
            logger.warning("reminder for event %s not delivered, will retry next tick", event.id)
            return False

        self._store.add(event.id)
        audit_logger.info(
            '{"event":"REMINDER_SENT","event_id":"%s","chat_id":"%s","minutes":%d}',
            event.id,
            self._chat_id,
            minutes,
        )
        return True
