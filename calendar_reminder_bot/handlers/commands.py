from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict, Optional
from zoneinfo import ZoneInfo

from ..locales import get_text
from ..models.update import IncomingMessage
from ..services.calendar import CalendarGateway, CalendarUnavailableError
from ..services.telegram import TelegramGateway
from ..utils.datetime import now_utc
from ..utils.texts import format_event_list

logger = logging.getLogger("calendar_reminder_bot.handlers.commands")
audit_logger = logging.getLogger("calendar_reminder_bot.audit")

Handler = Callable[[IncomingMessage], Awaitable[None]]


class CommandHandlers:
    """Replies to the bot commands. Reads the calendar, never the notified store."""

    def __init__(
        self,
        *,
        calendar: CalendarGateway,
        telegram: TelegramGateway,
        lead_minutes: int,
        list_limit: int = 10,
        timezone: ZoneInfo | None = None,
        language: str = "ru",
    ) -> None:
        self._calendar = calendar
        self._telegram = telegram
        self._lead_minutes = lead_minutes
        self._list_limit = list_limit
        self._timezone = timezone or ZoneInfo("UTC")
        self._language = language
        self._routes: Dict[str, Handler] = {
            "/start": self.handle_help,
            "/help": self.handle_help,
            "/events": self.handle_events,
        }

    def resolve(self, text: str) -> Optional[Handler]:
        return self._routes.get(text)

    async def dispatch(self, message: IncomingMessage) -> bool:
        """Run the handler for ``message``; unknown text is ignored."""

        handler = self.resolve(message.text)
        if handler is None:
            return False
        audit_logger.info('{"event":"COMMAND","chat_id":%s,"command":"%s"}', message.chat_id, message.text)
        await handler(message)
        return True

    async def handle_help(self, message: IncomingMessage) -> None:
        text = get_text(self._language, "help", lead=self._lead_minutes)
        await self._telegram.send_message(message.chat_id, text)

    async def handle_events(self, message: IncomingMessage) -> None:
        now = now_utc()
        try:
            events = await self._calendar.list_upcoming(now, self._list_limit)
        except CalendarUnavailableError as exc:
            logger.error("failed to list events for chat %s: %s", message.chat_id, exc)
            await self._telegram.send_message(message.chat_id, get_text(self._language, "events_error"))
            return

        text = format_event_list(
            events,
            now=now,
            lead_minutes=self._lead_minutes,
            tz=self._timezone,
            language=self._language,
        )
        await self._telegram.send_message(message.chat_id, text)
