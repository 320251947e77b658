from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from typing import Optional

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.utils.token import TokenValidationError
from google.oauth2.credentials import Credentials

from ..config import Config, ConfigError
from ..handlers.commands import CommandHandlers
from ..jobs.scheduler import Scheduler
from ..jobs.updates import CommandLoop
from ..services.calendar import CalendarGateway
from ..services.reminders import ReminderService
from ..services.telegram import TelegramGateway
from ..storage.notified import NotifiedStore

logger = logging.getLogger("calendar_reminder_bot.core.application")
audit_logger = logging.getLogger("calendar_reminder_bot.audit")


class Application:
    """Owns the reminder scheduler and the command loop.

    Both run on the same event loop until a termination signal arrives or
    :meth:`request_stop` is called; shutdown then flushes the notified store
    exactly once.
    """

    def __init__(
        self,
        *,
        config: Config,
        calendar: CalendarGateway,
        telegram: TelegramGateway,
        store: NotifiedStore,
    ) -> None:
        self._config = config
        self._telegram = telegram
        self._store = store
        self._reminders = ReminderService(
            calendar=calendar,
            telegram=telegram,
            store=store,
            chat_id=config.telegram.chat_id,
            lead_minutes=config.reminder.lead_minutes,
            fetch_limit=config.reminder.fetch_limit,
            timezone=config.timezone,
            language=config.language,
        )
        self._scheduler = Scheduler(settings=config.reminder, reminder_service=self._reminders)
        self._commands = CommandLoop(
            telegram=telegram,
            handlers=CommandHandlers(
                calendar=calendar,
                telegram=telegram,
                lead_minutes=config.reminder.lead_minutes,
                list_limit=config.reminder.list_limit,
                timezone=config.timezone,
                language=config.language,
            ),
            polling=config.polling,
        )
        self._stop_event = asyncio.Event()
        self._command_task: Optional[asyncio.Task] = None
        self._shutdown_done = False

    @classmethod
    def create(cls, config: Config, creds: Credentials) -> "Application":
        """Build the gateways and load the notified store."""

        calendar = CalendarGateway.from_credentials(creds, config.calendar.calendar_id)
        try:
            bot = Bot(
                token=config.telegram.token,
                default=DefaultBotProperties(parse_mode=config.telegram.parse_mode),
            )
        except TokenValidationError as exc:
            raise ConfigError("TELEGRAM_TOKEN is not a valid bot token") from exc
        telegram = TelegramGateway(bot=bot, network=config.network)
        store = NotifiedStore(config.notified_path)
        store.load()
        return cls(config=config, calendar=calendar, telegram=telegram, store=store)

    @property
    def reminders(self) -> ReminderService:
        return self._reminders

    @property
    def commands(self) -> CommandLoop:
        return self._commands

    def request_stop(self, sig: Optional[signal.Signals] = None) -> None:
        if sig is not None:
            logger.info("received %s, saving state and exiting", sig.name)
        self._commands.stop()
        self._stop_event.set()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # not available on Windows event loops
            with suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, self.request_stop, sig)

    def _on_command_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("command loop crashed", exc_info=exc)

    async def run(self) -> None:
        self._install_signal_handlers()
        await self._scheduler.start()
        self._command_task = asyncio.create_task(self._commands.run(), name="command-loop")
        self._command_task.add_done_callback(self._on_command_task_done)
        logger.info(
            "bot started, checking events every %.1fs",
            self._config.reminder.check_interval,
        )
        try:
            await self._stop_event.wait()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if self._shutdown_done:
            return
        self._shutdown_done = True

        self._commands.stop()
        if self._command_task is not None and not self._command_task.done():
            self._command_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._command_task
        with suppress(Exception):
            await self._scheduler.shutdown()
        flushed = self._store.flush()
        audit_logger.info('{"event":"SHUTDOWN","flushed":%s,"notified":%d}', str(flushed).lower(), len(self._store))
        await self._telegram.close()
