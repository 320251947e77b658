from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..config import ReminderSettings
from ..services.reminders import ReminderService

logger = logging.getLogger("calendar_reminder_bot.jobs.scheduler")


class Scheduler:
    """Runs the reminder tick on a fixed interval, starting right away."""

    def __init__(self, *, settings: ReminderSettings, reminder_service: ReminderService) -> None:
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        self._settings = settings
        self._reminder_service = reminder_service

    @property
    def running(self) -> bool:
        return self._scheduler.running

    async def start(self) -> None:
        self._scheduler.add_job(
            self._reminder_job,
            "interval",
            id="reminder-tick",
            seconds=self._settings.check_interval,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            misfire_grace_time=30,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("scheduler started, checking events every %.1fs", self._settings.check_interval)

    async def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    async def _reminder_job(self) -> None:
        sent = await self._reminder_service.dispatch_due_events()
        if sent:
            logger.info("sent %d reminders", sent)
