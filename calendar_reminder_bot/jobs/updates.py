from __future__ import annotations

import asyncio
import logging

from ..config import PollingSettings
from ..handlers.commands import CommandHandlers
from ..models.update import InboundUpdate
from ..services.telegram import TelegramGateway

logger = logging.getLogger("calendar_reminder_bot.jobs.updates")


class CommandLoop:
    """Long-polls Telegram for updates and dispatches bot commands.

    ``offset`` is one past the highest update id seen so far. It only advances
    after a batch was fetched successfully, so a failed poll never skips
    updates, and an update is never handed to the handlers twice.
    """

    def __init__(
        self,
        *,
        telegram: TelegramGateway,
        handlers: CommandHandlers,
        polling: PollingSettings,
    ) -> None:
        self._telegram = telegram
        self._handlers = handlers
        self._polling = polling
        self._offset = 0
        self._stopping = asyncio.Event()

    @property
    def offset(self) -> int:
        return self._offset

    def stop(self) -> None:
        self._stopping.set()

    async def run(self) -> None:
        logger.info("command loop started")
        while not self._stopping.is_set():
            try:
                updates = await self._telegram.get_updates(self._offset, self._polling.timeout)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("polling updates failed offset=%s error=%s", self._offset, exc)
                await self._pause(self._polling.error_delay)
                continue
            await self.process(updates)
            await self._pause(self._polling.pause)
        logger.info("command loop stopped")

    async def process(self, updates: list[InboundUpdate]) -> None:
        for update in updates:
            if update.message is not None:
                try:
                    await self._handlers.dispatch(update.message)
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("command handler failed for update %s", update.id)
            self._offset = max(self._offset, update.id + 1)

    async def _pause(self, delay: float) -> None:
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
