from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from aiogram.exceptions import (
    TelegramAPIError,
    TelegramBadRequest,
    TelegramNetworkError,
    TelegramRetryAfter,
)

from ..config import NetworkConfig
from ..models.update import InboundUpdate, IncomingMessage

logger = logging.getLogger("calendar_reminder_bot.services.telegram")
audit_logger = logging.getLogger("calendar_reminder_bot.audit")


class TelegramGateway:
    """Outbound messages and inbound updates over an aiogram ``Bot``."""

    def __init__(self, *, bot, network: NetworkConfig) -> None:
        self._bot = bot
        self._network = network

    @property
    def bot(self):
        return self._bot

    async def send_message(self, chat_id: int | str, text: str) -> bool:
        """Send ``text`` to ``chat_id``; ``False`` when every attempt failed."""

        try:
            await self._call_with_retry(
                f"send:{chat_id}",
                self._bot.send_message,
                chat_id=chat_id,
                text=text,
                request_timeout=int(self._network.request_timeout),
            )
        except (TelegramAPIError, asyncio.TimeoutError) as exc:
            logger.error("failed to send message chat_id=%s error=%s", chat_id, exc)
            return False
        return True

    async def get_updates(self, offset: int, timeout: int) -> list[InboundUpdate]:
        """Long-poll for updates with ids >= ``offset``. Errors propagate."""

        raw_updates = await self._bot.get_updates(
            offset=offset,
            timeout=timeout,
            allowed_updates=["message"],
            request_timeout=timeout + int(self._network.request_timeout),
        )
        return [_convert_update(update) for update in raw_updates or []]

    async def close(self) -> None:
        await self._bot.session.close()

    async def _call_with_retry(
        self,
        op_id: str,
        func: Callable[..., Awaitable[Any]],
        /,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        retries = self._network.max_retries
        last_exc: Optional[Exception] = None
        for attempt in range(retries + 1):
            try:
                return await func(*args, **kwargs)
            except TelegramRetryAfter as exc:
                last_exc = exc
                wait_for = float(exc.retry_after)
                audit_logger.info('{"event":"NETWORK_RETRY","op_id":"%s","delay":%.3f}', op_id, wait_for)
                if attempt < retries:
                    await asyncio.sleep(wait_for)
            except TelegramBadRequest:
                raise
            except (TelegramNetworkError, asyncio.TimeoutError) as exc:
                last_exc = exc
                delay = self._compute_delay(attempt)
                audit_logger.info('{"event":"NETWORK_RETRY","op_id":"%s","delay":%.3f}', op_id, delay)
                if attempt < retries:
                    await asyncio.sleep(delay)
        logger.warning("telegram call failed op_id=%s error=%s", op_id, last_exc)
        raise last_exc

    def _compute_delay(self, attempt: int) -> float:
        delay = self._network.backoff_start * (2 ** attempt)
        return min(delay, self._network.backoff_cap)


def _convert_update(update) -> InboundUpdate:
    message = getattr(update, "message", None)
    chat = getattr(message, "chat", None)
    text = getattr(message, "text", None)
    if message is None or chat is None or not isinstance(text, str):
        return InboundUpdate(id=update.update_id)
    return InboundUpdate(id=update.update_id, message=IncomingMessage(chat_id=chat.id, text=text))
