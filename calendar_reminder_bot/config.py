"""Application configuration helpers for the calendar reminder bot."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


_logger = logging.getLogger("calendar_reminder_bot.config")

LANGUAGES = ("ru", "en")


class ConfigError(RuntimeError):
    """Raised when application configuration is invalid."""


def _read_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be an integer") from exc
    if min_value is not None and value < min_value:
        raise ConfigError(f"{name} must be >= {min_value}")
    return value


def _read_float(name: str, default: float, *, min_value: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be a number") from exc
    if min_value is not None and value < min_value:
        raise ConfigError(f"{name} must be >= {min_value}")
    return value


@dataclass(slots=True)
class NetworkConfig:
    """Retry parameters for Telegram Bot API requests."""

    request_timeout: float = 15.0
    max_retries: int = 2
    backoff_start: float = 1.0
    backoff_cap: float = 15.0


@dataclass(slots=True)
class TelegramSettings:
    token: str
    chat_id: int | str
    parse_mode: str = "HTML"


@dataclass(slots=True)
class CalendarSettings:
    calendar_id: str = "primary"
    credentials_path: Path = Path("credentials.json")
    token_path: Path = Path("token.json")


@dataclass(slots=True)
class ReminderSettings:
    """Reminder tick behaviour."""

    check_interval_ms: int = 60000
    lead_minutes: int = 15
    fetch_limit: int = 20
    list_limit: int = 10

    @property
    def check_interval(self) -> float:
        return self.check_interval_ms / 1000


@dataclass(slots=True)
class PollingSettings:
    """Long-poll parameters of the command loop."""

    timeout: int = 30
    error_delay: float = 5.0
    pause: float = 1.0


@dataclass(slots=True)
class Config:
    """Container for application configuration."""

    telegram: TelegramSettings
    calendar: CalendarSettings
    reminder: ReminderSettings
    polling: PollingSettings
    network: NetworkConfig = field(default_factory=NetworkConfig)
    notified_path: Path = Path("notified.json")
    logs_dir: Path = Path("logs")
    timezone: ZoneInfo = field(default_factory=lambda: ZoneInfo("UTC"))
    language: str = "ru"


def _parse_chat_id(raw: str) -> int | str:
    raw = raw.strip()
    if raw.startswith("@"):
        return raw
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError("CHAT_ID must be a numeric id or an @channel name") from exc


def _load_timezone(name: str | None) -> ZoneInfo:
    if not name:
        name = "UTC"
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        _logger.warning("Unknown timezone %s, falling back to UTC", name)
        return ZoneInfo("UTC")


def _validate_config(config: Config) -> None:
    if not config.telegram.token:
        raise ConfigError("TELEGRAM_TOKEN must not be empty")
    if config.notified_path.exists() and config.notified_path.is_dir():
        raise ConfigError("NOTIFIED_FILE must point to a file path")
    if not config.calendar.calendar_id:
        raise ConfigError("CALENDAR_ID must not be empty")
    if config.language not in LANGUAGES:
        raise ConfigError(f"BOT_LANGUAGE must be one of: {', '.join(LANGUAGES)}")


def _log_summary(config: Config) -> None:
    reminder = config.reminder
    polling = config.polling
    _logger.info(
        "Configuration loaded: calendar=%s, chat=%s, notified=%s, interval=%.1fs, lead=%sm, "
        "fetch=%s, list=%s, poll timeout=%ss (error delay=%.1fs), timezone=%s, language=%s",
        config.calendar.calendar_id,
        config.telegram.chat_id,
        config.notified_path,
        reminder.check_interval,
        reminder.lead_minutes,
        reminder.fetch_limit,
        reminder.list_limit,
        polling.timeout,
        polling.error_delay,
        getattr(config.timezone, "key", str(config.timezone)),
        config.language,
    )


def load_config() -> Config:
    """Load configuration from environment variables."""

    token = (os.getenv("TELEGRAM_TOKEN") or "").strip()
    chat_raw = (os.getenv("CHAT_ID") or "").strip()
    if not token or not chat_raw:
        raise ConfigError("TELEGRAM_TOKEN and CHAT_ID environment variables must be set")

    calendar = CalendarSettings(
        calendar_id=(os.getenv("CALENDAR_ID") or "primary").strip(),
        credentials_path=Path(os.getenv("CREDENTIALS_FILE") or "credentials.json").expanduser(),
        token_path=Path(os.getenv("TOKEN_FILE") or "token.json").expanduser(),
    )
    reminder = ReminderSettings(
        check_interval_ms=_read_int("CHECK_INTERVAL", 60000, min_value=1),
        lead_minutes=_read_int("NOTIFY_BEFORE_MINUTES", 15, min_value=0),
        fetch_limit=_read_int("REMINDER_FETCH_LIMIT", 20, min_value=1),
        list_limit=_read_int("EVENTS_LIST_LIMIT", 10, min_value=1),
    )
    polling = PollingSettings(
        timeout=_read_int("POLL_TIMEOUT", 30, min_value=1),
        error_delay=_read_float("POLL_ERROR_DELAY", 5.0, min_value=0.0),
        pause=_read_float("POLL_PAUSE", 1.0, min_value=0.0),
    )

    config = Config(
        telegram=TelegramSettings(token=token, chat_id=_parse_chat_id(chat_raw)),
        calendar=calendar,
        reminder=reminder,
        polling=polling,
        notified_path=Path(os.getenv("NOTIFIED_FILE") or "notified.json").expanduser(),
        logs_dir=Path(os.getenv("BOT_LOG_DIR") or "logs").expanduser(),
        timezone=_load_timezone(os.getenv("BOT_TIMEZONE")),
        language=(os.getenv("BOT_LANGUAGE") or "ru").strip().lower(),
    )

    _validate_config(config)
    _log_summary(config)

    return config
