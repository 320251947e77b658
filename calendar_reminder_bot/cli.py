"""Command line entry point for the project."""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

from dotenv import load_dotenv

from .config import Config, ConfigError, load_config
from .core.application import Application
from .logging_config import setup_logging
from .services.calendar import authorize


_LOGGER = logging.getLogger("calendar_reminder_bot.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Google Calendar reminders in Telegram")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the bot (default)")
    run_parser.set_defaults(command="run")

    auth_parser = subparsers.add_parser(
        "auth", help="Authorize Google Calendar access, store the token and exit"
    )
    auth_parser.set_defaults(command="auth")

    parser.set_defaults(command="run")
    return parser


async def _serve(config: Config, creds) -> None:
    app = Application.create(config, creds)
    await app.run()


def main(argv: Sequence[str] | None = None) -> int:
    setup_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    try:
        config = load_config()
        setup_logging(config.logs_dir)
        creds = authorize(config.calendar)
        if args.command == "auth":
            _LOGGER.info("Token stored at %s", config.calendar.token_path)
            return 0
        asyncio.run(_serve(config, creds))
    except ConfigError as exc:
        _LOGGER.error("Configuration error: %s", exc)
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted, shutting down")
    return 0


__all__ = ["main"]
