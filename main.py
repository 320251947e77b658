"""Entry point for the calendar reminder bot."""
from __future__ import annotations

import sys

from calendar_reminder_bot.cli import main


if __name__ == "__main__":
    sys.exit(main())
