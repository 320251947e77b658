"""Google Calendar gateway and the OAuth handshake that produces it."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import CalendarSettings, ConfigError
from ..models.event import Event, parse_events

logger = logging.getLogger("calendar_reminder_bot.services.calendar")

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]


class CalendarUnavailableError(RuntimeError):
    """Raised when upcoming events cannot be fetched."""


def authorize(settings: CalendarSettings) -> Credentials:
    """Return usable credentials, running the installed-app flow if needed.

    A stored token is reused and refreshed when expired. Fresh or refreshed
    tokens are written back to ``settings.token_path``.
    """

    if not settings.credentials_path.exists():
        raise ConfigError(
            f"OAuth client file {settings.credentials_path} not found; "
            "download it from Google Cloud Console"
        )

    creds: Credentials | None = None
    if settings.token_path.exists():
        try:
            creds = Credentials.from_authorized_user_file(str(settings.token_path), SCOPES)
        except ValueError as exc:
            logger.warning("stored token %s is unusable: %s", settings.token_path, exc)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            logger.warning("token refresh failed, requesting a new consent: %s", exc)
            creds = None
    else:
        creds = None

    if creds is None:
        flow = InstalledAppFlow.from_client_secrets_file(str(settings.credentials_path), SCOPES)
        creds = flow.run_local_server(port=0, access_type="offline", prompt="consent")

    _save_token(settings.token_path, creds)
    return creds


def _save_token(path: Path, creds: Credentials) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(creds.to_json(), encoding="utf-8")
    except OSError as exc:
        logger.error("failed to save token to %s: %s", path, exc)
        return
    logger.info("token saved to %s", path)


class CalendarGateway:
    """Read-only access to upcoming events of a single calendar.

    The underlying httplib2 transport is not thread-safe, so requests are
    serialized even when the reminder tick and a command run at once.
    """

    def __init__(self, service: Any, calendar_id: str = "primary") -> None:
        self._service = service
        self._calendar_id = calendar_id
        self._lock = asyncio.Lock()

    @classmethod
    def from_credentials(cls, creds: Credentials, calendar_id: str) -> "CalendarGateway":
        service = build("calendar", "v3", credentials=creds, cache_discovery=False)
        return cls(service, calendar_id)

    @property
    def calendar_id(self) -> str:
        return self._calendar_id

    async def list_upcoming(self, since: datetime, max_results: int) -> list[Event]:
        """Concrete event instances that have not ended before ``since``, by start time."""

        try:
            async with self._lock:
                payload = await asyncio.to_thread(self._fetch, since, max_results)
        except (HttpError, httplib2.HttpLib2Error, GoogleAuthError, OSError) as exc:
            raise CalendarUnavailableError(str(exc)) from exc
        if not isinstance(payload, dict):
            raise CalendarUnavailableError(f"unexpected payload type {type(payload).__name__}")
        items = payload.get("items") or []
        if not isinstance(items, list):
            raise CalendarUnavailableError("unexpected items field in events payload")
        return parse_events(items)

    def _fetch(self, since: datetime, max_results: int) -> Any:
        request = self._service.events().list(
            calendarId=self._calendar_id,
            timeMin=since.isoformat(),
            maxResults=max_results,
            singleEvents=True,
            orderBy="startTime",
        )
        return request.execute()
