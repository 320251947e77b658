from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger("calendar_reminder_bot.storage.notified")


class NotifiedStore:
    """Persisted set of event ids that already triggered a reminder.

    The whole set is kept in memory and the JSON file is rewritten after every
    insertion. Write failures are logged and the in-memory set stays
    authoritative for the rest of the run. Only the reminder service writes to
    the store.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._ids: set[str] = set()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> set[str]:
        self._ids = self._read()
        logger.info("loaded %d notified events from %s", len(self._ids), self._path)
        return set(self._ids)

    def _read(self) -> set[str]:
        if not self._path.exists():
            return set()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.warning("cannot read %s, starting with an empty set: %s", self._path, exc)
            return set()
        if not isinstance(data, list):
            logger.warning("unexpected content in %s, starting with an empty set", self._path)
            return set()
        return {item for item in data if isinstance(item, str)}

    def contains(self, event_id: str) -> bool:
        return event_id in self._ids

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, event_id: str) -> None:
        if event_id in self._ids:
            return
        self._ids.add(event_id)
        self._write()

    def flush(self) -> bool:
        return self._write()

    def _write(self) -> bool:
        payload = json.dumps(sorted(self._ids), ensure_ascii=False)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            logger.error("failed to write %s: %s", self._path, exc)
            return False
        return True
