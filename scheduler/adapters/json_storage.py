"""JSON file storage adapter — implements StoragePort.

Keeps the whole collection in one JSON array on disk, rewritten atomically
on every save. Blocking file I/O is wrapped with asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from scheduler.core.transfer import encode_events
from scheduler.data.models import Event, EventRecord
from scheduler.ports.storage_port import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)


def decode_stored_events(decoded: Any) -> list[Event]:
    """Turn a decoded stored document into events.

    Raises StorageReadError when the document is not an array. Records that
    fail validation, and repeated ids, are skipped with a warning.
    """
    if not isinstance(decoded, list):
        raise StorageReadError(f"Stored events must be a list, got {type(decoded).__name__}")

    events: list[Event] = []
    seen: set[str] = set()
    for item in decoded:
        if not isinstance(item, dict):
            logger.warning("Skipping stored record that is not an object: %r", item)
            continue
        try:
            record = EventRecord.model_validate(item)
        except ValidationError as exc:
            logger.warning("Skipping invalid stored event %r: %s", item.get("id"), exc)
            continue
        if not record.id or record.id in seen:
            logger.warning("Skipping stored event with missing or repeated id %r", record.id)
            continue
        seen.add(record.id)
        events.append(record.to_event(record.id))
    return events


class JsonFileStorage:
    """Local JSON-file implementation of StoragePort."""

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            from scheduler.config import settings
            path = settings.DATA_PATH
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> list[Event]:
        if not self._path.exists():
            return []
        try:
            raw = self._path.read_text(encoding="utf-8")
            decoded = json.loads(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StorageReadError(f"Cannot read {self._path}: {exc}") from exc
        return decode_stored_events(decoded)

    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=".events-", suffix=".json", dir=str(self._path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        finally:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)

    async def load(self) -> list[Event]:
        try:
            events = await asyncio.to_thread(self._read)
        except StorageReadError as exc:
            logger.warning("Stored events are corrupt, starting empty: %s", exc)
            return []
        logger.info("Loaded %d events from %s", len(events), self._path)
        return events

    async def save(self, events: Sequence[Event]) -> None:
        payload = encode_events(events)
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as exc:
            logger.error("Failed to write events to %s: %s", self._path, exc)
            raise StorageWriteError(f"Cannot write {self._path}: {exc}") from exc
        logger.debug("Saved %d events to %s", len(events), self._path)
