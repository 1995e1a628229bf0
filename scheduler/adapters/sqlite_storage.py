"""SQLite storage adapter — implements StoragePort.

Alternative durable store for installs that prefer a database file to a
JSON document. The table mirrors the event fields plus a position column
that preserves store order. Every save rewrites the table in one
transaction.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from scheduler.data.models import Event, EventRecord
from scheduler.ports.storage_port import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS events (
        id          TEXT    PRIMARY KEY,
        position    INTEGER NOT NULL,
        title       TEXT    NOT NULL,
        date        TEXT    NOT NULL,
        time        TEXT    NOT NULL DEFAULT '',
        description TEXT    NOT NULL DEFAULT ''
    )
"""


class SqliteStorage:
    """SQLite-backed implementation of StoragePort."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from scheduler.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._init_db()
        except sqlite3.DatabaseError as exc:
            # Reads map this to StorageReadError and load empty
            logger.warning("Cannot initialize %s: %s", db_path, exc)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the events table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute(_SCHEMA)
        logger.debug("Events table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> Event | None:
        try:
            record = EventRecord.model_validate(dict(row))
        except ValidationError as exc:
            logger.warning("Skipping invalid stored event %r: %s", row["id"], exc)
            return None
        return record.to_event(row["id"])

    def _read(self) -> list[Event]:
        try:
            with self._connect() as conn:
                conn.execute(_SCHEMA)
                rows = conn.execute(
                    "SELECT id, title, date, time, description FROM events ORDER BY position"
                ).fetchall()
        except sqlite3.DatabaseError as exc:
            raise StorageReadError(f"Cannot read {self._db_path}: {exc}") from exc
        events = [self._row_to_event(r) for r in rows]
        return [ev for ev in events if ev is not None]

    def _write(self, events: Sequence[Event]) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(_SCHEMA)
                conn.execute("DELETE FROM events")
                conn.executemany(
                    """
                    INSERT INTO events (id, position, title, date, time, description)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (ev.id, pos, ev.title, ev.date, ev.time, ev.description)
                        for pos, ev in enumerate(events)
                    ],
                )
        finally:
            conn.close()

    async def load(self) -> list[Event]:
        try:
            events = await asyncio.to_thread(self._read)
        except StorageReadError as exc:
            logger.warning("Stored events are corrupt, starting empty: %s", exc)
            return []
        logger.info("Loaded %d events from %s", len(events), self._db_path)
        return events

    async def save(self, events: Sequence[Event]) -> None:
        try:
            await asyncio.to_thread(self._write, list(events))
        except sqlite3.Error as exc:
            logger.error("Failed to write events to %s: %s", self._db_path, exc)
            raise StorageWriteError(f"Cannot write {self._db_path}: {exc}") from exc
        logger.debug("Saved %d events to %s", len(events), self._db_path)
