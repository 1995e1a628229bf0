"""Tests for scheduler.adapters.sqlite_storage — SQLite persistence."""

import sqlite3
from unittest.mock import patch

import pytest

from scheduler.adapters.sqlite_storage import SqliteStorage
from scheduler.data.models import Event
from scheduler.ports.storage_port import StorageWriteError

EVENTS = [
    Event(id="b", title="Second in store", date="2024-02-16"),
    Event(id="a", title="First by id", date="2024-02-10", time="09:00", description="sync"),
]


class TestSqliteStorage:
    @pytest.mark.asyncio
    async def test_empty_database_loads_empty(self, sqlite_storage):
        assert await sqlite_storage.load() == []

    @pytest.mark.asyncio
    async def test_save_then_load_keeps_order(self, sqlite_storage):
        await sqlite_storage.save(EVENTS)
        assert await sqlite_storage.load() == EVENTS

    @pytest.mark.asyncio
    async def test_save_replaces_rows(self, sqlite_storage):
        await sqlite_storage.save(EVENTS)
        await sqlite_storage.save(EVENTS[1:])
        assert await sqlite_storage.load() == EVENTS[1:]

    @pytest.mark.asyncio
    async def test_invalid_rows_are_skipped(self, tmp_path):
        db_path = str(tmp_path / "events.db")
        storage = SqliteStorage(db_path=db_path)
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO events (id, position, title, date) VALUES ('x', 0, 'Bad', 'soon')"
            )
            conn.execute(
                "INSERT INTO events (id, position, title, date) VALUES ('y', 1, 'Good', '2024-02-10')"
            )
        events = await storage.load()
        assert [ev.id for ev in events] == ["y"]

    @pytest.mark.asyncio
    async def test_corrupt_database_loads_empty(self, tmp_path):
        db_path = tmp_path / "events.db"
        storage = SqliteStorage(db_path=str(db_path))
        db_path.write_bytes(b"this is not a database" * 100)
        assert await storage.load() == []

    @pytest.mark.asyncio
    async def test_database_corrupt_before_startup_loads_empty(self, tmp_path):
        db_path = tmp_path / "events.db"
        db_path.write_bytes(b"this is not a database" * 100)
        storage = SqliteStorage(db_path=str(db_path))
        assert await storage.load() == []

    @pytest.mark.asyncio
    async def test_save_to_corrupt_database_is_wrapped(self, tmp_path):
        db_path = tmp_path / "events.db"
        db_path.write_bytes(b"this is not a database" * 100)
        storage = SqliteStorage(db_path=str(db_path))
        with pytest.raises(StorageWriteError):
            await storage.save(EVENTS)

    @pytest.mark.asyncio
    async def test_table_created_on_first_use(self, tmp_path):
        db_path = tmp_path / "events.db"
        storage = SqliteStorage(db_path=str(db_path))
        db_path.unlink()
        assert await storage.load() == []
        await storage.save(EVENTS)
        assert await storage.load() == EVENTS

    @pytest.mark.asyncio
    async def test_write_error_is_wrapped(self, sqlite_storage):
        with patch.object(sqlite_storage, "_connect", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(StorageWriteError, match="locked"):
                await sqlite_storage.save(EVENTS)
