"""Shared test fixtures and configuration.

Sets up fake environment variables before scheduler.config is imported,
and provides common fixtures like a store, temp storage and a service.
"""

import os

# Patch env vars BEFORE any scheduler imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("STORAGE_BACKEND", "json")
os.environ.setdefault("CLOCK_REFRESH_SECONDS", "60")

import pytest


@pytest.fixture
def store():
    """Return an empty EventStore."""
    from scheduler.core.event_store import EventStore
    return EventStore()


@pytest.fixture
def json_storage(tmp_path):
    """Return a JsonFileStorage backed by a temp file."""
    from scheduler.adapters.json_storage import JsonFileStorage
    return JsonFileStorage(path=tmp_path / "events.json")


@pytest.fixture
def sqlite_storage(tmp_path):
    """Return a SqliteStorage backed by a temp file."""
    from scheduler.adapters.sqlite_storage import SqliteStorage
    return SqliteStorage(db_path=str(tmp_path / "events.db"))


@pytest.fixture
def service(json_storage):
    """Return a CalendarService with an empty store and JSON storage."""
    from scheduler.core.calendar_service import CalendarService
    return CalendarService(json_storage)
