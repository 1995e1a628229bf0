"""Storage adapter factory — creates the right adapter based on config."""

from __future__ import annotations

from scheduler.config import settings
from scheduler.ports.storage_port import StoragePort


def create_storage_adapter() -> StoragePort:
    """Return the storage adapter matching the STORAGE_BACKEND setting."""
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "json":
        from scheduler.adapters.json_storage import JsonFileStorage

        return JsonFileStorage(path=settings.DATA_PATH)

    if backend == "sqlite":
        from scheduler.adapters.sqlite_storage import SqliteStorage

        return SqliteStorage(db_path=settings.DATABASE_PATH)

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
