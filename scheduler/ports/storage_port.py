"""Storage port — abstract interface for event persistence.

Core modules depend on this protocol, never on a specific backend.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from scheduler.data.models import Event


class StorageError(Exception):
    """Base class for persistence and file failures."""


class StorageReadError(StorageError):
    """Raised when persisted content cannot be decoded."""


class StorageWriteError(StorageError):
    """Raised when the durable store cannot be written."""


class FileReadError(StorageError):
    """Raised when a user-supplied import file cannot be read or parsed."""


class StoragePort(Protocol):
    """Durable local store for the full event collection."""

    async def load(self) -> list[Event]:
        """Return stored events; empty when missing or malformed. Never raises."""
        ...

    async def save(self, events: Sequence[Event]) -> None:
        """Overwrite stored content with ``events``. Raises StorageWriteError."""
        ...
