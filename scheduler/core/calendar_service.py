"""
Scheduler Calendar — UI-Agnostic Calendar Service.

Orchestrates the event store, persistence and navigation:
validate -> mutate store -> persist -> return a structured response the
presentation layer renders in its own way.

Every mutate-then-persist sequence runs under one asyncio.Lock, so a
pending save or import holds exclusive intent over the store until it
completes or fails. A failed write never rolls back the in-memory store;
it only turns the response into a notice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any

from scheduler.core.date_math import ViewMode
from scheduler.core.event_store import EventStore, EventValidationError
from scheduler.core.navigation import NavigationController
from scheduler.core.transfer import export_document, parse_import_document
from scheduler.core.view_projector import FormIntent, PeriodModel, select_day, select_event
from scheduler.data.models import Event
from scheduler.ports.storage_port import FileReadError, StorageWriteError

if TYPE_CHECKING:
    from scheduler.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    ERROR = "error"
    NOTICE = "notice"       # applied in memory, but persistence failed


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str
    event: Event | None = None
    count: int = 0

    @property
    def applied(self) -> bool:
        """True when the store changed (even if saving it failed)."""
        return self.kind is not ResponseKind.ERROR


_SAVE_FAILED = "Saved in this session only: the calendar file could not be written."


class CalendarService:
    """Owns the event store and its persistence for all sessions."""

    def __init__(self, storage: StoragePort, store: EventStore | None = None) -> None:
        self._storage = storage
        self._store = store if store is not None else EventStore()
        self._lock = asyncio.Lock()

    @property
    def store(self) -> EventStore:
        return self._store

    def navigator(self, today: Callable[[], date] = date.today) -> NavigationController:
        """Create a navigation controller bound to this service's store."""
        return NavigationController(events=self._store.snapshot, today=today)

    # -- persistence --------------------------------------------------------

    async def load(self) -> int:
        """Fill the store from durable storage. Corrupt data means empty."""
        async with self._lock:
            events = await self._storage.load()
            try:
                self._store.replace_all([ev.as_dict() for ev in events])
            except EventValidationError as exc:
                logger.warning("Stored events rejected, starting empty: %s", exc)
                self._store.replace_all([])
        return len(self._store)

    async def _persist(self) -> str | None:
        """Save the full store. Returns a notice on failure instead of raising."""
        try:
            await self._storage.save(self._store.snapshot())
        except StorageWriteError as exc:
            logger.error("Persistence failed, keeping in-memory state: %s", exc)
            return _SAVE_FAILED
        return None

    # -- user intents -------------------------------------------------------

    def select_day(self, navigation: NavigationController, day: date) -> PeriodModel | FormIntent:
        """Annual view drills into the day; every other view opens the create form."""
        if navigation.view_mode is ViewMode.ANNUAL:
            return navigation.jump_to_date(day)
        return select_day(day)

    def select_event(self, event_id: str) -> FormIntent | None:
        event = self._store.get(event_id)
        return select_event(event) if event else None

    async def submit_event(self, fields: Mapping[str, Any]) -> ServiceResponse:
        """Create or update an event from form fields."""
        async with self._lock:
            try:
                event = self._store.upsert(fields)
            except EventValidationError as exc:
                logger.warning("Event submission rejected: %s", exc)
                if exc.missing:
                    message = f"Title and Date are required! ({exc})"
                else:
                    message = f"Event not saved: {exc}"
                return ServiceResponse(ResponseKind.ERROR, message)
            notice = await self._persist()

        message = f"Saved: {event.title} on {event.date}"
        if notice:
            return ServiceResponse(ResponseKind.NOTICE, f"{message}\n{notice}", event=event)
        return ServiceResponse(ResponseKind.SUCCESS, message, event=event)

    async def delete_event(self, event_id: str) -> ServiceResponse:
        async with self._lock:
            event = self._store.get(event_id)
            if not self._store.delete(event_id):
                return ServiceResponse(ResponseKind.SUCCESS, "Event already removed.")
            notice = await self._persist()

        message = f"Deleted: {event.title}"
        if notice:
            return ServiceResponse(ResponseKind.NOTICE, f"{message}\n{notice}", event=event)
        return ServiceResponse(ResponseKind.SUCCESS, message, event=event)

    async def import_document(self, raw: bytes | str) -> ServiceResponse:
        """Replace the whole collection with the events of an import file."""
        try:
            records = parse_import_document(raw)
        except (FileReadError, EventValidationError) as exc:
            return ServiceResponse(ResponseKind.ERROR, str(exc))

        async with self._lock:
            try:
                self._store.replace_all(records)
            except EventValidationError as exc:
                logger.warning("Import rejected: %s", exc)
                return ServiceResponse(ResponseKind.ERROR, f"Invalid event data in file. {exc}")
            notice = await self._persist()

        count = len(self._store)
        message = f"Imported {count} events."
        if notice:
            return ServiceResponse(ResponseKind.NOTICE, f"{message}\n{notice}", count=count)
        return ServiceResponse(ResponseKind.SUCCESS, message, count=count)

    def export_document(self) -> bytes:
        return export_document(self._store.snapshot())
