"""
Scheduler Calendar — Event Store.

In-memory ordered collection of events. Pure data: no rendering and no I/O.
Persistence is the caller's job (see CalendarService), and only after a
mutation here succeeded.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from scheduler.data.models import Event, EventRecord

logger = logging.getLogger(__name__)


class EventValidationError(Exception):
    """Raised when a submitted or imported event payload is rejected.

    ``missing`` names the required fields that were absent or blank.
    """

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


def new_event_id() -> str:
    return uuid.uuid4().hex


def _describe(exc: ValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    parts = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "record"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


def _validate(fields: Mapping[str, Any]) -> EventRecord:
    try:
        return EventRecord.model_validate(dict(fields))
    except ValidationError as exc:
        missing = tuple(
            str(err["loc"][0]) for err in exc.errors()
            if err["type"] in ("missing", "required") and err["loc"]
        )
        raise EventValidationError(_describe(exc), missing=missing) from exc


class EventStore:
    """Ordered, id-unique collection of Event records."""

    def __init__(self, events: Sequence[Event] = ()) -> None:
        self._events: list[Event] = list(events)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.snapshot())

    def _index_of(self, event_id: str) -> int | None:
        for i, event in enumerate(self._events):
            if event.id == event_id:
                return i
        return None

    def get(self, event_id: str) -> Event | None:
        idx = self._index_of(event_id)
        return None if idx is None else self._events[idx]

    def events_on(self, key: str) -> list[Event]:
        """Return the events whose date equals the YYYY-MM-DD ``key``."""
        return [ev for ev in self._events if ev.date == key]

    def upsert(self, fields: Mapping[str, Any]) -> Event:
        """Insert or replace an event.

        An id already in the store replaces that event entirely. Any other
        id (or none) appends a new event; a missing id gets a fresh one.

        Raises EventValidationError when title or date is empty after
        trimming or the date is not a real YYYY-MM-DD date. The store is
        untouched on rejection.
        """
        record = _validate(fields)
        idx = self._index_of(record.id) if record.id else None

        if idx is not None:
            event = record.to_event(record.id)
            self._events[idx] = event
            logger.info("Event updated: %s '%s' on %s", event.id, event.title, event.date)
        else:
            event = record.to_event(record.id or new_event_id())
            self._events.append(event)
            logger.info("Event added: %s '%s' on %s", event.id, event.title, event.date)
        return event

    def delete(self, event_id: str) -> bool:
        """Remove the event with ``event_id``. Absent ids are a no-op."""
        idx = self._index_of(event_id)
        if idx is None:
            return False
        removed = self._events.pop(idx)
        logger.info("Event deleted: %s '%s'", removed.id, removed.title)
        return True

    def replace_all(self, records: Any) -> None:
        """Replace the whole collection (import).

        Every record is validated before anything is committed; on any
        failure EventValidationError is raised and the store is unchanged.
        """
        if isinstance(records, (str, bytes)) or not isinstance(records, (list, tuple)):
            raise EventValidationError(
                f"Expected a list of events, got {type(records).__name__}"
            )

        staged: list[Event] = []
        seen: set[str] = set()
        for position, raw in enumerate(records):
            if not isinstance(raw, Mapping):
                raise EventValidationError(
                    f"Event #{position + 1} is not an object ({type(raw).__name__})"
                )
            try:
                record = _validate(raw)
            except EventValidationError as exc:
                raise EventValidationError(f"Event #{position + 1}: {exc}") from exc

            event_id = record.id or new_event_id()
            if event_id in seen:
                raise EventValidationError(
                    f"Event #{position + 1}: duplicate id {event_id!r}"
                )
            seen.add(event_id)
            staged.append(record.to_event(event_id))

        self._events = staged
        logger.info("Event store replaced with %d events", len(staged))

    def snapshot(self) -> tuple[Event, ...]:
        """Immutable read-only view of the current events."""
        return tuple(self._events)
