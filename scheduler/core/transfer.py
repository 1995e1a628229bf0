"""Export/import documents for the whole event collection.

The export document is a pretty-printed JSON array of event objects; the
import side accepts the same shape. Records are validated by
EventStore.replace_all, not here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from scheduler.core.event_store import EventValidationError
from scheduler.data.models import Event
from scheduler.ports.storage_port import FileReadError

logger = logging.getLogger(__name__)


def encode_events(events: Iterable[Event], indent: int | None = None) -> str:
    return json.dumps([ev.as_dict() for ev in events], ensure_ascii=False, indent=indent)


def export_document(events: Iterable[Event]) -> bytes:
    """Serialize the full collection as a downloadable UTF-8 JSON document."""
    return (encode_events(events, indent=2) + "\n").encode("utf-8")


def parse_import_document(raw: bytes | str) -> list[Any]:
    """Decode an import file into a list of raw records.

    Raises:
        FileReadError: the content is not UTF-8 or not JSON.
        EventValidationError: the top-level value is not an array.
    """
    try:
        text = raw.decode("utf-8-sig") if isinstance(raw, (bytes, bytearray)) else raw
        decoded = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Import file could not be parsed: %s", exc)
        raise FileReadError(f"Error reading file: {exc}") from exc

    if not isinstance(decoded, list):
        raise EventValidationError("Invalid event data in file: expected a JSON array")
    return decoded
