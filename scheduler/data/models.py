"""
Scheduler Calendar — Data Models.

Events are the only persisted state. The rest of the calendar (view mode,
reference date, period grids) is derived and never stored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from pydantic import BaseModel, field_validator
from pydantic_core import PydanticCustomError

from scheduler.core.date_math import parse_date_key


@dataclass(frozen=True)
class Event:
    """A dated calendar event.

    Frozen so a store snapshot can be handed to the projector and the
    exporter without copying.
    """

    id: str
    title: str
    date: str              # YYYY-MM-DD, no time zone
    time: str = ""         # free-form, e.g. "14:30"
    description: str = ""

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class EventRecord(BaseModel):
    """Validation contract for an Event-shaped record.

    Used for form submissions and for every record of an imported document.

    JSON example:
    {
        "id": "3f0c9a1b2d4e4f6a8b7c6d5e4f3a2b1c",
        "title": "Standup",
        "date": "2024-02-10",
        "time": "09:30",
        "description": "Daily sync"
    }
    """

    id: str = ""
    title: str
    date: str
    time: str = ""
    description: str = ""

    @field_validator("id", "time", "description", mode="before")
    @classmethod
    def blank_if_missing(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("id", "time", "description")
    @classmethod
    def strip_optional(cls, v: str) -> str:
        return v.strip()

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise PydanticCustomError("required", "title is required")
        return v

    @field_validator("date")
    @classmethod
    def date_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise PydanticCustomError("required", "date is required")
        parse_date_key(v)
        return v

    def to_event(self, event_id: str) -> Event:
        return Event(
            id=event_id,
            title=self.title,
            date=self.date,
            time=self.time,
            description=self.description,
        )
