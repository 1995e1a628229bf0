"""Tests for scheduler.data.models — Event and EventRecord."""

import dataclasses

import pytest
from pydantic import ValidationError

from scheduler.data.models import Event, EventRecord


class TestEvent:
    def test_defaults(self):
        event = Event(id="1", title="Standup", date="2024-02-10")
        assert event.time == ""
        assert event.description == ""

    def test_frozen(self):
        event = Event(id="1", title="Standup", date="2024-02-10")
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.title = "Other"

    def test_as_dict(self):
        event = Event(id="1", title="Standup", date="2024-02-10", time="09:00", description="sync")
        assert event.as_dict() == {
            "id": "1", "title": "Standup", "date": "2024-02-10", "time": "09:00", "description": "sync",
        }


class TestEventRecord:
    def test_valid_minimal(self):
        record = EventRecord(title="Standup", date="2024-02-10")
        assert record.id == ""
        assert record.time == ""

    def test_strips_fields(self):
        record = EventRecord(id=" a ", title="  Standup ", date=" 2024-02-10 ", time=" 09:00 ")
        assert (record.id, record.title, record.date, record.time) == ("a", "Standup", "2024-02-10", "09:00")

    def test_none_optionals_become_blank(self):
        record = EventRecord(title="A", date="2024-02-10", time=None, description=None)
        assert record.time == ""
        assert record.description == ""

    @pytest.mark.parametrize("title", ["", "   "])
    def test_title_required(self, title):
        with pytest.raises(ValidationError, match="title is required"):
            EventRecord(title=title, date="2024-02-10")

    def test_date_required(self):
        with pytest.raises(ValidationError, match="date is required"):
            EventRecord(title="A", date="")

    @pytest.mark.parametrize("value", ["2024-2-10", "2024-02-30", "tomorrow", "2024-02-10T09:00", "２０２４-０２-１０"])
    def test_date_must_be_calendar_key(self, value):
        with pytest.raises(ValidationError):
            EventRecord(title="A", date=value)

    def test_missing_fields(self):
        with pytest.raises(ValidationError):
            EventRecord.model_validate({"title": "A"})

    def test_to_event(self):
        event = EventRecord(title="A", date="2024-02-10").to_event("xyz")
        assert event == Event(id="xyz", title="A", date="2024-02-10")
