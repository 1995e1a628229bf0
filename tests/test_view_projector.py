"""Tests for scheduler.core.view_projector — period models per view."""

from datetime import date

from scheduler.core.date_math import ViewMode
from scheduler.core.view_projector import project, select_day, select_event
from scheduler.data.models import Event


def _ev(event_id, date_str, title="Event", time=""):
    return Event(id=event_id, title=title, date=date_str, time=time)


# ---------------------------------------------------------------------------
# Monthly
# ---------------------------------------------------------------------------


class TestMonthly:
    def test_thirty_day_month_starting_wednesday(self):
        # April 2026: 30 days, Apr 1 is a Wednesday (index 3)
        model = project(date(2026, 4, 10), ViewMode.MONTHLY, [])
        grid = model.months[0]
        assert grid.leading_blanks == 3
        assert all(cell.is_blank for cell in model.cells[:3])
        assert len(grid.day_cells) == 30
        assert len(model.cells) == 33

    def test_february_2024_leap_grid(self):
        model = project(date(2024, 2, 15), ViewMode.MONTHLY, [])
        grid = model.months[0]
        assert model.title == "February 2024"
        assert grid.leading_blanks == 4
        assert len(grid.day_cells) == 29
        assert grid.day_cells[0].day == date(2024, 2, 1)
        assert grid.day_cells[-1].day == date(2024, 2, 29)

    def test_events_bound_by_date(self):
        events = [_ev("1", "2024-02-10", "Standup"), _ev("2", "2024-03-10")]
        model = project(date(2024, 2, 15), ViewMode.MONTHLY, events)
        bound = {cell.day.day: cell.events for cell in model.cells if cell.events}
        assert list(bound) == [10]
        assert bound[10][0].title == "Standup"
        tenth = next(c for c in model.cells if c.day == date(2024, 2, 10))
        assert tenth.has_events is True

    def test_time_of_day_is_ignored(self):
        events = [_ev("1", "2024-02-10", time="23:59"), _ev("2", "2024-02-10", time="00:01")]
        model = project(date(2024, 2, 1), ViewMode.MONTHLY, events)
        tenth = next(c for c in model.cells if c.day == date(2024, 2, 10))
        assert {ev.id for ev in tenth.events} == {"1", "2"}

    def test_weeks_are_rows_of_seven(self):
        model = project(date(2024, 2, 15), ViewMode.MONTHLY, [])
        weeks = model.months[0].weeks()
        assert all(len(week) == 7 for week in weeks[:-1])
        assert sum(len(week) for week in weeks) == 33

    def test_month_starting_sunday_has_no_blanks(self):
        # Sep 1 2024 is a Sunday
        model = project(date(2024, 9, 30), ViewMode.MONTHLY, [])
        assert model.months[0].leading_blanks == 0
        assert model.cells[0].day == date(2024, 9, 1)


# ---------------------------------------------------------------------------
# Weekly / Daily
# ---------------------------------------------------------------------------


class TestWeekly:
    def test_wednesday_gives_sunday_to_saturday(self):
        model = project(date(2024, 2, 14), ViewMode.WEEKLY, [])
        assert len(model.cells) == 7
        assert model.cells[0].day == date(2024, 2, 11)
        assert model.cells[-1].day == date(2024, 2, 17)

    def test_week_across_month_boundary(self):
        events = [_ev("1", "2024-03-01"), _ev("2", "2024-02-26")]
        model = project(date(2024, 2, 28), ViewMode.WEEKLY, events)
        assert [c.day.day for c in model.cells] == [25, 26, 27, 28, 29, 1, 2]
        assert [c.has_events for c in model.cells] == [False, True, False, False, False, True, False]


class TestDaily:
    def test_single_cell(self):
        model = project(date(2024, 2, 15), ViewMode.DAILY, [_ev("1", "2024-02-15")])
        assert len(model.cells) == 1
        assert model.cells[0].day == date(2024, 2, 15)
        assert model.cells[0].events[0].id == "1"

    def test_events_ordered_by_time(self):
        events = [_ev("late", "2024-02-15", time="18:00"), _ev("early", "2024-02-15", time="08:00")]
        model = project(date(2024, 2, 15), ViewMode.DAILY, events)
        assert [ev.id for ev in model.cells[0].events] == ["early", "late"]

    def test_empty_day(self):
        model = project(date(2024, 2, 15), ViewMode.DAILY, [_ev("1", "2024-02-16")])
        assert model.cells[0].events == ()
        assert model.cells[0].has_events is False


# ---------------------------------------------------------------------------
# Annual
# ---------------------------------------------------------------------------


class TestAnnual:
    def test_twelve_months_in_order(self):
        model = project(date(2024, 6, 1), ViewMode.ANNUAL, [])
        assert [g.month_index for g in model.months] == list(range(12))
        assert model.months[0].name == "January"
        assert model.title == "2024"

    def test_layout_is_four_rows_of_three(self):
        layout = project(date(2024, 6, 1), ViewMode.ANNUAL, []).annual_layout()
        assert len(layout) == 4
        assert all(len(row) == 3 for row in layout)
        assert layout[3][2].name == "December"

    def test_presence_flag_only(self):
        model = project(date(2024, 6, 1), ViewMode.ANNUAL, [_ev("1", "2024-07-04")])
        july = model.months[6]
        fourth = next(c for c in july.day_cells if c.day.day == 4)
        assert fourth.has_events is True
        assert fourth.events == ()

    def test_other_years_ignored(self):
        model = project(date(2024, 6, 1), ViewMode.ANNUAL, [_ev("1", "2025-07-04")])
        assert not any(c.has_events for g in model.months for c in g.day_cells)


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------


class TestIntents:
    def test_select_day_prefills_date(self):
        intent = select_day(date(2024, 2, 10))
        assert intent.mode == "create"
        assert intent.fields["date"] == "2024-02-10"
        assert intent.fields["id"] == ""
        assert intent.can_delete is False

    def test_select_event_prefills_everything(self):
        event = Event(id="1", title="Standup", date="2024-02-10", time="09:00", description="sync")
        intent = select_event(event)
        assert intent.mode == "edit"
        assert intent.fields == {
            "id": "1", "title": "Standup", "date": "2024-02-10", "time": "09:00", "description": "sync",
        }
        assert intent.can_delete is True
