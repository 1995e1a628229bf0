"""View projector — builds the declarative period model for a view.

Given a reference date, a view mode and a read-only snapshot of events,
returns the ordered cells the presentation layer draws. Events are bound
to cells by exact calendar-date equality; the time of day is never used.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta

from scheduler.core.date_math import (
    MONTH_NAMES,
    ViewMode,
    date_key,
    days_in_month,
    first_weekday_of_month,
    month_title,
    period_title,
    week_start,
)
from scheduler.data.models import Event

ANNUAL_COLUMNS = 3


@dataclass(frozen=True)
class DayCell:
    """One slot of a grid. ``day`` is None for a leading blank."""

    day: date | None
    events: tuple[Event, ...] = ()
    has_events: bool = False

    @property
    def is_blank(self) -> bool:
        return self.day is None

    @property
    def key(self) -> str:
        return date_key(self.day) if self.day else ""


@dataclass(frozen=True)
class MonthGrid:
    """Leading blanks followed by one cell per day of the month."""

    year: int
    month_index: int       # 0-based
    cells: tuple[DayCell, ...]

    @property
    def name(self) -> str:
        return MONTH_NAMES[self.month_index]

    @property
    def title(self) -> str:
        return month_title(self.year, self.month_index)

    @property
    def leading_blanks(self) -> int:
        return sum(1 for cell in self.cells if cell.is_blank)

    @property
    def day_cells(self) -> tuple[DayCell, ...]:
        return tuple(cell for cell in self.cells if not cell.is_blank)

    def weeks(self) -> list[tuple[DayCell, ...]]:
        """Cells chunked into Sunday-first rows of 7 (last row may be short)."""
        return [self.cells[i:i + 7] for i in range(0, len(self.cells), 7)]


@dataclass(frozen=True)
class PeriodModel:
    """Everything the presentation layer needs to draw one period.

    ``cells`` holds the day slots for monthly, weekly and daily views;
    ``months`` holds one grid for monthly and twelve for annual.
    """

    view_mode: ViewMode
    reference_date: date
    title: str
    cells: tuple[DayCell, ...] = ()
    months: tuple[MonthGrid, ...] = ()

    def annual_layout(self) -> list[tuple[MonthGrid, ...]]:
        """The twelve month grids as 4 rows of 3 columns, January first."""
        return [
            self.months[i:i + ANNUAL_COLUMNS]
            for i in range(0, len(self.months), ANNUAL_COLUMNS)
        ]


@dataclass(frozen=True)
class FormIntent:
    """What the presentation layer should open after a selection."""

    mode: str                              # "create" | "edit"
    fields: dict = field(default_factory=dict)

    @property
    def can_delete(self) -> bool:
        return self.mode == "edit"


def group_by_date(events: Iterable[Event]) -> dict[str, list[Event]]:
    grouped: dict[str, list[Event]] = defaultdict(list)
    for ev in events:
        grouped[ev.date].append(ev)
    return grouped


def _day_cell(day: date, grouped: dict[str, list[Event]], with_events: bool) -> DayCell:
    bound = grouped.get(date_key(day), [])
    return DayCell(
        day=day,
        events=tuple(bound) if with_events else (),
        has_events=bool(bound),
    )


def _month_grid(
    year: int,
    month_index: int,
    grouped: dict[str, list[Event]],
    with_events: bool = True,
) -> MonthGrid:
    blanks = [DayCell(day=None)] * first_weekday_of_month(year, month_index)
    days = [
        _day_cell(date(year, month_index + 1, d), grouped, with_events)
        for d in range(1, days_in_month(year, month_index) + 1)
    ]
    return MonthGrid(year=year, month_index=month_index, cells=tuple(blanks + days))


def project(
    reference_date: date,
    view_mode: ViewMode,
    events: Iterable[Event],
) -> PeriodModel:
    """Compute the period model for ``view_mode`` around ``reference_date``."""
    grouped = group_by_date(events)
    title = period_title(reference_date, view_mode)

    if view_mode is ViewMode.MONTHLY:
        grid = _month_grid(reference_date.year, reference_date.month - 1, grouped)
        return PeriodModel(view_mode, reference_date, title, cells=grid.cells, months=(grid,))

    if view_mode is ViewMode.WEEKLY:
        start = week_start(reference_date)
        cells = tuple(
            _day_cell(start + timedelta(days=i), grouped, with_events=True)
            for i in range(7)
        )
        return PeriodModel(view_mode, reference_date, title, cells=cells)

    if view_mode is ViewMode.DAILY:
        cell = _day_cell(reference_date, grouped, with_events=True)
        ordered = tuple(sorted(cell.events, key=lambda ev: (ev.time, ev.title)))
        cell = DayCell(day=cell.day, events=ordered, has_events=cell.has_events)
        return PeriodModel(view_mode, reference_date, title, cells=(cell,))

    if view_mode is ViewMode.ANNUAL:
        months = tuple(
            _month_grid(reference_date.year, m, grouped, with_events=False)
            for m in range(12)
        )
        return PeriodModel(view_mode, reference_date, title, months=months)

    raise ValueError(f"Unknown view mode: {view_mode!r}")


def select_day(day: date) -> FormIntent:
    """Selecting an empty part of a day opens a blank form for that date."""
    return FormIntent(
        mode="create",
        fields={"id": "", "title": "", "date": date_key(day), "time": "", "description": ""},
    )


def select_event(event: Event) -> FormIntent:
    """Selecting an event opens the edit form with all of its fields."""
    return FormIntent(mode="edit", fields=event.as_dict())
