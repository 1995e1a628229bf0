"""Calendar date arithmetic — pure business logic.

Period boundaries, period titles and date shifts for each view mode.
Weeks start on Sunday (weekday index 0) and month indexes are 0-based,
so January is 0 and December is 11.

Month and year shifts clamp the day-of-month to the last valid day of the
target month: Jan 31 + 1 month is Feb 29 (2024) or Feb 28, never March.

No I/O and no hidden state: every function returns a new value.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, timedelta
from enum import Enum

_DATE_KEY_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
WEEKDAY_NAMES = (
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)


class ViewMode(Enum):
    ANNUAL = "annual"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"


def date_key(day: date) -> str:
    """Return the YYYY-MM-DD key events are bound by."""
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_date_key(text: str) -> date:
    """Parse a strict YYYY-MM-DD key.

    Raises ValueError on any other shape or on an impossible date.
    """
    if not _DATE_KEY_RE.fullmatch(text):
        raise ValueError(f"Expected YYYY-MM-DD, got {text!r}")
    year, month, day = (int(part) for part in text.split("-"))
    return date(year, month, day)


def weekday_index(day: date) -> int:
    """Sunday-based weekday index: Sunday = 0 ... Saturday = 6."""
    return (day.weekday() + 1) % 7


def days_in_month(year: int, month_index: int) -> int:
    return calendar.monthrange(year, month_index + 1)[1]


def first_weekday_of_month(year: int, month_index: int) -> int:
    return weekday_index(date(year, month_index + 1, 1))


def week_start(day: date) -> date:
    """Return the Sunday on or before ``day``."""
    return day - timedelta(days=weekday_index(day))


def _add_months(day: date, months: int) -> date:
    total = day.year * 12 + (day.month - 1) + months
    year, month_index = divmod(total, 12)
    last_day = days_in_month(year, month_index)
    return date(year, month_index + 1, min(day.day, last_day))


def shift(reference_date: date, view_mode: ViewMode, direction: int) -> date:
    """Move ``reference_date`` one period forward (+1) or backward (-1).

    Monthly moves one calendar month, annual one year (both clamped),
    weekly seven days, daily one day.
    """
    if direction not in (1, -1):
        raise ValueError(f"direction must be +1 or -1, got {direction!r}")

    if view_mode is ViewMode.MONTHLY:
        return _add_months(reference_date, direction)
    if view_mode is ViewMode.ANNUAL:
        return _add_months(reference_date, 12 * direction)
    if view_mode is ViewMode.WEEKLY:
        return reference_date + timedelta(days=7 * direction)
    if view_mode is ViewMode.DAILY:
        return reference_date + timedelta(days=direction)
    raise ValueError(f"Unknown view mode: {view_mode!r}")


def format_short(day: date) -> str:
    """M/D/YYYY, as used in the weekly title."""
    return f"{day.month}/{day.day}/{day.year}"


def format_long(day: date) -> str:
    """e.g. 'Thursday, February 15, 2024'."""
    return (
        f"{WEEKDAY_NAMES[weekday_index(day)]}, "
        f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"
    )


def month_title(year: int, month_index: int) -> str:
    return f"{MONTH_NAMES[month_index]} {year}"


def period_title(reference_date: date, view_mode: ViewMode) -> str:
    """Human title that identifies the period shown for ``view_mode``.

    Derived only from the reference date and the view mode.
    """
    if view_mode is ViewMode.MONTHLY:
        return month_title(reference_date.year, reference_date.month - 1)
    if view_mode is ViewMode.WEEKLY:
        start = week_start(reference_date)
        end = start + timedelta(days=6)
        return f"Week: {format_short(start)} - {format_short(end)}"
    if view_mode is ViewMode.DAILY:
        return format_long(reference_date)
    if view_mode is ViewMode.ANNUAL:
        return f"{reference_date.year:04d}"
    raise ValueError(f"Unknown view mode: {view_mode!r}")
