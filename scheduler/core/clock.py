"""Current date-time display for the periodic clock tick."""

from __future__ import annotations

from datetime import datetime


def format_clock(now: datetime | None = None, with_seconds: bool = False) -> str:
    """Local clock as 'M/D/YYYY, h:mm AM' (optionally with seconds)."""
    now = now or datetime.now()
    hour = now.hour % 12 or 12
    suffix = "AM" if now.hour < 12 else "PM"
    clock = f"{hour}:{now.minute:02d}"
    if with_seconds:
        clock += f":{now.second:02d}"
    return f"{now.month}/{now.day}/{now.year}, {clock} {suffix}"
