"""Telegram rendering of period models.

Turns a PeriodModel into message text plus an inline keyboard. Keyboard
taps come back as callback data that the bot maps onto user intents:

    view:<mode>          switch view
    nav:prev|next|today|stay  step backward / forward / today / redraw
    day:<YYYY-MM-DD>     select a day
    month:<MM>           expand one month of the annual view
    event:<id>           select an event
    edit:<id>            open the edit form
    delete:<id>          delete an event
    new:<YYYY-MM-DD>     open the create form for a day
    noop                 padding and header cells
"""

from __future__ import annotations

from datetime import date

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from scheduler.core.date_math import (
    WEEKDAY_NAMES,
    ViewMode,
    format_short,
    weekday_index,
)
from scheduler.core.view_projector import DayCell, MonthGrid, PeriodModel
from scheduler.data.models import Event

# Telegram rejects callback data longer than 64 bytes
_CALLBACK_LIMIT = 64
# ...and message text longer than 4096 characters (UTF-16 code units)
_TEXT_LIMIT = 4096
_MAX_EVENT_BUTTONS = 20

_VIEW_LABELS = (
    (ViewMode.ANNUAL, "Year"),
    (ViewMode.MONTHLY, "Month"),
    (ViewMode.WEEKLY, "Week"),
    (ViewMode.DAILY, "Day"),
)
_WEEKDAY_SHORT = tuple(name[:2] for name in WEEKDAY_NAMES)


def _noop(label: str = " ") -> InlineKeyboardButton:
    return InlineKeyboardButton(label, callback_data="noop")


def _fits(data: str) -> bool:
    return len(data.encode("utf-8")) <= _CALLBACK_LIMIT


def _text_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _fit(head: list[str], body: list[str], tail: list[str]) -> str:
    """Join the lines, cutting the body short with an "…and N more" line
    when the message would exceed Telegram's text limit.
    """
    text = "\n".join(head + body + tail)
    if _text_length(text) <= _TEXT_LIMIT:
        return text

    used = _text_length("\n".join(head + tail)) + _text_length(f"…and {len(body)} more") + 1
    kept: list[str] = []
    for line in body:
        cost = _text_length(line) + 1
        if used + cost > _TEXT_LIMIT:
            break
        kept.append(line)
        used += cost
    kept.append(f"…and {len(body) - len(kept)} more")
    return "\n".join(head + kept + tail)


def _clip(text: str) -> str:
    if _text_length(text) <= _TEXT_LIMIT:
        return text
    clipped = text[:_TEXT_LIMIT - 1]
    while _text_length(clipped) > _TEXT_LIMIT - 1:
        clipped = clipped[:-1]
    return clipped + "…"


def _event_line(ev: Event) -> str:
    return f"{ev.time} - {ev.title}" if ev.time else ev.title


def _day_label(cell: DayCell, today: date | None) -> str:
    label = str(cell.day.day)
    if cell.has_events:
        label += "•"
    if cell.day == today:
        label = f"[{label}]"
    return label


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def _monthly_body(model: PeriodModel) -> list[str]:
    lines = []
    for cell in model.cells:
        for ev in cell.events:
            weekday = WEEKDAY_NAMES[weekday_index(cell.day)][:3]
            lines.append(f"{weekday} {cell.day.day:>2} · {_event_line(ev)}")
    return lines or ["No events this month."]


def _weekly_body(model: PeriodModel) -> list[str]:
    lines = []
    for cell in model.cells:
        lines.append(f"{WEEKDAY_NAMES[weekday_index(cell.day)][:3]} {format_short(cell.day)}")
        if cell.events:
            lines.extend(f"   • {_event_line(ev)}" for ev in cell.events)
        else:
            lines.append("   —")
    return lines


def _daily_body(model: PeriodModel) -> list[str]:
    cell = model.cells[0]
    lines = [f"Events for {cell.key}"]
    if not cell.events:
        lines.append("No events for this day.")
    else:
        lines.extend(f"• {_event_line(ev)}" for ev in cell.events)
    return lines


def _annual_body(model: PeriodModel, expanded_month: int | None) -> list[str]:
    lines = []
    for grid in model.months:
        busy_days = sum(1 for cell in grid.day_cells if cell.has_events)
        if busy_days:
            plural = "s" if busy_days != 1 else ""
            lines.append(f"{grid.name}: {busy_days} day{plural} with events")
    if not lines:
        lines.append("No events this year.")
    if expanded_month is not None:
        lines.append("")
        lines.append(f"Pick a day in {model.months[expanded_month].title} to open it.")
    return lines


def render_text(
    model: PeriodModel,
    clock: str = "",
    expanded_month: int | None = None,
) -> str:
    """Message text for a period: title, body and the clock line."""
    if model.view_mode is ViewMode.MONTHLY:
        body = _monthly_body(model)
    elif model.view_mode is ViewMode.WEEKLY:
        body = _weekly_body(model)
    elif model.view_mode is ViewMode.DAILY:
        body = _daily_body(model)
    else:
        body = _annual_body(model, expanded_month)

    tail = ["", f"🕒 {clock}"] if clock else []
    return _fit([f"📅 {model.title}", ""], body, tail)


def render_event(event: Event) -> str:
    """Detail text for one event, as shown before edit/delete."""
    lines = [f"📝 {event.title}", f"Date: {event.date}"]
    if event.time:
        lines.append(f"Time: {event.time}")
    if event.description:
        lines.append(f"Description: {event.description}")
    return _clip("\n".join(lines))


# ---------------------------------------------------------------------------
# Keyboards
# ---------------------------------------------------------------------------


def _header_rows(model: PeriodModel) -> list[list[InlineKeyboardButton]]:
    views = [
        InlineKeyboardButton(
            f"· {label} ·" if mode is model.view_mode else label,
            callback_data=f"view:{mode.value}",
        )
        for mode, label in _VIEW_LABELS
    ]
    nav = [
        InlineKeyboardButton("◀", callback_data="nav:prev"),
        InlineKeyboardButton("Today", callback_data="nav:today"),
        InlineKeyboardButton("▶", callback_data="nav:next"),
    ]
    return [views, nav]


def _grid_rows(grid: MonthGrid, today: date | None) -> list[list[InlineKeyboardButton]]:
    rows = [[_noop(name) for name in _WEEKDAY_SHORT]]
    for week in grid.weeks():
        row = [
            _noop() if cell.is_blank
            else InlineKeyboardButton(_day_label(cell, today), callback_data=f"day:{cell.key}")
            for cell in week
        ]
        row += [_noop()] * (7 - len(row))
        rows.append(row)
    return rows


def _event_rows(events: list[Event]) -> list[list[InlineKeyboardButton]]:
    shown = [ev for ev in events if _fits(f"event:{ev.id}")][:_MAX_EVENT_BUTTONS]
    rows = [
        [InlineKeyboardButton(f"{ev.date[5:]} {_event_line(ev)}", callback_data=f"event:{ev.id}")]
        for ev in shown
    ]
    hidden = len(events) - len(shown)
    if hidden:
        rows.append([_noop(f"…and {hidden} more")])
    return rows


def build_keyboard(
    model: PeriodModel,
    today: date | None = None,
    expanded_month: int | None = None,
) -> InlineKeyboardMarkup:
    """Inline keyboard for a period: view switch, navigation and cells."""
    rows = _header_rows(model)

    if model.view_mode is ViewMode.MONTHLY:
        rows += _grid_rows(model.months[0], today)
        rows += _event_rows([ev for cell in model.cells for ev in cell.events])

    elif model.view_mode is ViewMode.WEEKLY:
        rows.append([
            InlineKeyboardButton(
                f"{_WEEKDAY_SHORT[i]} {_day_label(cell, today)}",
                callback_data=f"day:{cell.key}",
            )
            for i, cell in enumerate(model.cells)
        ])
        rows += _event_rows([ev for cell in model.cells for ev in cell.events])

    elif model.view_mode is ViewMode.DAILY:
        cell = model.cells[0]
        rows += _event_rows(list(cell.events))
        rows.append([InlineKeyboardButton("➕ Add event", callback_data=f"new:{cell.key}")])

    else:
        for row in model.annual_layout():
            rows.append([
                InlineKeyboardButton(
                    grid.name[:3] + (" •" if any(c.has_events for c in grid.day_cells) else ""),
                    callback_data=f"month:{grid.month_index + 1:02d}",
                )
                for grid in row
            ])
        if expanded_month is not None:
            rows += _grid_rows(model.months[expanded_month], today)

    return InlineKeyboardMarkup(rows)


def event_keyboard(event: Event) -> InlineKeyboardMarkup:
    rows = []
    if _fits(f"delete:{event.id}"):
        rows.append([
            InlineKeyboardButton("✏️ Edit", callback_data=f"edit:{event.id}"),
            InlineKeyboardButton("🗑 Delete", callback_data=f"delete:{event.id}"),
        ])
    rows.append([InlineKeyboardButton("Back to calendar", callback_data="nav:stay")])
    return InlineKeyboardMarkup(rows)
