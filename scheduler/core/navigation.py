"""Navigation controller — owns the (reference date, view mode) pair.

Every state change re-projects the period model from the event source and
hands it to registered listeners. No transition is forbidden: all four
view modes are reachable from each other at any time.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date

from scheduler.core.date_math import ViewMode, period_title, shift
from scheduler.core.view_projector import PeriodModel, project
from scheduler.data.models import Event

logger = logging.getLogger(__name__)

Listener = Callable[[PeriodModel], None]


@dataclass(frozen=True)
class NavigationState:
    reference_date: date
    view_mode: ViewMode

    @property
    def title(self) -> str:
        return period_title(self.reference_date, self.view_mode)


class NavigationController:
    """State machine over view modes with a free-running reference date.

    Args:
        events: Zero-argument callable returning the current event snapshot
            (typically ``EventStore.snapshot``).
        today: Clock used for the initial reference date and ``go_today``.
    """

    def __init__(
        self,
        events: Callable[[], Iterable[Event]],
        today: Callable[[], date] = date.today,
        view_mode: ViewMode = ViewMode.MONTHLY,
        reference_date: date | None = None,
    ) -> None:
        self._events = events
        self._today = today
        self._view_mode = view_mode
        self._reference_date = reference_date or today()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> NavigationState:
        return NavigationState(self._reference_date, self._view_mode)

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def reference_date(self) -> date:
        return self._reference_date

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def current(self) -> PeriodModel:
        """Project the period model for the current state."""
        return project(self._reference_date, self._view_mode, self._events())

    def refresh(self) -> PeriodModel:
        """Re-project and notify listeners (also used after store edits)."""
        model = self.current()
        for listener in self._listeners:
            listener(model)
        return model

    def switch_view(self, mode: ViewMode) -> PeriodModel:
        self._view_mode = ViewMode(mode)
        logger.debug("View switched to %s", self._view_mode.value)
        return self.refresh()

    def step_forward(self) -> PeriodModel:
        self._reference_date = shift(self._reference_date, self._view_mode, +1)
        return self.refresh()

    def step_backward(self) -> PeriodModel:
        self._reference_date = shift(self._reference_date, self._view_mode, -1)
        return self.refresh()

    def jump_to_date(self, day: date) -> PeriodModel:
        """Drill into a single day (annual view day pick)."""
        self._reference_date = day
        self._view_mode = ViewMode.DAILY
        return self.refresh()

    def go_today(self) -> PeriodModel:
        self._reference_date = self._today()
        return self.refresh()
