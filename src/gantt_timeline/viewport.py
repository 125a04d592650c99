from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from .timeline_models import TimelineDay

ZOOM_LEVELS: tuple[int, ...] = (7, 14, 30, 60, 90, 180, 365)
"""Selectable days-in-view magnitudes, most detailed first."""

DEFAULT_ZOOM_INDEX = 2  # 30 days
DEFAULT_LABEL_EVERY = 3


def validate_zoom_levels(levels: Sequence[int]) -> tuple[int, ...]:
    """Return levels as a tuple; raise ValueError unless strictly ascending positive ints."""

    if not levels:
        raise ValueError("zoom levels must not be empty")
    for value in levels:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"zoom level {value!r} is not a positive integer")
    for lower, upper in zip(levels, levels[1:]):
        if upper <= lower:
            raise ValueError(f"zoom levels must be strictly ascending, got {list(levels)}")
    return tuple(levels)


class Viewport:
    """
    Visible window of the timeline: a start date plus a zoom level.

    The window covers days_in_view calendar days starting at window_start.
    window_end is the exclusive bound used for clipping. Zooming only changes
    the number of days in view; the start of the window stays where it is.
    """

    def __init__(
        self,
        window_start: date,
        zoom_index: int = DEFAULT_ZOOM_INDEX,
        zoom_levels: Sequence[int] = ZOOM_LEVELS,
    ) -> None:
        self.zoom_levels = validate_zoom_levels(zoom_levels)
        if not 0 <= zoom_index < len(self.zoom_levels):
            raise ValueError(f"zoom_index {zoom_index} outside 0..{len(self.zoom_levels) - 1}")
        self.zoom_index = zoom_index
        self.window_start = window_start

    def __repr__(self) -> str:
        return f"Viewport(window_start={self.window_start!r}, zoom_index={self.zoom_index})"

    @property
    def days_in_view(self) -> int:
        return self.zoom_levels[self.zoom_index]

    @property
    def window_end(self) -> date:
        return self.window_start + timedelta(days=self.days_in_view)

    @property
    def can_zoom_in(self) -> bool:
        return self.zoom_index > 0

    @property
    def can_zoom_out(self) -> bool:
        return self.zoom_index < len(self.zoom_levels) - 1

    def zoom_in(self) -> bool:
        """Show fewer days. Returns False when already at the most detailed level."""
        if not self.can_zoom_in:
            return False
        self.zoom_index -= 1
        return True

    def zoom_out(self) -> bool:
        """Show more days. Returns False when already at the widest level."""
        if not self.can_zoom_out:
            return False
        self.zoom_index += 1
        return True

    def shift(self, days: int) -> None:
        self.window_start = self.window_start + timedelta(days=days)

    def visible_days(self, label_every: int = DEFAULT_LABEL_EVERY) -> list[TimelineDay]:
        """Header columns for every day in view; every label_every-th column carries a label."""

        if label_every <= 0:
            raise ValueError("label_every must be positive")
        days: list[TimelineDay] = []
        for index in range(self.days_in_view):
            day = self.window_start + timedelta(days=index)
            days.append(
                TimelineDay(
                    day=day,
                    index=index,
                    is_weekend=day.weekday() >= 5,
                    show_label=index % label_every == 0,
                )
            )
        return days
