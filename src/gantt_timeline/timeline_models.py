from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any


class DragMode(str, Enum):
    """Pointer interaction kinds: grab the bar body, or one of its edges."""

    MOVE = "move"
    RESIZE_START = "resize-start"
    RESIZE_END = "resize-end"


@dataclass
class ScheduledItem:
    """Date-ranged entity (typically a project) shown as one timeline row."""

    id: str
    name: str
    client: str | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    meta: dict[str, Any] | None = None

    @property
    def has_valid_range(self) -> bool:
        """True when both dates are set and the end is not before the start."""
        if self.start_date is None or self.end_date is None:
            return False
        return self.end_date >= self.start_date


@dataclass(frozen=True)
class BarGeometry:
    """
    Horizontal placement of an item's bar inside the viewport track.

    Percentages are relative to the full track width. visible_start and
    visible_end are the item dates after clipping to the window.
    """

    visible: bool
    left_percent: float = 0.0
    width_percent: float = 0.0
    visible_start: date | None = None
    visible_end: date | None = None
    visible_duration_days: int = 0


HIDDEN = BarGeometry(visible=False)
"""Geometry returned for items that do not intersect the window."""


@dataclass(frozen=True)
class TimelineRow:
    """An item paired with its bar geometry, in presentation order."""

    item: ScheduledItem
    bar: BarGeometry


@dataclass(frozen=True)
class TimelineDay:
    """One day column of the timeline header."""

    day: date
    index: int
    is_weekend: bool
    show_label: bool


@dataclass(frozen=True)
class PartialDateUpdate:
    """
    Date patch for one item.

    A None field was not touched by the interaction and must be left as-is by
    whoever persists the update; it does not mean "clear the date".
    """

    item_id: str
    start_date: date | None = None
    end_date: date | None = None

    def to_payload(self) -> dict[str, str]:
        """Present fields only, as ISO calendar dates."""
        payload: dict[str, str] = {}
        if self.start_date is not None:
            payload["startDate"] = self.start_date.isoformat()
        if self.end_date is not None:
            payload["endDate"] = self.end_date.isoformat()
        return payload

    def apply_to(self, item: ScheduledItem) -> None:
        """Write the present fields onto item in place."""
        if self.start_date is not None:
            item.start_date = self.start_date
        if self.end_date is not None:
            item.end_date = self.end_date
