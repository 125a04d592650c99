from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING

from .timeline_models import DragMode, PartialDateUpdate, ScheduledItem
from .viewport import Viewport

if TYPE_CHECKING:
    from .commit import CommitDispatcher

logger = logging.getLogger(__name__)


class DragError(Exception):
    """Raised when a pointer interaction cannot start or be measured."""


def day_width(track_pixel_width: float, days_in_view: int) -> float:
    """Pixels per day column of the rendered track."""
    if track_pixel_width <= 0:
        raise DragError(f"track width must be positive, got {track_pixel_width}")
    if days_in_view <= 0:
        raise DragError(f"days in view must be positive, got {days_in_view}")
    return track_pixel_width / days_in_view


def quantize_delta(pixel_delta: float, pixels_per_day: float) -> int:
    """Whole days covered by a pointer displacement, halves rounded up (-0.5 -> 0, 0.5 -> 1)."""
    return math.floor(pixel_delta / pixels_per_day + 0.5)


def derive_dates(mode: DragMode, original_start: date, original_end: date, day_delta: int) -> tuple[date, date]:
    """
    Tentative (start, end) for a drag of day_delta days.

    - move shifts both dates, so the duration is preserved exactly.
    - resize-start moves the start but never past the original end.
    - resize-end moves the end but never before the original start.
    """

    delta = timedelta(days=day_delta)
    if mode is DragMode.MOVE:
        return original_start + delta, original_end + delta
    if mode is DragMode.RESIZE_START:
        return min(original_start + delta, original_end), original_end
    if mode is DragMode.RESIZE_END:
        return original_start, max(original_end + delta, original_start)
    raise TypeError(f"Unsupported drag mode: {mode!r}")


@dataclass
class DragSession:
    """In-progress pointer interaction with one item; the original dates are a snapshot."""

    item_id: str
    mode: DragMode
    anchor_x: float
    original_start: date
    original_end: date
    new_start: date
    new_end: date

    @property
    def has_change(self) -> bool:
        return self.new_start != self.original_start or self.new_end != self.original_end

    def to_update(self) -> PartialDateUpdate | None:
        """The fields this mode touched, or None when the dates are unchanged."""
        if not self.has_change:
            return None
        if self.mode is DragMode.MOVE:
            return PartialDateUpdate(self.item_id, start_date=self.new_start, end_date=self.new_end)
        if self.mode is DragMode.RESIZE_START:
            return PartialDateUpdate(self.item_id, start_date=self.new_start)
        if self.mode is DragMode.RESIZE_END:
            return PartialDateUpdate(self.item_id, end_date=self.new_end)
        raise TypeError(f"Unsupported drag mode: {self.mode!r}")


class DragController:
    """
    Pointer event handler chain for one viewport.

    Idle until pointer_down opens a session; pointer_move updates the
    session's tentative dates; pointer_up (or pointer_leave) closes it and
    submits the change, if any, to the dispatcher without waiting for it.
    Only one session exists at a time.
    """

    def __init__(self, viewport: Viewport, dispatcher: CommitDispatcher | None = None) -> None:
        self.viewport = viewport
        self.dispatcher = dispatcher
        self._session: DragSession | None = None

    @property
    def session(self) -> DragSession | None:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None

    def pointer_down(self, item: ScheduledItem, x: float, mode: DragMode | str) -> bool:
        """Open a session on item. Returns False when another session is already active."""

        mode = DragMode(mode)
        if self._session is not None:
            logger.debug("Ignoring pointer down on %s: %s is being dragged", item.id, self._session.item_id)
            return False
        start, end = item.start_date, item.end_date
        if start is None or end is None or end < start:
            raise DragError(f"item '{item.id}' has no date range to drag")

        self._session = DragSession(
            item_id=item.id,
            mode=mode,
            anchor_x=x,
            original_start=start,
            original_end=end,
            new_start=start,
            new_end=end,
        )
        logger.debug("Drag %s started on %s at x=%s", mode.value, item.id, x)
        return True

    def pointer_move(self, x: float, track_pixel_width: float) -> bool:
        """Update tentative dates from the pointer position. Returns True when they changed."""

        session = self._session
        if session is None:
            return False

        pixels_per_day = day_width(track_pixel_width, self.viewport.days_in_view)
        day_delta = quantize_delta(x - session.anchor_x, pixels_per_day)
        if day_delta == 0:
            if not session.has_change:
                return False
            # Pointer is back over the anchor day.
            session.new_start, session.new_end = session.original_start, session.original_end
            return True

        new_start, new_end = derive_dates(session.mode, session.original_start, session.original_end, day_delta)
        if (new_start, new_end) == (session.new_start, session.new_end):
            return False
        session.new_start, session.new_end = new_start, new_end
        return True

    def pointer_up(self) -> PartialDateUpdate | None:
        """Close the session. Returns the submitted update, or None when nothing changed."""

        session = self._session
        if session is None:
            return None
        self._session = None

        update = session.to_update()
        if update is None:
            logger.debug("Drag on %s ended without a date change", session.item_id)
            return None

        logger.info("Committing %s for %s: %s", session.mode.value, update.item_id, update.to_payload())
        if self.dispatcher is not None:
            self.dispatcher.submit(update)
        return update

    def pointer_leave(self) -> PartialDateUpdate | None:
        """Leaving the track ends the drag exactly like releasing the pointer."""
        return self.pointer_up()
