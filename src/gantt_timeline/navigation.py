from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Sequence

from .viewport import DEFAULT_ZOOM_INDEX, ZOOM_LEVELS, Viewport

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


def new_viewport(
    today: Clock = date.today,
    zoom_index: int = DEFAULT_ZOOM_INDEX,
    zoom_levels: Sequence[int] = ZOOM_LEVELS,
) -> Viewport:
    """Fresh per-session viewport starting today."""
    return Viewport(window_start=today(), zoom_index=zoom_index, zoom_levels=zoom_levels)


class NavigationController:
    """Toolbar actions: page back/forward by one full window, jump to today, zoom."""

    def __init__(self, viewport: Viewport, today: Clock = date.today) -> None:
        self.viewport = viewport
        self._today = today

    def previous(self) -> None:
        self.viewport.shift(-self.viewport.days_in_view)
        logger.debug("Paged back to %s", self.viewport.window_start)

    def next(self) -> None:
        self.viewport.shift(self.viewport.days_in_view)
        logger.debug("Paged forward to %s", self.viewport.window_start)

    def today(self) -> None:
        self.viewport.window_start = self._today()

    def zoom_in(self) -> bool:
        return self.viewport.zoom_in()

    def zoom_out(self) -> bool:
        return self.viewport.zoom_out()

    def page(self, count: int) -> None:
        """Page count windows forward (negative pages back)."""
        step = self.next if count > 0 else self.previous
        for _ in range(abs(count)):
            step()

    def period_label(self) -> str:
        return self.viewport.window_start.strftime("%b %Y")

    def zoom_label(self) -> str:
        return f"{self.viewport.days_in_view} days"
