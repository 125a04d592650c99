from __future__ import annotations

from datetime import date
from typing import Iterable

from .timeline_models import HIDDEN, BarGeometry, ScheduledItem, TimelineRow
from .viewport import Viewport


def whole_days_between(start: date, end: date) -> int:
    """Signed number of calendar days from start to end."""
    return (end - start).days


def layout(item: ScheduledItem, viewport: Viewport) -> BarGeometry:
    """
    Place an item's bar inside the viewport.

    - Items without a valid date range, or entirely outside the window, are hidden.
    - The bar is clipped to the window on both sides.
    - Day counts are inclusive: a single-day item is one day column wide.

    Pure: depends only on the item dates and the viewport.
    """

    start, end = item.start_date, item.end_date
    if start is None or end is None or end < start:
        return HIDDEN

    window_start = viewport.window_start
    window_end = viewport.window_end
    if end < window_start or start > window_end:
        return HIDDEN

    visible_start = max(start, window_start)
    visible_end = min(end, window_end)
    days_in_view = viewport.days_in_view

    days_from_start = max(0, whole_days_between(window_start, visible_start))
    visible_duration_days = whole_days_between(visible_start, visible_end) + 1

    return BarGeometry(
        visible=True,
        left_percent=days_from_start / days_in_view * 100,
        width_percent=visible_duration_days / days_in_view * 100,
        visible_start=visible_start,
        visible_end=visible_end,
        visible_duration_days=visible_duration_days,
    )


def sort_by_end_date(items: Iterable[ScheduledItem]) -> list[ScheduledItem]:
    """Nearest end date first; items without an end date go last. Ties keep input order."""

    item_list = list(items)
    dated = [item for item in item_list if item.end_date is not None]
    undated = [item for item in item_list if item.end_date is None]
    return sorted(dated, key=lambda item: item.end_date) + undated


def layout_rows(items: Iterable[ScheduledItem], viewport: Viewport) -> list[TimelineRow]:
    """Sorted rows with geometry; hidden items stay in the list so their labels still render."""

    return [TimelineRow(item=item, bar=layout(item, viewport)) for item in sort_by_end_date(items)]
