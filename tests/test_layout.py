import datetime as dt

import pytest

from gantt_timeline.layout import layout, layout_rows, sort_by_end_date, whole_days_between
from gantt_timeline.timeline_models import ScheduledItem
from gantt_timeline.viewport import Viewport


def _viewport(start=dt.date(2025, 4, 1), zoom_index=2):
    return Viewport(window_start=start, zoom_index=zoom_index)


def _item(item_id="A", start=None, end=None, **kwargs):
    return ScheduledItem(id=item_id, name=f"Project {item_id}", start_date=start, end_date=end, **kwargs)


def test_item_starting_before_window_is_clipped_to_window_start():
    bar = layout(_item(start=dt.date(2025, 3, 25), end=dt.date(2025, 4, 10)), _viewport())

    assert bar.visible
    assert bar.visible_start == dt.date(2025, 4, 1)
    assert bar.visible_duration_days == 10
    assert bar.left_percent == 0
    assert bar.width_percent == pytest.approx(33.33, abs=0.01)


def test_single_day_item_has_one_column_width():
    bar = layout(_item(start=dt.date(2025, 4, 5), end=dt.date(2025, 4, 5)), _viewport())

    assert bar.visible_duration_days == 1
    assert bar.left_percent == pytest.approx(4 / 30 * 100)
    assert bar.width_percent == pytest.approx(3.33, abs=0.01)


@pytest.mark.parametrize(
    "start, end",
    [
        (dt.date(2025, 3, 1), dt.date(2025, 3, 31)),  # ends the day before the window
        (dt.date(2025, 5, 2), dt.date(2025, 5, 20)),  # starts after window_end
    ],
)
def test_items_outside_window_are_hidden(start, end):
    assert layout(_item(start=start, end=end), _viewport()).visible is False


def test_items_without_valid_range_are_hidden():
    viewport = _viewport()

    assert not layout(_item(start=dt.date(2025, 4, 5)), viewport).visible
    assert not layout(_item(end=dt.date(2025, 4, 5)), viewport).visible
    assert not layout(_item(), viewport).visible
    assert not layout(_item(start=dt.date(2025, 4, 10), end=dt.date(2025, 4, 5)), viewport).visible


def test_item_covering_window_is_clipped_on_both_sides():
    bar = layout(_item(start=dt.date(2025, 1, 1), end=dt.date(2025, 12, 31)), _viewport())

    assert bar.visible_start == dt.date(2025, 4, 1)
    assert bar.visible_end == dt.date(2025, 5, 1)
    assert bar.left_percent == 0
    assert bar.visible_duration_days == 31


def test_layout_is_pure_and_order_independent():
    viewport = _viewport()
    items = [
        _item("A", dt.date(2025, 4, 3), dt.date(2025, 4, 8)),
        _item("B", dt.date(2025, 3, 20), dt.date(2025, 4, 2)),
    ]

    forward = [layout(item, viewport) for item in items]
    backward = [layout(item, viewport) for item in reversed(items)]

    assert forward == list(reversed(backward))
    assert layout(items[0], viewport) == forward[0]
    assert viewport.window_start == dt.date(2025, 4, 1)


def test_sort_by_end_date_puts_undated_last_and_keeps_ties_stable():
    a = _item("A", end=dt.date(2025, 5, 1))
    b = _item("B")
    c = _item("C", end=dt.date(2025, 4, 1))
    d = _item("D", end=dt.date(2025, 5, 1))

    assert [item.id for item in sort_by_end_date([a, b, c, d])] == ["C", "A", "D", "B"]


def test_layout_rows_keeps_hidden_items():
    rows = layout_rows(
        [_item("A", dt.date(2025, 4, 3), dt.date(2025, 4, 8)), _item("B")],
        _viewport(),
    )

    assert [row.item.id for row in rows] == ["A", "B"]
    assert rows[0].bar.visible
    assert not rows[1].bar.visible


def test_whole_days_between_is_signed():
    assert whole_days_between(dt.date(2025, 4, 1), dt.date(2025, 4, 15)) == 14
    assert whole_days_between(dt.date(2025, 4, 15), dt.date(2025, 4, 1)) == -14
