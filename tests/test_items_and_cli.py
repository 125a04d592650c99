import datetime as dt

import pytest
import yaml

from gantt_timeline.__main__ import main
from gantt_timeline.config import ConfigError, TimelineConfig, load_config, parse_config
from gantt_timeline.layout import layout_rows
from gantt_timeline.parse_items import ItemValidationError, load_items, parse_items
from gantt_timeline.render_timeline import render_timeline
from gantt_timeline.viewport import Viewport

ITEMS_DOC = {
    "items": [
        {
            "id": 1,
            "name": "Brand refresh",
            "client": "Acme",
            "status": "in_progress",
            "start_date": "2025-04-05",
            "end_date": "2025-04-10",
        },
        {"id": "2", "name": "Pitch deck", "status": "draft"},
        {"id": "3", "name": "Annual report", "start_date": dt.date(2025, 3, 20), "end_date": dt.date(2025, 6, 30)},
    ]
}


def _write_items(tmp_path, doc=ITEMS_DOC):
    path = tmp_path / "items.yaml"
    path.write_text(yaml.safe_dump(doc), encoding="utf-8")
    return path


def test_parse_items_coerces_ids_and_accepts_missing_dates():
    items = parse_items(ITEMS_DOC)

    assert [item.id for item in items] == ["1", "2", "3"]
    assert items[0].start_date == dt.date(2025, 4, 5)
    assert items[1].start_date is None and items[1].end_date is None
    assert items[2].end_date == dt.date(2025, 6, 30)


@pytest.mark.parametrize(
    "doc, message",
    [
        ([], "expected mapping"),
        ({"items": [{"id": "1", "name": "A"}, {"id": 1, "name": "B"}]}, "duplicate id"),
        ({"items": [{"id": "1", "name": "A", "owner": "x"}]}, "unexpected fields"),
        ({"items": [{"id": "1", "name": "A", "start_date": "05/04/2025"}]}, r"items\[0\]\.start_date"),
        ({"items": [{"id": "1", "name": ""}]}, "non-empty"),
    ],
)
def test_parse_items_rejects_malformed_documents(doc, message):
    with pytest.raises(ItemValidationError, match=message):
        parse_items(doc)


def test_config_defaults_and_overrides(tmp_path):
    assert load_config(None) == TimelineConfig()

    path = tmp_path / "timeline.yaml"
    path.write_text("zoom_levels: [7, 28]\ndefault_zoom_index: 1\ntrack_width_px: 840\n", encoding="utf-8")
    config = load_config(str(path))

    assert config.zoom_levels == (7, 28)
    assert config.default_zoom_index == 1
    assert config.track_width_px == 840.0
    assert config.label_every == 3


@pytest.mark.parametrize(
    "data",
    [
        {"zoom_levels": [30, 7]},
        {"default_zoom_index": 9},
        {"track_width_px": 0},
        {"label_every": "3"},
        {"colour": "blue"},
    ],
)
def test_invalid_config_raises(data):
    with pytest.raises(ConfigError):
        parse_config(data)


def test_renderer_produces_svg(tmp_path):
    viewport = Viewport(window_start=dt.date(2025, 4, 1), zoom_index=2)
    rows = layout_rows(parse_items(ITEMS_DOC), viewport)

    out_file = tmp_path / "timeline.svg"
    render_timeline(rows, viewport, out_path=str(out_file), title="Projects")

    assert out_file.exists()
    assert out_file.stat().st_size > 0


def test_cli_render(tmp_path):
    items_path = _write_items(tmp_path)
    out_file = tmp_path / "out" / "timeline.svg"

    code = main(["render", str(items_path), "--start", "2025-04-01", "--page", "1", "--out", str(out_file), "--no-view"])

    assert code == 0
    assert out_file.exists()


def test_cli_drag_commits_to_items_file(tmp_path, capsys):
    items_path = _write_items(tmp_path)

    code = main(
        [
            "drag",
            str(items_path),
            "--start",
            "2025-04-01",
            "--item",
            "1",
            "--mode",
            "move",
            "--from-x",
            "100",
            "--to-x",
            "120",
            "135",
            "--track-width",
            "600",
        ]
    )

    assert code == 0
    assert "Updated 1" in capsys.readouterr().out
    moved = load_items(str(items_path))[0]
    assert (moved.start_date, moved.end_date) == (dt.date(2025, 4, 7), dt.date(2025, 4, 12))


def test_cli_drag_without_change_leaves_file_alone(tmp_path, capsys):
    items_path = _write_items(tmp_path)
    before = items_path.read_text(encoding="utf-8")

    code = main(["drag", str(items_path), "--item", "1", "--from-x", "100", "--to-x", "105", "--track-width", "600"])

    assert code == 0
    assert "No date change" in capsys.readouterr().out
    assert items_path.read_text(encoding="utf-8") == before


def test_cli_reports_validation_errors(tmp_path, capsys):
    items_path = _write_items(tmp_path, {"items": [{"id": "1"}]})

    assert main(["render", str(items_path), "--no-view"]) == 2
    assert "missing required field 'name'" in capsys.readouterr().err


def test_cli_rejects_dragging_undated_item(tmp_path):
    items_path = _write_items(tmp_path)

    assert main(["drag", str(items_path), "--item", "2", "--from-x", "0", "--to-x", "50"]) == 2
