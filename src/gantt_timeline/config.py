from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

from .viewport import DEFAULT_LABEL_EVERY, DEFAULT_ZOOM_INDEX, ZOOM_LEVELS, validate_zoom_levels

DEFAULT_TRACK_WIDTH_PX = 1000


class ConfigError(Exception):
    """Raised when a timeline config file has invalid values."""


@dataclass
class TimelineConfig:
    """Display settings shared by the renderer and the drag replay."""

    zoom_levels: tuple[int, ...] = field(default=ZOOM_LEVELS)
    default_zoom_index: int = DEFAULT_ZOOM_INDEX
    track_width_px: float = DEFAULT_TRACK_WIDTH_PX
    label_every: int = DEFAULT_LABEL_EVERY


def load_config(path: str | None) -> TimelineConfig:
    """Read a YAML config; None or an empty file yields the defaults."""

    if path is None:
        return TimelineConfig()
    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    return parse_config(raw)


def parse_config(data: Any) -> TimelineConfig:
    if data is None:
        return TimelineConfig()
    if not isinstance(data, dict):
        raise ConfigError("config: expected mapping at top level")
    extras = sorted(str(key) for key in set(data) - {"zoom_levels", "default_zoom_index", "track_width_px", "label_every"})
    if extras:
        raise ConfigError(f"config: unexpected fields {extras}")

    config = TimelineConfig()
    if "zoom_levels" in data:
        levels = data["zoom_levels"]
        if not isinstance(levels, list):
            raise ConfigError("config.zoom_levels: expected list of integers")
        try:
            config.zoom_levels = validate_zoom_levels(levels)
        except ValueError as exc:
            raise ConfigError(f"config.zoom_levels: {exc}") from exc

    if "default_zoom_index" in data:
        config.default_zoom_index = _require_int(data["default_zoom_index"], "default_zoom_index")
    if not 0 <= config.default_zoom_index < len(config.zoom_levels):
        raise ConfigError(
            f"config.default_zoom_index: {config.default_zoom_index} outside 0..{len(config.zoom_levels) - 1}"
        )

    if "track_width_px" in data:
        width = data["track_width_px"]
        if isinstance(width, bool) or not isinstance(width, (int, float)) or width <= 0:
            raise ConfigError("config.track_width_px: expected positive number")
        config.track_width_px = float(width)

    if "label_every" in data:
        config.label_every = _require_int(data["label_every"], "label_every")
        if config.label_every <= 0:
            raise ConfigError("config.label_every: expected positive integer")

    return config


def _require_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"config.{key}: expected integer")
    return value
