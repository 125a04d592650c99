from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Any, Iterable

import yaml

from .timeline_models import ScheduledItem

ITEM_KEYS = {"id", "name", "client", "status", "start_date", "end_date", "meta"}


class ItemValidationError(Exception):
    """Raised when an items document is malformed (bad types, duplicate ids, unknown keys)."""


@dataclass(frozen=True)
class _Path:
    """Helper to produce readable YAML path strings like items[0].start_date."""

    parts: tuple[str, ...] = ()

    def child(self, segment: str) -> "_Path":
        return _Path(self.parts + (segment,))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return ".".join(self.parts) if self.parts else "root"


def load_items(path: str) -> list[ScheduledItem]:
    """Load scheduled items from a YAML file at the given path."""

    with open(path, "r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    return parse_items(raw)


def parse_items(data: Any) -> list[ScheduledItem]:
    """
    Build items from an already-decoded document of the form {items: [...]}.

    Missing or inverted date ranges are accepted here; the layout engine
    hides such items rather than treating them as errors.
    """

    path = _Path()
    if not isinstance(data, dict):
        raise ItemValidationError(f"{path}: expected mapping at top level")
    _assert_allowed_keys(data, {"items"}, path)

    items_raw = data.get("items")
    if items_raw is None:
        raise ItemValidationError(f"{path}: missing required field 'items'")
    if not isinstance(items_raw, list):
        raise ItemValidationError(f"{path}.items: expected list")

    ids: set[str] = set()
    return [_parse_item(item_raw, path.child(f"items[{idx}]"), ids) for idx, item_raw in enumerate(items_raw)]


def dump_items(items: Iterable[ScheduledItem], path: str) -> None:
    """Write items back in the format load_items reads."""

    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump({"items": [_item_to_dict(item) for item in items]}, fh, sort_keys=False, allow_unicode=True)


def _item_to_dict(item: ScheduledItem) -> dict[str, Any]:
    data: dict[str, Any] = {"id": item.id, "name": item.name}
    if item.client is not None:
        data["client"] = item.client
    if item.status is not None:
        data["status"] = item.status
    if item.start_date is not None:
        data["start_date"] = item.start_date.isoformat()
    if item.end_date is not None:
        data["end_date"] = item.end_date.isoformat()
    if item.meta is not None:
        data["meta"] = item.meta
    return data


def _parse_item(data: Any, path: _Path, ids: set[str]) -> ScheduledItem:
    if not isinstance(data, dict):
        raise ItemValidationError(f"{path}: expected mapping for item")

    _assert_allowed_keys(data, ITEM_KEYS, path)
    item_id = _require_id(data, path, ids)
    name = _require_str(data, "name", path)

    return ScheduledItem(
        id=item_id,
        name=name,
        client=_optional_str(data, "client", path),
        status=_optional_str(data, "status", path),
        start_date=_optional_date(data, "start_date", path),
        end_date=_optional_date(data, "end_date", path),
        meta=_parse_meta(data.get("meta"), path.child("meta")),
    )


def _assert_allowed_keys(data: dict[str, Any], allowed: set[str], path: _Path) -> None:
    extras = sorted(str(key) for key in set(data.keys()) - allowed)
    if extras:
        raise ItemValidationError(f"{path}: unexpected fields {extras}")


def _require_id(data: dict[str, Any], path: _Path, ids: set[str]) -> str:
    if "id" not in data:
        raise ItemValidationError(f"{path}: missing required field 'id'")
    value = data["id"]
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ItemValidationError(f"{path.child('id')}: expected string or integer")
    item_id = str(value).strip()
    if not item_id:
        raise ItemValidationError(f"{path.child('id')}: expected non-empty id")
    if item_id in ids:
        raise ItemValidationError(f"{path.child('id')}: duplicate id '{item_id}'")
    ids.add(item_id)
    return item_id


def _require_str(data: dict[str, Any], key: str, path: _Path) -> str:
    if key not in data:
        raise ItemValidationError(f"{path}: missing required field '{key}'")
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise ItemValidationError(f"{path.child(key)}: expected non-empty string")
    return value


def _optional_str(data: dict[str, Any], key: str, path: _Path) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ItemValidationError(f"{path.child(key)}: expected string")
    return value


def _optional_date(data: dict[str, Any], key: str, path: _Path) -> _dt.date | None:
    value = data.get(key)
    if value is None:
        return None
    # PyYAML already decodes unquoted ISO dates.
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if not isinstance(value, str):
        raise ItemValidationError(f"{path.child(key)}: expected YYYY-MM-DD string")
    try:
        return _dt.date.fromisoformat(value)
    except ValueError as exc:
        raise ItemValidationError(f"{path.child(key)}: expected YYYY-MM-DD string") from exc


def _parse_meta(value: Any, path: _Path) -> dict[str, Any] | None:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ItemValidationError(f"{path}: expected mapping for meta")
    return value
