from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import webbrowser
from pathlib import Path

import yaml

from .commit import CommitDispatcher, CommitGateway, CommitResult, HttpCommitGateway, YamlCommitGateway
from .config import ConfigError, TimelineConfig, load_config
from .drag import DragController, DragError
from .layout import layout_rows
from .navigation import NavigationController, new_viewport
from .parse_items import ItemValidationError, load_items
from .render_timeline import render_timeline
from .timeline_models import DragMode, ScheduledItem
from .viewport import Viewport

logger = logging.getLogger("gantt_timeline")


def _parse_date(value: str):
    import datetime as dt

    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Interactive timeline engine: render a viewport or replay a drag",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", help="Path to timeline config YAML")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_viewport_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("items", help="Path to items YAML")
        p.add_argument("--start", type=_parse_date, help="Window start (YYYY-MM-DD); defaults to today")
        p.add_argument("--zoom-index", type=int, help="Index into the zoom levels; defaults to the config value")

    render = sub.add_parser("render", help="Render the viewport to SVG", formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    add_viewport_args(render)
    render.add_argument("--page", type=int, default=0, help="Windows to page forward (negative pages back)")
    render.add_argument("--out", default="output/timeline.svg", help="Output SVG path")
    render.add_argument("--title", default="", help="Chart title; defaults to the window range")
    render.add_argument(
        "--view",
        dest="view",
        action="store_true",
        default=True,
        help="Best-effort open the output file after rendering",
    )
    render.add_argument(
        "--no-view",
        dest="view",
        action="store_false",
        help="Do not open the output file after rendering",
    )

    drag = sub.add_parser("drag", help="Replay a pointer drag and commit it", formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    add_viewport_args(drag)
    drag.add_argument("--item", required=True, help="Id of the item to drag")
    drag.add_argument("--mode", choices=[mode.value for mode in DragMode], default=DragMode.MOVE.value)
    drag.add_argument("--from-x", type=float, required=True, help="Pointer x at pointer down")
    drag.add_argument("--to-x", type=float, nargs="+", required=True, help="Pointer x for each move, last one is the release")
    drag.add_argument("--track-width", type=float, help="Rendered track width in pixels; defaults to the config value")
    drag.add_argument("--api-url", help="Commit to this REST backend instead of the items file")
    drag.add_argument("--token", help="Bearer token for --api-url")
    return parser


def _build_viewport(args: argparse.Namespace, config: TimelineConfig) -> Viewport:
    zoom_index = config.default_zoom_index if args.zoom_index is None else args.zoom_index
    if args.start is None:
        return new_viewport(zoom_index=zoom_index, zoom_levels=config.zoom_levels)
    return Viewport(window_start=args.start, zoom_index=zoom_index, zoom_levels=config.zoom_levels)


def _run_render(args: argparse.Namespace, config: TimelineConfig, items: list[ScheduledItem]) -> int:
    viewport = _build_viewport(args, config)
    NavigationController(viewport).page(args.page)
    rows = layout_rows(items, viewport)
    hidden = sum(1 for row in rows if not row.bar.visible)
    logger.info("Rendering %d items (%d outside the window) for %s", len(rows), hidden, viewport)

    try:
        render_timeline(rows, viewport, out_path=args.out, title=args.title, label_every=config.label_every)
    except Exception as exc:
        print(f"Unexpected error while rendering: {exc}", file=sys.stderr)
        return 1

    if args.view:
        try:
            webbrowser.open(Path(args.out).resolve().as_uri())
        except Exception:
            pass
    return 0


async def _replay_drag(
    controller: DragController,
    dispatcher: CommitDispatcher,
    item: ScheduledItem,
    args: argparse.Namespace,
    track_width: float,
) -> list[CommitResult]:
    controller.pointer_down(item, args.from_x, args.mode)
    for x in args.to_x:
        controller.pointer_move(x, track_width)
    update = controller.pointer_up()
    if update is None:
        print(f"No date change for {item.id}")
        return []
    return await dispatcher.drain()


def _run_drag(args: argparse.Namespace, config: TimelineConfig, items: list[ScheduledItem]) -> int:
    lookup = {item.id: item for item in items}
    item = lookup.get(args.item)
    if item is None:
        print(f"Error: unknown item '{args.item}'", file=sys.stderr)
        return 2

    gateway: CommitGateway
    if args.api_url:
        gateway = HttpCommitGateway(args.api_url, token=args.token, items=lookup)
    else:
        gateway = YamlCommitGateway(args.items)
    dispatcher = CommitDispatcher(gateway)
    controller = DragController(_build_viewport(args, config), dispatcher=dispatcher)
    track_width = args.track_width or config.track_width_px

    try:
        results = asyncio.run(_replay_drag(controller, dispatcher, item, args, track_width))
    except DragError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    for result in results:
        if not result.success:
            print(f"Error: {result.error}", file=sys.stderr)
            return 1
        print(f"Updated {result.update.item_id}: {result.update.to_payload()}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except (yaml.YAMLError, ConfigError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Error: config file not found: {args.config}", file=sys.stderr)
        return 1

    items_path = Path(args.items)
    try:
        items = load_items(str(items_path))
    except (yaml.YAMLError, ItemValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError:
        print(f"Error: items file not found: {items_path}", file=sys.stderr)
        return 1

    try:
        if args.command == "render":
            return _run_render(args, config, items)
        return _run_drag(args, config, items)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
