from __future__ import annotations

from pathlib import Path
from typing import Iterable

import matplotlib

matplotlib.use("Agg")  # ensure headless, deterministic output
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from .timeline_models import TimelineRow
from .viewport import DEFAULT_LABEL_EVERY, Viewport

FONT_SCALE = 1.0
TITLE_FONT = 14 * FONT_SCALE
LABEL_FONT = 10 * FONT_SCALE
CAPTION_FONT = 8 * FONT_SCALE
TICK_FONT = 8 * FONT_SCALE
TOP_MARGIN_FRAC = 0.85
TITLE_Y = 0.985
ROW_HEIGHT = 0.6
WEEKEND_SHADE = "#f3f4f6"
DEFAULT_BAR_COLOR = "#3b82f6"
NO_CLIENT_CAPTION = "No client"


def render_timeline(
    rows: list[TimelineRow],
    viewport: Viewport,
    out_path: str,
    title: str = "",
    label_every: int = DEFAULT_LABEL_EVERY,
) -> None:
    """
    Render the current viewport as a static SVG to `out_path`.

    - Expects rows from layout_rows (sorted, geometry computed).
    - The track spans 0..100 on x so bar percentages plot directly.
    - Hidden rows keep their label and get no bar.
    - Bar colour follows the item status; statuses are coloured deterministically.
    """

    days = viewport.visible_days(label_every=label_every)
    column_width = 100.0 / viewport.days_in_view
    status_colors = _status_colors(rows)

    fig_height = max(3.0, ROW_HEIGHT * max(len(rows), 1) + 2.0)
    fig = plt.figure(figsize=(16.0, fig_height))
    gs = fig.add_gridspec(1, 2, width_ratios=[1.0, 5.0], wspace=0.02, left=0.02, right=0.98, top=TOP_MARGIN_FRAC, bottom=0.05)
    label_ax = fig.add_subplot(gs[0, 0])
    ax = fig.add_subplot(gs[0, 1], sharey=label_ax)

    ax.set_ylim(-0.5, max(len(rows), 1) - 0.5)
    ax.invert_yaxis()
    ax.set_xlim(0, 100)
    ax.set_yticks([])

    # Day grid with weekend shading; header labels on every label_every-th day.
    tick_positions: list[float] = []
    tick_labels: list[str] = []
    for day in days:
        x0 = day.index * column_width
        if day.is_weekend:
            ax.axvspan(x0, x0 + column_width, color=WEEKEND_SHADE, zorder=0)
        ax.axvline(x0, color="#e5e7eb", linewidth=0.5, zorder=1)
        if day.show_label:
            tick_positions.append(x0 + column_width / 2)
            tick_labels.append(day.day.strftime("%d %b"))
    ax.xaxis.tick_top()
    ax.set_xticks(tick_positions)
    ax.set_xticklabels(tick_labels)
    ax.tick_params(axis="x", labelsize=TICK_FONT, length=0, pad=4)

    label_ax.set_xlim(0, 1)
    label_ax.axis("off")

    fig.suptitle(title or _default_title(viewport), x=0.5, fontsize=TITLE_FONT, y=TITLE_Y)

    for y, row in enumerate(rows):
        item = row.item
        label_ax.text(0.02, y - 0.12, item.name, ha="left", va="center", fontsize=LABEL_FONT, fontweight="bold")
        caption = item.client or NO_CLIENT_CAPTION
        if item.status:
            caption = f"{caption} · {item.status}"
        label_ax.text(0.02, y + 0.22, caption, ha="left", va="center", fontsize=CAPTION_FONT, color="#6b7280")

        if not row.bar.visible:
            continue
        # A bar clipped at window_end can reach one column past the track edge.
        left = row.bar.left_percent
        width = min(row.bar.width_percent, 100.0 - left)
        color = status_colors.get(item.status or "", DEFAULT_BAR_COLOR)
        ax.add_patch(
            Rectangle(
                (left, y - ROW_HEIGHT / 2),
                width,
                ROW_HEIGHT,
                facecolor=color,
                edgecolor="black",
                linewidth=0.5,
                alpha=0.85,
                zorder=2,
            )
        )
        if width > 0:
            ax.text(
                left + width / 2,
                y,
                item.name,
                ha="center",
                va="center",
                fontsize=CAPTION_FONT,
                color="white",
                clip_on=True,
                zorder=3,
            )

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, format="svg", bbox_inches="tight")
    plt.close(fig)


def _status_colors(rows: Iterable[TimelineRow]) -> dict[str, str]:
    statuses = sorted({row.item.status for row in rows if row.item.status})
    palette = plt.get_cmap("tab10")
    return {status: matplotlib.colors.to_hex(palette(i % palette.N)) for i, status in enumerate(statuses)}


def _default_title(viewport: Viewport) -> str:
    last_day = viewport.visible_days()[-1].day
    return f"{viewport.window_start:%d %b %Y} – {last_day:%d %b %Y} ({viewport.days_in_view} days)"
