from __future__ import annotations

import io
from typing import Any, Iterable, Mapping, Optional, Sequence

from models.social import REACTION_EMOJI, ReactionType

from .stats import format_number, heatmap_grid, metric_series

DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def _load_plt():
    try:
        import matplotlib  # type: ignore

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError as exc:
        raise RuntimeError(
            "matplotlib is required for visualizations. Install it with: pip install matplotlib"
        ) from exc
    return plt


def _date_labels(rows: Sequence[Any]) -> list[str]:
    labels: list[str] = []
    for index, row in enumerate(rows, start=1):
        value = row.get("date") if isinstance(row, Mapping) else getattr(row, "date", None)
        labels.append(value.strftime("%m/%d") if hasattr(value, "strftime") else str(value or f"D{index}"))
    return labels


def _apply_sparse_xticks(ax, labels: Sequence[str], max_labels: int = 12) -> None:
    """
    Keep x-axis readable for long date ranges.

    Shows at most `max_labels` ticks while preserving order.
    """
    count = len(labels)
    if count <= max_labels:
        ax.set_xticks(range(count))
        ax.set_xticklabels(labels, rotation=45, ha="right")
        return

    step = max(1, count // max_labels)
    tick_positions = list(range(0, count, step))
    if tick_positions[-1] != count - 1:
        tick_positions.append(count - 1)

    ax.set_xticks(tick_positions)
    ax.set_xticklabels([labels[i] for i in tick_positions], rotation=45, ha="right")


def _plot_lines(rows: Sequence[Any], series: Mapping[str, str], title: str, ylabel: str):
    plt = _load_plt()
    labels = _date_labels(rows)
    x = list(range(len(labels)))

    fig, ax = plt.subplots(figsize=(11, 5))
    for field, name in series.items():
        ax.plot(x, metric_series(rows, field), marker="o", linewidth=1.5, label=name)
    ax.set_title(title)
    ax.set_xlabel("Date")
    ax.set_ylabel(ylabel)
    _apply_sparse_xticks(ax, labels)
    ax.grid(axis="y", alpha=0.2)
    if series:
        ax.legend(loc="upper left")
    fig.tight_layout()
    return fig, ax


def plot_activity_metrics(rows: Sequence[Any]):
    """Daily active users, rounds, reactions and comments."""
    return _plot_lines(
        rows,
        {
            "active_users": "Active Users",
            "rounds_posted": "Rounds",
            "reactions_given": "Reactions",
            "comments_made": "Comments",
        },
        title="Daily Activity",
        ylabel="Count",
    )


def plot_user_growth(rows: Sequence[Any]):
    """New users plus daily/weekly/monthly actives."""
    return _plot_lines(
        rows,
        {"new_users": "New Users", "dau": "DAU", "wau": "WAU", "mau": "MAU"},
        title="User Growth",
        ylabel="Users",
    )


def plot_engagement_metrics(rows: Sequence[Any]):
    return _plot_lines(
        rows,
        {
            "avg_reactions_per_round": "Avg Reactions/Round",
            "avg_comments_per_round": "Avg Comments/Round",
            "engagement_rate": "Engagement Rate",
        },
        title="Engagement",
        ylabel="Per Round",
    )


def plot_reaction_breakdown(rows: Iterable[Mapping[str, Any]]):
    """
    Pie chart of reaction usage.

    Rows carry `emoji_type` and `usage_count` as returned by get_emoji_breakdown.
    Unknown types are labelled with their raw name.
    """
    plt = _load_plt()
    rows = [row for row in rows if row.get("usage_count")]
    labels = []
    for row in rows:
        name = row.get("emoji_type")
        try:
            labels.append(f"{REACTION_EMOJI[ReactionType(name)]} {name}")
        except ValueError:
            labels.append(str(name))
    counts = [row["usage_count"] for row in rows]

    fig, ax = plt.subplots(figsize=(6, 6))
    if counts:
        ax.pie(counts, labels=labels, autopct="%1.0f%%", startangle=90, counterclock=False)
    else:
        ax.text(0.5, 0.5, "No reactions", ha="center", va="center")
    ax.set_title(f"Reactions ({format_number(sum(counts))})")
    ax.axis("equal")
    fig.tight_layout()
    return fig, ax


def plot_activity_heatmap(heatmap: Mapping[str, int]):
    """Weekday by hour grid from `activity_heatmap`."""
    plt = _load_plt()
    grid = heatmap_grid(heatmap)

    fig, ax = plt.subplots(figsize=(12, 4))
    image = ax.imshow(grid, aspect="auto", cmap="Greens")
    ax.set_yticks(range(7))
    ax.set_yticklabels(DAY_LABELS)
    ax.set_xticks(range(0, 24, 2))
    ax.set_xlabel("Hour")
    ax.set_title("Activity by Hour")
    fig.colorbar(image, ax=ax, label="Events")
    fig.tight_layout()
    return fig, ax


def figure_to_png(fig, dpi: Optional[int] = 100) -> bytes:
    """Render a figure to PNG bytes and release it."""
    plt = _load_plt()
    buffer = io.BytesIO()
    try:
        fig.savefig(buffer, format="png", dpi=dpi)
    finally:
        plt.close(fig)
    return buffer.getvalue()
