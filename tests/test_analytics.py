from datetime import date, datetime

import pytest

from analytics.stats import (
    activity_heatmap,
    course_analytics,
    format_number,
    heatmap_grid,
    heatmap_key,
    metric_series,
    percent_change,
    user_segments,
)
from analytics.visualizations import (
    figure_to_png,
    plot_activity_heatmap,
    plot_activity_metrics,
    plot_reaction_breakdown,
)
from models import MetricRow


def _course_rows():
    return [
        {"course_id": "c1", "course_name": "South", "club_name": "Torrey Pines", "total_score": 80},
        {"course_id": "c2", "course_name": "Black", "club_name": "Bethpage", "total_score": 90},
        {"course_id": "c1", "course_name": "South", "club_name": "Torrey Pines", "total_score": 84},
        {"course_id": "c1", "course_name": "South", "club_name": "Torrey Pines", "total_score": None},
        {"course_id": "c3", "course_name": "Ocean", "club_name": "Kiawah", "total_score": 95},
    ]


def test_course_analytics():
    results = course_analytics(_course_rows())

    top = results[0]
    assert top["course_id"] == "c1"
    assert top["rounds_played"] == 3
    assert top["avg_score"] == 82
    assert top["min_score"] == 80
    assert top["max_score"] == 84
    # ties keep first-seen order
    assert [r["course_id"] for r in results] == ["c1", "c2", "c3"]


def test_course_analytics_limit_and_no_scores():
    rows = [{"course_id": "c9", "course_name": "X", "club_name": "Y", "total_score": None}]
    result = course_analytics(rows)[0]
    assert result["avg_score"] is None
    assert result["min_score"] is None
    assert len(course_analytics(_course_rows(), limit=1)) == 1


def test_user_segments():
    rows = [{"user_segment": "power"}, {"user_segment": "casual"}, {"user_segment": "power"}, {}]
    assert user_segments(rows) == [
        {"segment": "power", "count": 2},
        {"segment": "casual", "count": 1},
        {"segment": "unknown", "count": 1},
    ]


def test_heatmap_uses_sunday_as_day_zero():
    assert heatmap_key(datetime(2024, 5, 5, 9)) == "0-9"
    assert heatmap_key(datetime(2024, 5, 6, 23)) == "1-23"


def test_activity_heatmap_and_grid():
    events = [
        {"created_at": datetime(2024, 5, 5, 9, 15)},
        {"created_at": "2024-05-05T09:45:00Z"},
        {"created_at": datetime(2024, 5, 11, 18)},
        {"created_at": None},
    ]

    heatmap = activity_heatmap(events)

    assert heatmap == {"0-9": 2, "6-18": 1}
    grid = heatmap_grid(heatmap)
    assert len(grid) == 7 and all(len(row) == 24 for row in grid)
    assert grid[0][9] == 2
    assert grid[6][18] == 1
    assert sum(map(sum, grid)) == 3


@pytest.mark.parametrize("value, expected", [
    (None, "0"),
    (999, "999"),
    (1500, "1.5K"),
    (2_340_000, "2.3M"),
])
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_percent_change():
    assert percent_change(150, 100) == 50.0
    assert percent_change(2, 3) == -33.3
    assert percent_change(10, 0) == 0.0
    assert percent_change(10, None) == 0.0


def test_metric_series_reads_extra_columns():
    rows = [
        MetricRow(date=date(2024, 5, 1), active_users=4),
        MetricRow(date=date(2024, 5, 2)),
        {"date": date(2024, 5, 3), "active_users": 7},
    ]
    assert metric_series(rows, "active_users") == [4, 0, 7]


def test_activity_chart_renders_png():
    rows = [
        MetricRow(date=date(2024, 5, day), active_users=day, rounds_posted=1, reactions_given=2, comments_made=0)
        for day in range(1, 31)
    ]
    fig, ax = plot_activity_metrics(rows)
    assert ax.get_title() == "Daily Activity"
    ticks = list(ax.get_xticks())
    assert len(ticks) < len(rows)
    assert ticks[-1] == len(rows) - 1

    png = figure_to_png(fig)
    assert png.startswith(b"\x89PNG")


def test_reaction_breakdown_labels_and_empty_state():
    fig, ax = plot_reaction_breakdown([
        {"emoji_type": "fire", "usage_count": 1200},
        {"emoji_type": "mystery", "usage_count": 3},
        {"emoji_type": "goat", "usage_count": 0},
    ])
    assert ax.get_title() == "Reactions (1.2K)"
    figure_to_png(fig)

    fig, ax = plot_reaction_breakdown([])
    assert [t.get_text() for t in ax.texts] == ["No reactions"]
    figure_to_png(fig)


def test_heatmap_chart_renders_png():
    fig, ax = plot_activity_heatmap({"0-9": 2})
    assert [label.get_text() for label in ax.get_yticklabels()][0] == "Sun"
    assert figure_to_png(fig, dpi=50).startswith(b"\x89PNG")
