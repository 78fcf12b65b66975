from .stats import (
    activity_heatmap,
    course_analytics,
    format_number,
    heatmap_grid,
    metric_series,
    percent_change,
    user_segments,
)
from .visualizations import (
    figure_to_png,
    plot_activity_heatmap,
    plot_activity_metrics,
    plot_engagement_metrics,
    plot_reaction_breakdown,
    plot_user_growth,
)

__all__ = [
    "course_analytics",
    "user_segments",
    "activity_heatmap",
    "heatmap_grid",
    "metric_series",
    "format_number",
    "percent_change",
    "plot_activity_metrics",
    "plot_user_growth",
    "plot_engagement_metrics",
    "plot_reaction_breakdown",
    "plot_activity_heatmap",
    "figure_to_png",
]
