from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

UNKNOWN_SEGMENT = "unknown"

Number = Union[int, float]


def _value(row: Any, key: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def course_analytics(rows: Iterable[Any], limit: int = 20) -> List[Dict[str, Any]]:
    """
    Aggregate round scores by course.

    Output rows (most played first, at most `limit`):
    - course_id, course_name, club_name: from the first round seen
    - rounds_played: number of rounds
    - avg_score, min_score, max_score: over rounds with a total
    """
    courses: Dict[Any, Dict[str, Any]] = {}
    for row in rows:
        key = _value(row, "course_id")
        course = courses.get(key)
        if course is None:
            course = courses[key] = {
                "course_id": key,
                "course_name": _value(row, "course_name"),
                "club_name": _value(row, "club_name"),
                "rounds_played": 0,
                "scores": [],
            }
        course["rounds_played"] += 1
        score = _value(row, "total_score")
        if score is not None:
            course["scores"].append(score)

    results: List[Dict[str, Any]] = []
    for course in courses.values():
        scores = course.pop("scores")
        course["total_score"] = sum(scores)
        course["avg_score"] = sum(scores) / len(scores) if scores else None
        course["min_score"] = min(scores) if scores else None
        course["max_score"] = max(scores) if scores else None
        results.append(course)

    # sorted() is stable, so ties keep first-seen order
    results = sorted(results, key=lambda course: course["rounds_played"], reverse=True)
    return results[:limit]


def user_segments(rows: Iterable[Any]) -> List[Dict[str, Any]]:
    """Count users per engagement segment; a missing segment counts as 'unknown'."""
    counts: Dict[str, int] = {}
    for row in rows:
        segment = _value(row, "user_segment") or UNKNOWN_SEGMENT
        counts[segment] = counts.get(segment, 0) + 1
    return [{"segment": name, "count": count} for name, count in counts.items()]


def heatmap_key(moment: datetime) -> str:
    """`"{day}-{hour}"` with Sunday as day 0."""
    return f"{moment.isoweekday() % 7}-{moment.hour}"


def activity_heatmap(events: Iterable[Any]) -> Dict[str, int]:
    """Bucket events by weekday and hour of their `created_at`."""
    heatmap: Dict[str, int] = {}
    for event in events:
        created_at = _value(event, "created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        if not isinstance(created_at, datetime):
            continue
        key = heatmap_key(created_at)
        heatmap[key] = heatmap.get(key, 0) + 1
    return heatmap


def heatmap_grid(heatmap: Mapping[str, int]) -> List[List[int]]:
    """7x24 matrix (day rows, hour columns) from `activity_heatmap` output."""
    grid = [[0] * 24 for _ in range(7)]
    for key, count in heatmap.items():
        day, hour = (int(part) for part in key.split("-"))
        grid[day][hour] = count
    return grid


def format_number(value: Optional[Number]) -> str:
    """Compact count for KPI cards: 999, 1.2K, 3.4M."""
    if value is None:
        return "0"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def percent_change(current: Number, previous: Optional[Number]) -> float:
    """Change from `previous` to `current` in percent, one decimal; 0 without a baseline."""
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 1)


def metric_series(rows: Iterable[Any], field: str) -> List[Number]:
    """One metric column out of a day-by-day series, missing values as 0."""
    series: List[Number] = []
    for row in rows:
        if hasattr(row, "metrics"):
            value = row.metrics().get(field)
        else:
            value = _value(row, field)
        series.append(value or 0)
    return series
