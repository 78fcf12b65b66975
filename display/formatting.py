from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Union

DateLike = Union[date, datetime, None]

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _as_date(value: DateLike) -> Optional[date]:
    if value is None:
        return None
    return value.date() if isinstance(value, datetime) else value


def format_relative_date(value: DateLike, today: Optional[date] = None) -> str:
    """'Today', 'Yesterday', or a short 'Mon D' label; '' for missing dates."""
    day = _as_date(value)
    if day is None:
        return ""
    today = today or date.today()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.day}"


def format_short_date(value: DateLike) -> str:
    """M/D/YYYY without zero padding."""
    day = _as_date(value)
    if day is None:
        return ""
    return f"{day.month}/{day.day}/{day.year}"


def format_time_ago(value: datetime, now: Optional[datetime] = None) -> str:
    """Notification timestamps: 'just now', '5m ago', '3h ago', '2d ago', then a short date."""
    now = now or datetime.now(value.tzinfo)
    minutes = int((now - value).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 30:
        return f"{days}d ago"
    return format_short_date(value)


def format_tee_details(tee: Optional[Mapping[str, Any]]) -> Optional[str]:
    """'Blue tees • 6400y • 130/71.2' style summary of a tee set."""
    if not tee:
        return None
    details = f"{tee.get('tee_name') or tee.get('tee_color') or 'Tees'} tees"
    extra = []
    if tee.get("total_length"):
        extra.append(f"{tee['total_length']}{tee.get('measure_unit') or 'y'}")
    if tee.get("slope") and tee.get("course_rating"):
        extra.append(f"{tee['slope']}/{tee['course_rating']}")
    elif tee.get("slope"):
        extra.append(f"Slope: {tee['slope']}")
    if extra:
        details += " • " + " • ".join(extra)
    return details
