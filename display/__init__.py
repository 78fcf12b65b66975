from .avatars import get_avatar_display, get_initials
from .course_names import CourseNameResolver, get_display_name, to_proper_case
from .formatting import format_relative_date, format_short_date, format_tee_details, format_time_ago
from .vs_par import calculate_vs_par, format_vs_par, par_for_holes_played, score_type, vs_par_tone

__all__ = [
    "get_avatar_display", "get_initials",
    "CourseNameResolver", "get_display_name", "to_proper_case",
    "format_relative_date", "format_short_date", "format_tee_details", "format_time_ago",
    "calculate_vs_par", "format_vs_par", "par_for_holes_played", "score_type", "vs_par_tone",
]
