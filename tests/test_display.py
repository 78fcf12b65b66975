from datetime import date, datetime, timedelta

import pytest

from display import (
    CourseNameResolver,
    calculate_vs_par,
    format_relative_date,
    format_short_date,
    format_tee_details,
    format_time_ago,
    format_vs_par,
    get_avatar_display,
    get_display_name,
    get_initials,
    par_for_holes_played,
    score_type,
    to_proper_case,
    vs_par_tone,
)
from display.course_names import significant_words, word_overlap
from display.vs_par import round_half_up
from models import ProfileSummary, Round


# ================================================================
# vs_par.py
# ================================================================

def test_vs_par_full_round():
    assert calculate_vs_par(Round(total_score=82, par=72)) == "+10"
    assert calculate_vs_par(Round(total_score=72, par=72)) == "E"
    assert calculate_vs_par(Round(total_score=69, par=72)) == "-3"


def test_vs_par_front_nine_only_uses_front_pars():
    """Only holes 1-9 count when just the front nine was posted."""
    r = Round(front9=34, par=72, course_pars=[4] * 18)
    assert r.total_score == 34
    assert par_for_holes_played(r) == 36
    assert calculate_vs_par(r) == "-2"


def test_vs_par_partial_holes_without_course_pars():
    r = Round(scores_by_hole=[5, 5], par=72)
    assert par_for_holes_played(r) == 8
    assert calculate_vs_par(r) == "+2"


def test_vs_par_partial_holes_with_course_pars():
    r = Round(scores_by_hole=[4, 4], par=71, course_pars=[3, 4] + [4] * 16)
    assert par_for_holes_played(r) == 7
    assert calculate_vs_par(r) == "+1"


def test_vs_par_back_nine_rounds_half_up():
    r = Round(back9=40, par=71)
    assert par_for_holes_played(r) == 36
    assert calculate_vs_par(r) == "+4"


def test_vs_par_falls_back_to_summed_course_pars():
    r = Round(total_score=75, course_pars=[3] * 18)
    assert par_for_holes_played(r) == 54
    assert calculate_vs_par(r) == "+21"


def test_vs_par_needs_par_and_score():
    assert calculate_vs_par(Round(total_score=80)) is None
    assert calculate_vs_par(Round(par=72)) is None


def test_round_half_up():
    assert round_half_up(35.5) == 36
    assert round_half_up(36.5) == 37
    assert round_half_up(35.4) == 35


def test_format_vs_par_and_tone():
    assert format_vs_par(0) == "E"
    assert format_vs_par(3) == "+3"
    assert format_vs_par(-4) == "-4"
    assert vs_par_tone("E") == "even"
    assert vs_par_tone("+3") == "over"
    assert vs_par_tone("-1") == "under"
    assert vs_par_tone(None) is None
    assert vs_par_tone("n/a") is None


@pytest.mark.parametrize("strokes, par, expected", [
    (1, 4, "albatross"),
    (2, 4, "eagle"),
    (3, 4, "birdie"),
    (4, 4, "par"),
    (5, 4, "bogey"),
    (6, 4, "double bogey"),
    (9, 4, "quintuple+"),
    (None, 4, None),
    (4, None, None),
])
def test_score_type(strokes, par, expected):
    assert score_type(strokes, par) == expected


# ================================================================
# course_names.py
# ================================================================

def test_single_course_club_collapses_to_club_name():
    assert get_display_name("Pebble Beach", "Pebble Beach Golf Links") == "Pebble Beach Golf Links"


def test_all_caps_course_collapses_to_club_name():
    assert get_display_name("PEBBLE BEACH GOLF LINKS", "Pebble Beach Golf Links") == "Pebble Beach Golf Links"
    assert get_display_name("Pebble Beach", "PEBBLE BEACH GOLF LINKS") == "Pebble Beach Golf Links"


def test_multi_course_facility_keeps_both_names():
    assert get_display_name("Ocean Course", "Kiawah Island Resort") == "Ocean Course @ Kiawah Island Resort"


def test_ambiguous_course_name_gets_suffix():
    assert get_display_name("Old", "St Andrews Links") == "Old Course @ St Andrews Links"


def test_ambiguous_words_are_configurable():
    resolver = CourseNameResolver(ambiguous_words=["Lakes"])
    assert resolver.display_name("Lakes", "Sunset Ridge") == "Lakes Course @ Sunset Ridge"
    assert resolver.display_name("Old", "Sunset Ridge") == "Old @ Sunset Ridge"


def test_missing_or_sentinel_names():
    assert get_display_name("Unknown Course", "Bethpage State Park") == "Bethpage State Park"
    assert get_display_name("Course Name N/A", None) == "Unknown Course"
    assert get_display_name(None, None) == "Unknown Course"
    assert get_display_name("Blue Monster", None) == "Blue Monster"


def test_all_caps_names_are_proper_cased():
    assert to_proper_case("THE CLUB AT OAK HILL") == "The Club at Oak Hill"
    assert to_proper_case("Mixed Case Name") == "Mixed Case Name"
    assert to_proper_case("CC") == "CC"
    assert to_proper_case(None) is None
    assert get_display_name("EAST", "THE CLUB AT OAK HILL") == "East Course @ The Club at Oak Hill"


def test_significant_words_and_overlap():
    assert significant_words("Pine Valley Golf Club") == ["pine", "valley"]
    assert word_overlap("Golf Club", "Anything") is None
    assert word_overlap("Pine Valley", "Pine Valley Golf Club") == 1.0
    assert word_overlap("Pine Hills", "Pine Valley") == 0.5


# ================================================================
# avatars.py
# ================================================================

def test_initials_fallback_chain():
    assert get_initials({"full_name": "jordan spieth"}) == "JS"
    assert get_initials({"full_name": "Tiger"}) == "T"
    assert get_initials({"full_name": "  ", "username": "rory"}) == "R"
    assert get_initials({"email": "x@example.com"}) == "X"
    assert get_initials({}) == "?"
    assert get_initials(None) == "?"


def test_avatar_display():
    image = get_avatar_display(ProfileSummary(username="rory", avatar_url="http://a/1.jpg"))
    assert image == {"type": "image", "url": "http://a/1.jpg", "alt": "rory"}
    initials = get_avatar_display(ProfileSummary(full_name="Rory McIlroy"))
    assert initials == {"type": "initials", "text": "RM"}


# ================================================================
# formatting.py
# ================================================================

def test_format_relative_date():
    today = date(2024, 5, 10)
    assert format_relative_date(date(2024, 5, 10), today=today) == "Today"
    assert format_relative_date(datetime(2024, 5, 9, 18, 30), today=today) == "Yesterday"
    assert format_relative_date(date(2024, 4, 3), today=today) == "Apr 3"
    assert format_relative_date(None) == ""


def test_format_short_date():
    assert format_short_date(datetime(2024, 3, 5, 10)) == "3/5/2024"
    assert format_short_date(None) == ""


def test_format_time_ago():
    now = datetime(2024, 5, 10, 12, 0)
    assert format_time_ago(now - timedelta(seconds=30), now=now) == "just now"
    assert format_time_ago(now - timedelta(minutes=5), now=now) == "5m ago"
    assert format_time_ago(now - timedelta(hours=3), now=now) == "3h ago"
    assert format_time_ago(now - timedelta(days=2), now=now) == "2d ago"
    assert format_time_ago(datetime(2024, 3, 1, 9), now=now) == "3/1/2024"


def test_format_tee_details():
    tee = {"tee_name": "Blue", "total_length": 6400, "slope": 130, "course_rating": 71.2}
    assert format_tee_details(tee) == "Blue tees • 6400y • 130/71.2"
    assert format_tee_details({"tee_color": "Red", "slope": 120}) == "Red tees • Slope: 120"
    assert format_tee_details({"total_length": 5800, "measure_unit": "m"}) == "Tees tees • 5800m"
    assert format_tee_details(None) is None
