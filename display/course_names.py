"""Pick the label shown for a round's course: club name, course name, or both.

Single-course clubs usually repeat the club name in the course name
("Pine Valley Golf Club" at "Pine Valley Golf Club"), so those collapse to the
club name. Multi-course facilities keep the "Course @ Club" form.
"""

import re
from typing import Iterable, List, Optional

UNKNOWN_COURSE = "Unknown Course"
SENTINEL_COURSE_NAMES = frozenset({UNKNOWN_COURSE, "Course Name N/A"})

# Bare course names that read as adjectives on their own ("Old", "Blue").
DEFAULT_AMBIGUOUS_WORDS = (
    "Old", "New", "North", "South", "East", "West",
    "Championship", "Palmer", "Club", "Woodfield",
    "Executive", "Blue", "Red", "Gold", "Silver",
)

LOWERCASE_CONNECTORS = frozenset({"of", "at", "the"})

_GENERIC_WORDS = re.compile(r"golf|club|country|cc|course|resort|links", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def to_proper_case(name: Optional[str]) -> Optional[str]:
    """Title-case names stored in ALL CAPS; leave mixed-case names alone."""
    if not name or name != name.upper() or len(name) <= 2:
        return name
    words = name.lower().split(" ")
    return " ".join(
        word if index > 0 and word in LOWERCASE_CONNECTORS else word[:1].upper() + word[1:]
        for index, word in enumerate(words)
    )


def significant_words(name: str) -> List[str]:
    """Lower-cased tokens longer than two characters, generic facility words removed."""
    cleaned = _GENERIC_WORDS.sub("", name.lower())
    cleaned = _NON_ALNUM.sub(" ", cleaned).strip()
    return [w for w in cleaned.split(" ") if len(w) > 2]


def word_overlap(course_name: str, club_name: str) -> Optional[float]:
    """Fraction of course tokens that substring-match a club token, or None with no course tokens."""
    course_words = significant_words(course_name)
    if not course_words:
        return None
    club_words = significant_words(club_name)
    matching = [
        word for word in course_words
        if any(club_word in word or word in club_word for club_word in club_words)
    ]
    return len(matching) / len(course_words)


class CourseNameResolver:
    """Resolves {course_name, club_name} to one display label."""

    def __init__(
        self,
        ambiguous_words: Iterable[str] = DEFAULT_AMBIGUOUS_WORDS,
        overlap_threshold: float = 0.7,
    ):
        self.ambiguous_words = frozenset(ambiguous_words)
        self.overlap_threshold = overlap_threshold

    def display_name(self, course_name: Optional[str], club_name: Optional[str]) -> str:
        course_name = to_proper_case(course_name)
        club_name = to_proper_case(club_name)

        if not course_name or course_name in SENTINEL_COURSE_NAMES:
            return club_name or UNKNOWN_COURSE
        if not club_name:
            return course_name

        if course_name in self.ambiguous_words:
            course_name = f"{course_name} Course"

        overlap = word_overlap(course_name, club_name)
        if overlap is not None and overlap >= self.overlap_threshold:
            return club_name
        return f"{course_name} @ {club_name}"


default_resolver = CourseNameResolver()


def get_display_name(course_name: Optional[str], club_name: Optional[str]) -> str:
    return default_resolver.display_name(course_name, club_name)
