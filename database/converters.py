"""Conversion between asyncpg rows and the Pydantic domain models.

Every row that describes a round goes through `round_from_row`, the one
place that knows the column aliases the different queries and RPCs use
(``holes`` vs ``scores_by_hole``, ``total`` vs ``total_score`` ...).
Nothing downstream branches on field-name variants.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from models import (
    Comment,
    CourseDetail,
    CourseSearchResult,
    FeedEntry,
    Notification,
    Profile,
    ProfileSummary,
    Reaction,
    Round,
    Tee,
)

logger = logging.getLogger(__name__)

# Canonical field -> accepted source keys, in priority order.
ROUND_FIELD_ALIASES: Dict[str, tuple] = {
    "scores_by_hole": ("scores_by_hole", "holes"),
    "total_score": ("total_score", "total"),
    "course_pars": ("course_pars", "coursePars"),
    "played_at": ("played_at", "date"),
    "tee_data": ("tee_data", "tee"),
    "caption": ("caption", "comment"),
    "photo_url": ("photo_url", "photo"),
}

ROUND_PLAIN_FIELDS = (
    "course_name", "club_name", "city", "state",
    "front9", "back9", "par", "created_at",
)

_TEXT_FIELDS = {"course_name", "club_name", "city", "state", "caption", "photo_url"}


# ================================================================
# Helpers
# ================================================================

def _str_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def parse_uuid(value: Any) -> Optional[UUID]:
    """`value` as a UUID, or None when it is not a well-formed one.

    Ids come from URL segments and headers; a malformed id matches no row.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def parse_uuids(values: Iterable[Any]) -> List[UUID]:
    """The well-formed ids in `values`, in order."""
    parsed = (parse_uuid(v) for v in values)
    return [u for u in parsed if u is not None]


def _as_dict(row: Any) -> Dict[str, Any]:
    if row is None:
        return {}
    if isinstance(row, dict):
        return row
    return dict(row.items())


def decode_json(value: Any) -> Any:
    """Decode JSON/JSONB returned as text; pass decoded values through."""
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


def _first(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


# ================================================================
# Row -> Model (reads)
# ================================================================

def round_from_row(row) -> Round:
    """Any round-shaped row (table, join, or RPC JSON) -> canonical Round."""
    data = _as_dict(row)
    values: Dict[str, Any] = {
        "id": _str_id(data.get("id")),
        "user_id": _str_id(data.get("user_id")),
        "course_id": _str_id(data.get("course_id")),
        "tee_id": _str_id(data.get("tee_id")),
    }
    for name in ROUND_PLAIN_FIELDS:
        values[name] = data.get(name)
    for name, keys in ROUND_FIELD_ALIASES.items():
        values[name] = _first(data, keys)

    for name in _TEXT_FIELDS:
        if values.get(name) == "":
            values[name] = None
    for name in ("front9", "back9", "total_score", "par"):
        if values[name] == 0:
            values[name] = None
    values["scores_by_hole"] = decode_json(values["scores_by_hole"]) or None
    values["course_pars"] = decode_json(values["course_pars"]) or None
    values["tee_data"] = decode_json(values["tee_data"]) or None

    # Stored totals lose to the holes themselves; the model re-derives them.
    holes = values["scores_by_hole"]
    if holes and any(h not in (None, "", 0) for h in holes):
        for name in ("front9", "back9", "total_score"):
            values[name] = None
    return Round(**values)


def profile_summary_from_row(row, prefix: str = "") -> Optional[ProfileSummary]:
    """Author fields from a nested `profiles` JSON object or flat prefixed columns.

    The profile id falls back to the row's ``user_id``. Returns None when no
    display field is present, so callers render the anonymous fallback.
    """
    data = _as_dict(row)
    nested = decode_json(data.get("profiles") or data.get("author"))
    if isinstance(nested, dict):
        source, prefix = nested, ""
        profile_id = nested.get("id")
    else:
        source = data
        profile_id = data.get(f"{prefix}id") if prefix else None
    if profile_id is None:
        profile_id = data.get("user_id")
    summary = ProfileSummary(
        id=_str_id(profile_id),
        username=source.get(f"{prefix}username"),
        full_name=source.get(f"{prefix}full_name"),
        avatar_url=source.get(f"{prefix}avatar_url"),
    )
    if not (summary.username or summary.full_name or summary.avatar_url):
        return None
    return summary


def feed_entry_from_row(row) -> FeedEntry:
    """Feed/rounds row -> FeedEntry, keeping the ranking tags when present."""
    data = _as_dict(row)
    return FeedEntry(
        round=round_from_row(data),
        author=profile_summary_from_row(data),
        source=data.get("source") or "following",
        reason=data.get("reason") or None,
    )


def reaction_from_row(row) -> Optional[Reaction]:
    """reactions row -> Reaction; rows with an unknown reaction_type map to None."""
    data = _as_dict(row)
    try:
        return Reaction(
            user_id=_str_id(data["user_id"]),
            round_id=_str_id(data["round_id"]),
            reaction_type=data["reaction_type"],
        )
    except ValueError:
        logger.debug("Ignoring unknown reaction type %r", data.get("reaction_type"))
        return None


def comment_from_row(row) -> Comment:
    data = _as_dict(row)
    author = profile_summary_from_row(data, prefix="author_")
    return Comment(
        id=_str_id(data.get("id")),
        round_id=_str_id(data["round_id"]),
        user_id=_str_id(data["user_id"]),
        content=data.get("content") or data.get("comment_text") or "",
        created_at=data.get("created_at"),
        author=author,
    )


def profile_from_row(row) -> Profile:
    data = _as_dict(row)
    handicap = data.get("handicap")
    return Profile(
        id=_str_id(data["id"]),
        username=data["username"],
        full_name=data.get("full_name"),
        avatar_url=data.get("avatar_url"),
        avatar_path=data.get("avatar_path"),
        bio=data.get("bio"),
        location=data.get("location"),
        handicap=float(handicap) if handicap is not None else None,
        last_notifications_check=data.get("last_notifications_check"),
        created_at=data.get("created_at"),
    )


def summary_from_profile_row(row) -> ProfileSummary:
    data = _as_dict(row)
    return ProfileSummary(
        id=_str_id(data.get("id")),
        username=data.get("username"),
        full_name=data.get("full_name"),
        avatar_url=data.get("avatar_url"),
    )


def course_result_from_row(row, match_type: Optional[str] = None) -> CourseSearchResult:
    data = _as_dict(row)
    distance = data.get("distance_miles")
    return CourseSearchResult(
        club_id=_str_id(data.get("club_id")),
        club_name=data.get("club_name"),
        city=data.get("city"),
        state=data.get("state"),
        postal_code=_str_id(data.get("postal_code")),
        course_id=_str_id(data["course_id"]),
        course_name=data.get("course_name"),
        num_holes=data.get("num_holes"),
        total_par=data.get("total_par"),
        distance_miles=float(distance) if distance is not None else None,
        match_type=match_type or data.get("match_type"),
    )


def course_detail_from_row(row) -> CourseDetail:
    data = _as_dict(row)
    return CourseDetail(
        course_id=_str_id(data["course_id"]),
        course_name=data.get("course_name"),
        club_id=_str_id(data.get("club_id")),
        num_holes=data.get("num_holes"),
        total_par=data.get("total_par"),
        pars=decode_json(data.get("pars")),
    )


def tee_from_row(row) -> Tee:
    data = _as_dict(row)
    slope = data.get("slope")
    rating = data.get("course_rating")
    return Tee(
        tee_id=_str_id(data["tee_id"]),
        course_id=_str_id(data.get("course_id")),
        tee_name=data.get("tee_name"),
        tee_color=data.get("tee_color"),
        total_length=data.get("total_length"),
        measure_unit=data.get("measure_unit"),
        slope=float(slope) if slope else None,
        course_rating=float(rating) if rating else None,
    )


def notification_from_row(row, last_checked=None) -> Notification:
    data = _as_dict(row)
    created_at = data.get("created_at")
    return Notification(
        id=_str_id(data["id"]),
        user_id=_str_id(data["user_id"]),
        type=data["type"],
        actor=profile_summary_from_row(data, prefix="actor_"),
        round_id=_str_id(data.get("round_id")),
        round_short_code=data.get("round_short_code"),
        round_course_name=data.get("round_course_name"),
        round_total_score=data.get("round_total_score"),
        created_at=created_at,
        is_new=bool(created_at and (last_checked is None or created_at > last_checked)),
    )


# ================================================================
# Model -> Row dict (writes)
# ================================================================

def round_to_row(round_: Round) -> dict:
    """Round -> dict for a rounds INSERT. Text columns are stored as '' rather than NULL."""
    return {
        "user_id": round_.user_id,
        "course_id": round_.course_id,
        "course_name": round_.course_name or "",
        "club_name": round_.club_name or "",
        "city": round_.city or "",
        "state": round_.state or "",
        "tee_id": round_.tee_id,
        "tee_data": json.dumps(round_.tee_data) if round_.tee_data else None,
        "played_at": round_.played_at,
        "front9": round_.front9,
        "back9": round_.back9,
        "total_score": round_.total_score,
        "scores_by_hole": json.dumps(round_.scores_by_hole) if round_.scores_by_hole else None,
        "par": round_.par,
        "course_pars": round_.course_pars,
        "caption": round_.caption or "",
        "photo_url": round_.photo_url,
    }
