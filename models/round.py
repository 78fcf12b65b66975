from datetime import date, datetime, time
from pydantic import Field, field_validator, model_validator
from typing import Any, Dict, List, Optional

from .base import BaseGolfModel

HOLES_PER_ROUND = 18
DEFAULT_HOLE_PAR = 4
DEFAULT_COURSE_PAR = 72
MAX_CAPTION_LENGTH = 280
MAX_HOLE_STROKES = 20


def coerce_hole_par(value: Any) -> int:
    """Parse one per-hole par; missing, non-numeric or non-positive values become 4."""
    if value is None or isinstance(value, bool):
        return DEFAULT_HOLE_PAR
    if isinstance(value, (int, float)):
        parsed = int(value)
    else:
        text = str(value).strip()
        digits = ""
        for ch in text:
            if not ch.isdigit():
                break
            digits += ch
        if not digits:
            return DEFAULT_HOLE_PAR
        parsed = int(digits)
    return parsed if parsed > 0 else DEFAULT_HOLE_PAR


def coerce_course_pars(values: Any) -> List[int]:
    """Normalize a course par list to exactly 18 integers."""
    pars = [coerce_hole_par(v) for v in list(values or [])[:HOLES_PER_ROUND]]
    pars.extend([DEFAULT_HOLE_PAR] * (HOLES_PER_ROUND - len(pars)))
    return pars


def coerce_hole_score(value: Any) -> Optional[int]:
    """Parse one hole's strokes; blank, null and zero mean the hole was not played."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    strokes = int(value)
    return strokes or None


def _sum_or_none(values: List[Optional[int]]) -> Optional[int]:
    played = [v for v in values if v is not None]
    return sum(played) if played else None


class Round(BaseGolfModel):
    """A round posted by a user: totals, optional hole-by-hole strokes and course pars."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    club_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    played_at: Optional[datetime] = None
    front9: Optional[int] = Field(None, ge=1, le=200)
    back9: Optional[int] = Field(None, ge=1, le=200)
    total_score: Optional[int] = Field(None, ge=1, le=400)
    scores_by_hole: Optional[List[Optional[int]]] = None
    par: Optional[int] = Field(None, ge=1, le=200)
    course_pars: Optional[List[int]] = None
    tee_id: Optional[str] = None
    tee_data: Optional[Dict[str, Any]] = None
    caption: Optional[str] = Field(None, max_length=MAX_CAPTION_LENGTH)
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("scores_by_hole", mode="before")
    @classmethod
    def normalize_holes(cls, v):
        if v is None:
            return None
        scores = [coerce_hole_score(s) for s in v]
        if len(scores) > HOLES_PER_ROUND:
            raise ValueError(f"At most {HOLES_PER_ROUND} hole scores allowed, got {len(scores)}")
        if not any(s is not None for s in scores):
            return None
        return scores + [None] * (HOLES_PER_ROUND - len(scores))

    @field_validator("scores_by_hole")
    @classmethod
    def validate_strokes(cls, v):
        for index, strokes in enumerate(v or []):
            if strokes is not None and not 1 <= strokes <= MAX_HOLE_STROKES:
                raise ValueError(f"Hole {index + 1}: strokes must be 1-{MAX_HOLE_STROKES}, got {strokes}")
        return v

    @field_validator("course_pars", mode="before")
    @classmethod
    def normalize_pars(cls, v):
        return None if v is None else coerce_course_pars(v)

    @model_validator(mode='after')
    def validate_totals(self):
        # Totals must agree with the holes actually played. Missing totals are
        # derived; writes go through __dict__ so assignment validation does not recurse.
        if not self.has_hole_scores():
            if self.total_score is None and (self.front9 is not None or self.back9 is not None):
                self.__dict__["total_score"] = (self.front9 or 0) + (self.back9 or 0)
            return self
        derived = {
            "front9": self.calculate_front_nine(),
            "back9": self.calculate_back_nine(),
            "total_score": self.calculate_total_score(),
        }
        for name, expected in derived.items():
            given = getattr(self, name)
            if given is None:
                self.__dict__[name] = expected
            elif given != expected:
                raise ValueError(
                    f"{name} ({given}) does not match the sum of played holes ({expected})"
                )
        return self

    def has_hole_scores(self) -> bool:
        """True when at least one hole has strokes recorded."""
        return any(s is not None for s in (self.scores_by_hole or []))

    def played_hole_indices(self) -> List[int]:
        """Zero-based indices of holes with strokes recorded."""
        return [i for i, s in enumerate(self.scores_by_hole or []) if s is not None]

    def calculate_total_score(self) -> Optional[int]:
        """Calculate total strokes over played holes."""
        return _sum_or_none(self.scores_by_hole or [])

    def calculate_front_nine(self) -> Optional[int]:
        """Calculate total strokes for holes 1-9."""
        return _sum_or_none((self.scores_by_hole or [])[:9])

    def calculate_back_nine(self) -> Optional[int]:
        """Calculate total strokes for holes 10-18."""
        return _sum_or_none((self.scores_by_hole or [])[9:18])

    def hole_pars(self) -> List[int]:
        """Per-hole pars, defaulting to 4 when the course has none on file."""
        return list(self.course_pars) if self.course_pars else [DEFAULT_HOLE_PAR] * HOLES_PER_ROUND


class ScoreSubmission(BaseGolfModel):
    """Payload from the score-entry form, before it becomes a Round."""
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    club_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    played_at: date = Field(default_factory=date.today, alias="date")
    front9: Optional[int] = Field(None, ge=1, le=200)
    back9: Optional[int] = Field(None, ge=1, le=200)
    total: Optional[int] = Field(None, ge=1, le=400)
    holes: Optional[List[Optional[int]]] = None
    par: Optional[int] = Field(None, ge=1, le=200)
    course_pars: Optional[List[int]] = Field(None, alias="coursePars")
    tee_id: Optional[str] = None
    tee_data: Optional[Dict[str, Any]] = Field(None, alias="tee")
    comment: Optional[str] = None

    @field_validator("front9", "back9", "total", mode="before")
    @classmethod
    def blank_total_is_none(cls, v):
        if v == "" or v == 0:
            return None
        return v

    @field_validator("holes", mode="before")
    @classmethod
    def normalize_holes(cls, v):
        if v is None:
            return None
        return [coerce_hole_score(s) for s in v]

    @field_validator("course_pars", mode="before")
    @classmethod
    def normalize_pars(cls, v):
        return None if not v else coerce_course_pars(v)

    @field_validator("comment", mode="before")
    @classmethod
    def truncate_comment(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text[:MAX_CAPTION_LENGTH] or None

    @model_validator(mode='after')
    def require_score(self):
        if self.total is None:
            played = [s for s in (self.holes or []) if s is not None]
            if played:
                self.__dict__["total"] = sum(played)
            elif self.front9 is not None or self.back9 is not None:
                self.__dict__["total"] = (self.front9 or 0) + (self.back9 or 0)
        if self.total is None:
            raise ValueError("Please enter a score")
        return self

    def to_round(self, user_id: str, photo_url: Optional[str] = None) -> Round:
        """Build the canonical Round, applying course defaults (par 72, all par-4 holes)."""
        return Round(
            user_id=user_id,
            course_id=self.course_id,
            course_name=self.course_name,
            club_name=self.club_name,
            city=self.city,
            state=self.state,
            played_at=datetime.combine(self.played_at, time()),
            front9=self.front9,
            back9=self.back9,
            total_score=self.total,
            scores_by_hole=self.holes,
            par=self.par or DEFAULT_COURSE_PAR,
            course_pars=self.course_pars or [DEFAULT_HOLE_PAR] * HOLES_PER_ROUND,
            tee_id=self.tee_id,
            tee_data=self.tee_data,
            caption=self.comment,
            photo_url=photo_url,
        )
