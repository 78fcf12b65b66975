from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from .round import coerce_course_pars


class Tee(BaseModel):
    """A tee set for a course, as listed in the tees table."""
    tee_id: str
    course_id: Optional[str] = None
    tee_name: Optional[str] = None
    tee_color: Optional[str] = None
    total_length: Optional[int] = Field(None, ge=0)
    measure_unit: Optional[str] = None
    slope: Optional[float] = Field(None, ge=55, le=155)
    course_rating: Optional[float] = Field(None, ge=20, le=90)


class CourseDetail(BaseModel):
    """A course with its per-hole pars, used to prefill score entry."""
    course_id: str
    course_name: Optional[str] = None
    club_id: Optional[str] = None
    num_holes: Optional[int] = None
    total_par: Optional[int] = None
    pars: Optional[List[int]] = None

    @field_validator("pars", mode="before")
    @classmethod
    def parse_pars(cls, v):
        return coerce_course_pars(v) if v else None

    def front_nine_par(self) -> Optional[int]:
        return sum(self.pars[:9]) if self.pars else None

    def back_nine_par(self) -> Optional[int]:
        return sum(self.pars[9:18]) if self.pars else None

    def get_par(self) -> Optional[int]:
        """Explicit total par wins; otherwise the sum of hole pars."""
        if self.total_par:
            return self.total_par
        return sum(self.pars) if self.pars else None


class CourseSearchResult(BaseModel):
    """One course row from name, location or nearby search."""
    club_id: Optional[str] = None
    club_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    course_id: str
    course_name: Optional[str] = None
    num_holes: Optional[int] = None
    total_par: Optional[int] = None
    distance_miles: Optional[float] = None
    match_type: Optional[str] = None


class LocationQuery(BaseModel):
    """A free-text location split into the parts the search can filter on."""
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.city or self.state or self.zip_code)
