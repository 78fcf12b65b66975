"""Course search over the clubs/courses/tees reference tables."""

import logging
import re
from typing import Dict, List, Optional

import asyncpg

from models import CourseDetail, CourseSearchResult, LocationQuery, Tee
from database.converters import course_detail_from_row, course_result_from_row, tee_from_row

logger = logging.getLogger(__name__)

NAME_SEARCH_LIMIT = 20
LOCATION_SEARCH_LIMIT = 50
NEARBY_RADIUS_MILES = 15

_ZIP = re.compile(r"^\d{3,5}$")
_TWO_LETTERS = re.compile(r"^[A-Za-z]{2}$")

_COURSE_COLUMNS = """
    cl.club_id, cl.club_name, cl.city, cl.state, cl.postal_code,
    co.course_id, co.course_name, co.num_holes, co.total_par
"""


def parse_location_query(text: str) -> LocationQuery:
    """Split free text into zip / city / state.

    * 3-5 digits: a zip code (leading zeros are lost in the source data)
    * "City, ST": city and state around the comma
    * "Some City ST": a trailing two-letter word is the state
    * two characters on their own: a state
    * anything else: a city name
    """
    text = (text or "").strip()
    if not text:
        return LocationQuery()
    if _ZIP.match(text):
        return LocationQuery(zip_code=text)
    if "," in text:
        city, _, state = text.partition(",")
        return LocationQuery(city=city.strip() or None, state=state.strip().upper() or None)
    words = text.split()
    if len(words) > 1 and _TWO_LETTERS.match(words[-1]):
        return LocationQuery(city=" ".join(words[:-1]), state=words[-1].upper())
    if len(text) == 2:
        return LocationQuery(state=text.upper())
    return LocationQuery(city=text)


def _like(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CourseRepositoryDB:
    """Read-only access to golf clubs, courses and tees."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Search
    # ================================================================

    async def search_by_name(
        self, term: str, *, limit: int = NAME_SEARCH_LIMIT
    ) -> List[CourseSearchResult]:
        """Club-name matches first, then course-name matches, one row per course."""
        term = (term or "").strip()
        if not term:
            return []
        pattern = _like(term)
        async with self._pool.acquire() as conn:
            club_rows = await conn.fetch(
                f"""SELECT {_COURSE_COLUMNS}
                    FROM clubs cl JOIN courses co ON co.club_id = cl.club_id
                    WHERE cl.club_name ILIKE $1
                    ORDER BY cl.club_name, co.course_name LIMIT $2""",
                pattern, limit,
            )
            course_rows = await conn.fetch(
                f"""SELECT {_COURSE_COLUMNS}
                    FROM courses co LEFT JOIN clubs cl ON cl.club_id = co.club_id
                    WHERE co.course_name ILIKE $1
                    ORDER BY co.course_name LIMIT $2""",
                pattern, limit,
            )

        results: Dict[str, CourseSearchResult] = {}
        for match_type, rows in (("club", club_rows), ("course", course_rows)):
            for row in rows:
                result = course_result_from_row(row, match_type=match_type)
                results.setdefault(result.course_id, result)
        return list(results.values())

    async def search_by_location(
        self, text: str, *, limit: int = LOCATION_SEARCH_LIMIT
    ) -> List[CourseSearchResult]:
        """Courses at clubs matching a zip code, city and/or state."""
        query = parse_location_query(text)
        if query.is_empty():
            return []

        conditions: List[str] = []
        params: list = []

        def add(param) -> str:
            params.append(param)
            return f"${len(params)}"

        if query.zip_code:
            stripped = query.zip_code.lstrip("0") or "0"
            conditions.append(
                f"(cl.postal_code = {add(stripped)} OR cl.postal_code = {add(query.zip_code)}"
                f" OR cl.postal_code LIKE {add(stripped + '-%')})"
            )
        if query.city and query.state:
            conditions.append(f"cl.city ILIKE {add(_like(query.city))}")
        elif query.city:
            city = add(_like(query.city))
            conditions.append(f"(cl.city ILIKE {city} OR cl.state ILIKE {city})")
        if query.state:
            if _TWO_LETTERS.match(query.state):
                conditions.append(f"UPPER(cl.state) = {add(query.state.upper())}")
            else:
                conditions.append(f"cl.state ILIKE {add(_like(query.state))}")

        limit_param = add(limit)
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"""SELECT {_COURSE_COLUMNS}
                    FROM clubs cl JOIN courses co ON co.club_id = cl.club_id
                    WHERE {' AND '.join(conditions)}
                    ORDER BY cl.club_name, co.course_name LIMIT {limit_param}""",
                *params,
            )
        return [course_result_from_row(r, match_type="location") for r in rows]

    async def search_nearby(
        self,
        latitude: float,
        longitude: float,
        *,
        max_distance_miles: float = NEARBY_RADIUS_MILES,
    ) -> List[CourseSearchResult]:
        """Courses within a radius, via the server's search_golf_courses function."""
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM search_golf_courses($1, $2, $3, $4)",
                "", latitude, longitude, max_distance_miles,
            )
        return [course_result_from_row(r, match_type="nearby") for r in rows]

    # ================================================================
    # Detail
    # ================================================================

    async def get_course(self, course_id: str) -> Optional[CourseDetail]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM courses WHERE course_id = $1", course_id
            )
            return course_detail_from_row(row) if row else None

    async def get_tees(self, course_id: str) -> List[Tee]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM tees WHERE course_id = $1 ORDER BY tee_id", course_id
            )
        return [tee_from_row(r) for r in rows]
