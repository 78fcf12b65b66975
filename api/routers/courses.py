"""Course search and detail endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from database.db_manager import DatabaseManager
from database.repositories.course_repo import NEARBY_RADIUS_MILES
from api.dependencies import get_db
from models import CourseDetail, CourseSearchResult, Tee

router = APIRouter()


@router.get("/search", response_model=List[CourseSearchResult])
async def search_courses(
    q: str = Query(..., min_length=1),
    by: str = Query("name", pattern="^(name|location)$"),
    db: DatabaseManager = Depends(get_db),
):
    """Search by club/course name, or by zip, city and/or state."""
    if by == "location":
        return await db.courses.search_by_location(q)
    return await db.courses.search_by_name(q)


@router.get("/nearby", response_model=List[CourseSearchResult])
async def search_nearby(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(NEARBY_RADIUS_MILES, gt=0, le=100),
    db: DatabaseManager = Depends(get_db),
):
    return await db.courses.search_nearby(lat, lng, max_distance_miles=radius)


@router.get("/{course_id}", response_model=CourseDetail)
async def get_course(course_id: str, db: DatabaseManager = Depends(get_db)):
    course = await db.courses.get_course(course_id)
    if not course:
        raise HTTPException(404, "Course not found")
    return course


@router.get("/{course_id}/tees", response_model=List[Tee])
async def get_tees(course_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.courses.get_tees(course_id)
