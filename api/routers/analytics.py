"""Client event tracking."""

import logging
from typing import Optional

import asyncpg
from fastapi import APIRouter, Depends

from database.db_manager import DatabaseManager
from database.exceptions import DatabaseError
from api.dependencies import get_db, get_viewer_id
from api.schemas import TrackEventRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events", status_code=202)
async def track_event(
    req: TrackEventRequest,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: DatabaseManager = Depends(get_db),
):
    """Record an event. Tracking never fails the caller; errors are logged."""
    try:
        await db.analytics.track_event(
            req.event_type, user_id=viewer_id, event_data=req.event_data, session_id=req.session_id
        )
    except (DatabaseError, asyncpg.PostgresError, OSError) as e:
        logger.warning("Tracking %s failed: %s", req.event_type, e)
        return {"tracked": False}
    return {"tracked": True}
