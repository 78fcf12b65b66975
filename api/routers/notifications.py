"""Notification endpoints for the signed-in user."""

from fastapi import APIRouter, Depends, Query
from typing import List

from database.db_manager import DatabaseManager
from api.dependencies import get_current_user_id, get_db
from api.schemas import NotificationStatusResponse
from models import Notification

router = APIRouter()


@router.get("", response_model=List[Notification])
async def get_notifications(
    limit: int = Query(50, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    return await db.notifications.get_notifications(user_id, limit=limit)


@router.get("/status", response_model=NotificationStatusResponse)
async def get_notification_status(
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    return NotificationStatusResponse(has_new=await db.notifications.has_new_notifications(user_id))


@router.post("/mark-checked", status_code=204)
async def mark_checked(
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    await db.notifications.mark_checked(user_id)
