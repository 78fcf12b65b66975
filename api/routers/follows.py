"""Follow graph endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from typing import List

from database.db_manager import DatabaseManager
from database.exceptions import NotFoundError
from api.dependencies import get_current_user_id, get_db
from api.schemas import FollowStatusResponse
from models import Follow, FollowCounts, ProfileSummary

router = APIRouter()


@router.post("/{user_id}", response_model=Follow, status_code=201)
async def follow_user(
    user_id: str,
    follower_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    """Follow `user_id`. Following someone already followed is a no-op."""
    try:
        return await db.follows.follow(follower_id, user_id)
    except ValidationError:
        raise HTTPException(400, "You cannot follow yourself")
    except NotFoundError:
        raise HTTPException(404, "User not found")


@router.delete("/{user_id}", status_code=204)
async def unfollow_user(
    user_id: str,
    follower_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    await db.follows.unfollow(follower_id, user_id)


@router.get("/{user_id}/status", response_model=FollowStatusResponse)
async def get_follow_status(
    user_id: str,
    follower_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    return FollowStatusResponse(
        user_id=user_id, is_following=await db.follows.is_following(follower_id, user_id)
    )


@router.get("/{user_id}/followers", response_model=List[ProfileSummary])
async def get_followers(user_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.follows.get_followers(user_id)


@router.get("/{user_id}/following", response_model=List[ProfileSummary])
async def get_following(user_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.follows.get_following(user_id)


@router.get("/{user_id}/counts", response_model=FollowCounts)
async def get_follow_counts(user_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.follows.get_follow_counts(user_id)
