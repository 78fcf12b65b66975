"""Profile endpoints: the signed-in user's profile, avatar, search and profile pages."""

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from typing import List, Optional

from config import AppConfig
from database.db_manager import DatabaseManager
from database.exceptions import DuplicateError, NotFoundError
from media.exceptions import ImageDecodeError, ImageTooLargeError, StorageError, UnsupportedImageTypeError
from media.storage import StorageBucket
from media.uploads import remove_avatar, replace_avatar
from api.dependencies import get_avatar_storage, get_config, get_current_user_id, get_db, get_viewer_id
from api.schemas import CreateProfileRequest, UpdateProfileRequest
from models import Profile, ProfileSummary, ProfileWithStats

router = APIRouter()


async def _own_profile(db: DatabaseManager, user_id: str) -> Profile:
    profile = await db.profiles.get_profile(user_id)
    if not profile:
        raise HTTPException(404, "Profile not found")
    return profile


@router.get("/me", response_model=Profile)
async def get_my_profile(
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    return await _own_profile(db, user_id)


@router.post("/me", response_model=Profile)
async def ensure_my_profile(
    req: CreateProfileRequest,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    """Create the profile on first sign-in; an existing profile is returned unchanged."""
    try:
        return await db.profiles.ensure_profile(
            user_id, username=req.username, full_name=req.full_name, avatar_url=req.avatar_url
        )
    except DuplicateError:
        raise HTTPException(409, f"Username '{req.username}' is taken")


@router.patch("/me", response_model=Profile)
async def update_my_profile(
    req: UpdateProfileRequest,
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    updates = req.model_dump(exclude_unset=True)
    if "username" in updates:
        username = (updates["username"] or "").strip()
        if not username or any(ch.isspace() for ch in username):
            raise HTTPException(400, "Username cannot be blank or contain spaces")
        updates["username"] = username
    try:
        return await db.profiles.update_profile(user_id, **updates)
    except DuplicateError:
        raise HTTPException(409, f"Username '{updates.get('username')}' is taken")
    except NotFoundError:
        raise HTTPException(404, "Profile not found")


# ================================================================
# Avatar
# ================================================================

@router.put("/me/avatar", response_model=Profile)
async def upload_avatar(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
    storage: StorageBucket = Depends(get_avatar_storage),
    config: AppConfig = Depends(get_config),
):
    """Replace the profile picture; the previous file is deleted afterwards."""
    profile = await _own_profile(db, user_id)
    data = await file.read()
    try:
        return await replace_avatar(db, storage, config.avatars_bucket, profile, data, file.content_type)
    except (ImageDecodeError, UnsupportedImageTypeError) as e:
        raise HTTPException(400, str(e))
    except ImageTooLargeError as e:
        raise HTTPException(413, str(e))
    except StorageError as e:
        raise HTTPException(502, f"Avatar upload failed: {e}")


@router.delete("/me/avatar", response_model=Profile)
async def delete_avatar(
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
    storage: StorageBucket = Depends(get_avatar_storage),
    config: AppConfig = Depends(get_config),
):
    profile = await _own_profile(db, user_id)
    return await remove_avatar(db, storage, config.avatars_bucket, profile)


# ================================================================
# Discovery
# ================================================================

@router.get("/search", response_model=List[ProfileSummary])
async def search_users(
    q: str = Query(""),
    limit: int = Query(20, ge=1, le=50),
    db: DatabaseManager = Depends(get_db),
):
    """Search by username or name; fewer than two characters returns nothing."""
    return await db.profiles.search_users(q, limit=limit)


@router.get("/suggested", response_model=List[ProfileSummary])
async def get_suggested_users(
    limit: int = Query(10, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    db: DatabaseManager = Depends(get_db),
):
    return await db.profiles.get_suggested_users(user_id, limit=limit)


@router.get("/{username}", response_model=ProfileWithStats)
async def get_profile_page(
    username: str,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: DatabaseManager = Depends(get_db),
):
    profile = await db.profiles.get_profile_with_stats(username, viewer_id)
    if not profile:
        raise HTTPException(404, "User not found")
    return profile
