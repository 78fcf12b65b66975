"""Upload flows: round photos and profile pictures."""

import logging
from typing import Optional

from starlette.concurrency import run_in_threadpool

from models import Profile
from database.db_manager import DatabaseManager
from media.compression import compress_for_upload, prepare_avatar
from media.exceptions import StorageError
from media.storage import StorageBucket, extract_path_from_url, make_avatar_path, make_round_photo_path

logger = logging.getLogger(__name__)


async def upload_round_photo(
    storage: StorageBucket, user_id: str, data: bytes, filename: str
) -> str:
    """Compress (in a worker thread) and store a round photo; returns its public URL."""
    image = await run_in_threadpool(compress_for_upload, data, filename=filename)
    path = make_round_photo_path(user_id, image.filename)
    return await storage.upload(path, image.data, image.content_type)


def _owned_path(profile: Profile, bucket: str) -> Optional[str]:
    path = profile.avatar_path or extract_path_from_url(profile.avatar_url, bucket)
    if path and path.startswith(f"{profile.id}/"):
        return path
    return None


async def replace_avatar(
    db: DatabaseManager,
    storage: StorageBucket,
    bucket: str,
    profile: Profile,
    data: bytes,
    content_type: Optional[str],
) -> Profile:
    """Upload a new avatar, point the profile at it, then drop the old file.

    Deleting the previous file is best effort: a failure is logged and the
    new avatar stays in place.
    """
    image = await run_in_threadpool(prepare_avatar, data, content_type)
    path = make_avatar_path(profile.id)
    url = await storage.upload(path, image.data, image.content_type, upsert=False, cache_control=3600)
    old_path = _owned_path(profile, bucket)
    updated = await db.profiles.update_profile(profile.id, avatar_url=url, avatar_path=path)
    if old_path and old_path != path:
        try:
            await storage.remove([old_path])
        except StorageError as e:
            logger.warning("Could not delete previous avatar %s: %s", old_path, e)
    return updated


async def remove_avatar(
    db: DatabaseManager, storage: StorageBucket, bucket: str, profile: Profile
) -> Profile:
    """Clear the profile's avatar first, then delete the stored file."""
    old_path = _owned_path(profile, bucket)
    updated = await db.profiles.update_profile(profile.id, avatar_url=None, avatar_path=None)
    if old_path:
        try:
            await storage.remove([old_path])
        except StorageError as e:
            logger.warning("Could not delete avatar file %s: %s", old_path, e)
    return updated
