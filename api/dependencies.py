import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from config import AppConfig
from database.converters import parse_uuid
from database.db_manager import DatabaseManager
from feed.settings_cache import FeedSettingsCache
from media.storage import StorageBucket


def get_db(request: Request) -> DatabaseManager:
    """FastAPI dependency that provides the DatabaseManager."""
    return request.app.state.db_manager


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_feed_settings_cache(request: Request) -> FeedSettingsCache:
    return request.app.state.feed_settings


def _bucket(request: Request, name: str) -> StorageBucket:
    storage = getattr(request.app.state, name, None)
    if storage is None:
        raise HTTPException(503, "Photo storage is not configured")
    return storage


def get_round_photo_storage(request: Request) -> StorageBucket:
    return _bucket(request, "round_photos")


def get_avatar_storage(request: Request) -> StorageBucket:
    return _bucket(request, "avatars")


def get_viewer_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Signed-in user id forwarded by the auth proxy, if any."""
    if not x_user_id:
        return None
    user_id = parse_uuid(x_user_id)
    if user_id is None:
        raise HTTPException(422, "X-User-Id must be a UUID")
    return str(user_id)


def get_current_user_id(viewer_id: Optional[str] = Depends(get_viewer_id)) -> str:
    if not viewer_id:
        raise HTTPException(401, "Sign in required")
    return viewer_id


def require_admin(
    x_admin_key: Optional[str] = Header(None),
    config: AppConfig = Depends(get_config),
) -> None:
    """Admin routes are disabled entirely when no admin key is configured."""
    if not config.admin_api_key:
        raise HTTPException(404, "Not found")
    if not x_admin_key or not hmac.compare_digest(x_admin_key, config.admin_api_key):
        raise HTTPException(403, "Admin access required")
