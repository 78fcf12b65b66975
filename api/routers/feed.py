"""Home feed endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from models import FeedSettings
from database.db_manager import DatabaseManager
from feed.service import load_feed_page
from feed.settings_cache import FeedSettingsCache
from api.dependencies import get_db, get_feed_settings_cache, get_viewer_id
from api.schemas import FeedPageResponse

router = APIRouter()


@router.get("", response_model=FeedPageResponse)
async def get_feed(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=100),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    db: DatabaseManager = Depends(get_db),
    cache: FeedSettingsCache = Depends(get_feed_settings_cache),
):
    settings = await cache.refresh()
    page_size = limit or settings.feed_limit
    rounds = await load_feed_page(db, viewer_id, settings, offset=offset, limit=page_size)
    return FeedPageResponse(
        rounds=rounds,
        offset=offset,
        next_offset=offset + len(rounds),
        has_more=len(rounds) >= page_size,
    )


@router.get("/settings", response_model=FeedSettings, response_model_by_alias=False)
async def get_feed_settings(cache: FeedSettingsCache = Depends(get_feed_settings_cache)):
    return await cache.refresh()
