"""Admin dashboard, moderation and feed-settings endpoints (X-Admin-Key required)."""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import Response

from analytics import stats, visualizations
from database.db_manager import DatabaseManager
from database.exceptions import NotFoundError
from database.repositories.admin_repo import ADMIN_PAGE_SIZE
from feed.settings_cache import FeedSettingsCache, save_feed_settings
from api.dependencies import get_db, get_feed_settings_cache, get_viewer_id, require_admin
from models import AdminDeleteResult, AdminPage, DashboardOverview, FeedSettings, MetricRow

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


# ================================================================
# Dashboard
# ================================================================

@router.get("/overview", response_model=DashboardOverview)
async def get_overview(db: DatabaseManager = Depends(get_db)):
    return await db.admin.get_dashboard_overview()


@router.get("/metrics/activity", response_model=List[MetricRow])
async def get_activity_metrics(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: DatabaseManager = Depends(get_db),
):
    """Daily activity between `start` and `end` (defaults to the last 30 days)."""
    end = end or date.today()
    start = start or end - timedelta(days=30)
    if start > end:
        raise HTTPException(400, "start must not be after end")
    return await db.admin.get_activity_metrics(start, end)


@router.get("/metrics/growth", response_model=List[MetricRow])
async def get_user_growth(days: int = Query(30, ge=1, le=365), db: DatabaseManager = Depends(get_db)):
    return await db.admin.get_user_growth_metrics(days)


@router.get("/metrics/engagement", response_model=List[MetricRow])
async def get_engagement(days: int = Query(30, ge=1, le=365), db: DatabaseManager = Depends(get_db)):
    return await db.admin.get_engagement_metrics(days)


@router.get("/top-rounds")
async def get_top_rounds(
    days: int = Query(7, ge=1, le=365),
    limit: int = Query(10, ge=1, le=50),
    db: DatabaseManager = Depends(get_db),
):
    return await db.admin.get_top_rounds(days, limit)


@router.get("/reactions")
async def get_reaction_breakdown(
    days: Optional[int] = Query(None, ge=1, le=365),
    db: DatabaseManager = Depends(get_db),
):
    return await db.admin.get_reaction_breakdown(days)


# ================================================================
# Aggregates computed here from raw rows
# ================================================================

@router.get("/analytics/courses")
async def get_course_analytics(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(20, ge=1, le=100),
    db: DatabaseManager = Depends(get_db),
):
    rows = await db.admin.get_course_score_rows(days)
    return stats.course_analytics(rows, limit=limit)


@router.get("/analytics/segments")
async def get_user_segments(db: DatabaseManager = Depends(get_db)):
    return stats.user_segments(await db.admin.get_user_segment_rows())


@router.get("/analytics/power-users")
async def get_power_users(limit: int = Query(20, ge=1, le=100), db: DatabaseManager = Depends(get_db)):
    return await db.admin.get_power_users(limit)


@router.get("/analytics/heatmap", response_model=Dict[str, int])
async def get_activity_heatmap(days: int = Query(7, ge=1, le=90), db: DatabaseManager = Depends(get_db)):
    return stats.activity_heatmap(await db.admin.get_event_rows(days))


@router.get("/charts/{chart}.png")
async def get_chart(
    chart: str,
    days: int = Query(30, ge=1, le=365),
    db: DatabaseManager = Depends(get_db),
):
    """Server-rendered PNG of one dashboard chart."""
    if chart == "activity":
        end = date.today()
        fig, _ = visualizations.plot_activity_metrics(
            await db.admin.get_activity_metrics(end - timedelta(days=days), end)
        )
    elif chart == "growth":
        fig, _ = visualizations.plot_user_growth(await db.admin.get_user_growth_metrics(days))
    elif chart == "engagement":
        fig, _ = visualizations.plot_engagement_metrics(await db.admin.get_engagement_metrics(days))
    elif chart == "reactions":
        fig, _ = visualizations.plot_reaction_breakdown(await db.admin.get_reaction_breakdown(days))
    elif chart == "heatmap":
        fig, _ = visualizations.plot_activity_heatmap(
            stats.activity_heatmap(await db.admin.get_event_rows(days))
        )
    else:
        raise HTTPException(404, f"Unknown chart: {chart}")
    return Response(content=visualizations.figure_to_png(fig), media_type="image/png")


# ================================================================
# Moderation
# ================================================================

async def _listing(db: DatabaseManager, kind: str, search: str, page: int) -> AdminPage[Dict[str, Any]]:
    return await db.admin.list_items(
        kind, search=search, limit=ADMIN_PAGE_SIZE, offset=(page - 1) * ADMIN_PAGE_SIZE
    )


@router.get("/users", response_model=AdminPage[Dict[str, Any]])
async def list_users(
    search: str = Query(""), page: int = Query(1, ge=1), db: DatabaseManager = Depends(get_db)
):
    return await _listing(db, "users", search, page)


@router.get("/comments", response_model=AdminPage[Dict[str, Any]])
async def list_comments(
    search: str = Query(""), page: int = Query(1, ge=1), db: DatabaseManager = Depends(get_db)
):
    return await _listing(db, "comments", search, page)


@router.get("/rounds", response_model=AdminPage[Dict[str, Any]])
async def list_rounds(
    search: str = Query(""), page: int = Query(1, ge=1), db: DatabaseManager = Depends(get_db)
):
    return await _listing(db, "rounds", search, page)


@router.delete("/comments/{comment_id}", response_model=AdminDeleteResult)
async def delete_comment(comment_id: str, db: DatabaseManager = Depends(get_db)):
    try:
        return await db.admin.delete_comment(comment_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.delete("/rounds/{round_id}", response_model=AdminDeleteResult)
async def delete_round(round_id: str, db: DatabaseManager = Depends(get_db)):
    try:
        return await db.admin.delete_round(round_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


@router.post("/users/{user_id}/ban", response_model=AdminDeleteResult)
async def ban_user(user_id: str, db: DatabaseManager = Depends(get_db)):
    try:
        return await db.admin.ban_user(user_id)
    except NotFoundError as e:
        raise HTTPException(404, str(e))


# ================================================================
# Feed settings
# ================================================================

@router.get("/settings/feed", response_model=FeedSettings, response_model_by_alias=False)
async def get_feed_settings(cache: FeedSettingsCache = Depends(get_feed_settings_cache)):
    return await cache.refresh(force=True)


@router.put("/settings/feed", response_model=FeedSettings, response_model_by_alias=False)
async def update_feed_settings(
    raw: Dict[str, Any] = Body(...),
    admin_id: Optional[str] = Depends(get_viewer_id),
    db: DatabaseManager = Depends(get_db),
    cache: FeedSettingsCache = Depends(get_feed_settings_cache),
):
    """Normalize and store the feed settings; takes effect for the next feed request."""
    return await save_feed_settings(db, cache, raw, updated_by=admin_id)
