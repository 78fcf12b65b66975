"""FastAPI application for the dogleg golf social feed."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from config import AppConfig, configure_logging, load_config
from database.connection import DatabasePool
from database.db_manager import DatabaseManager
from feed.settings_cache import FEED_SETTINGS_KEY, FeedSettingsCache
from media.storage import SupabaseStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the DB pool and storage client on startup, close them on shutdown."""
    config: AppConfig = app.state.config
    pool = DatabasePool()
    await pool.initialize(config.database_url, min_size=config.db_min_size, max_size=config.db_max_size)
    db = DatabaseManager(pool.pool)
    app.state.pool = pool
    app.state.db_manager = db
    app.state.feed_settings = FeedSettingsCache(
        loader=lambda: db.settings.get_setting(FEED_SETTINGS_KEY)
    )
    await app.state.feed_settings.refresh()

    http_client: Optional[httpx.AsyncClient] = None
    if config.storage_enabled:
        http_client = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        storage_args = dict(base_url=config.supabase_url, service_key=config.supabase_service_key)
        app.state.round_photos = SupabaseStorage(http_client, bucket=config.round_photos_bucket, **storage_args)
        app.state.avatars = SupabaseStorage(http_client, bucket=config.avatars_bucket, **storage_args)
    else:
        logger.warning("SUPABASE_URL/SUPABASE_SERVICE_KEY not set; photo uploads are disabled")
    try:
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()
        await pool.close()


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or load_config()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Dogleg API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.round_photos = None
    app.state.avatars = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from api.routers import admin, analytics, comments, courses, feed, follows, notifications, rounds, users
    app.include_router(feed.router, prefix="/api/feed", tags=["feed"])
    app.include_router(rounds.router, prefix="/api/rounds", tags=["rounds"])
    app.include_router(comments.router, prefix="/api/comments", tags=["comments"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(follows.router, prefix="/api/follows", tags=["follows"])
    app.include_router(courses.router, prefix="/api/courses", tags=["courses"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["notifications"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])

    @app.get("/api/health")
    async def health(request: Request):
        pool: Optional[DatabasePool] = getattr(request.app.state, "pool", None)
        healthy = await pool.health_check() if pool else False
        return {
            "status": "ok" if healthy else "degraded",
            "database": healthy,
            "storage": request.app.state.round_photos is not None,
        }

    return app


app = create_app()
