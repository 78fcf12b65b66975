"""Feed pages from the server-side ranking function."""

import logging
from typing import List, Optional

import asyncpg

from models import FeedEntry, FeedMode
from database.connection import acquire_as
from database.converters import decode_json, feed_entry_from_row

logger = logging.getLogger(__name__)


class FeedRepositoryDB:
    """Thin wrapper over get_feed_with_discovery; ranking itself lives in the database."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_feed_with_discovery(
        self,
        viewer_id: Optional[str],
        *,
        limit: int = 10,
        offset: int = 0,
        mode: FeedMode = FeedMode.FOLLOWING,
        discovery_ratio: float = 0.0,
    ) -> List[FeedEntry]:
        """One ranked page of rounds, each tagged with its source and reason."""
        async with acquire_as(self._pool, viewer_id) as conn:
            payload = await conn.fetchval(
                "SELECT get_feed_with_discovery($1, $2, $3, $4)",
                limit, offset, FeedMode(mode).value, float(discovery_ratio),
            )
        payload = decode_json(payload) or {}
        rows = payload.get("rounds") if isinstance(payload, dict) else payload
        entries = [feed_entry_from_row(r) for r in rows or []]
        logger.debug(
            "Feed page offset=%d limit=%d mode=%s returned %d rounds",
            offset, limit, FeedMode(mode).value, len(entries),
        )
        return entries
