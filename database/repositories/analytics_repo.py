"""Usage event tracking."""

import json
import logging
from typing import Any, Dict, Optional

import asyncpg

from database.converters import parse_uuid

logger = logging.getLogger(__name__)


class AnalyticsRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def track_event(
        self,
        event_type: str,
        *,
        user_id: Optional[str] = None,
        event_data: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                """INSERT INTO analytics_events (user_id, event_type, event_data, session_id)
                   VALUES ($1, $2, $3::jsonb, $4)""",
                parse_uuid(user_id),
                event_type,
                json.dumps(event_data or {}),
                session_id,
            )
        logger.debug("Tracked %s for user %s", event_type, user_id)
