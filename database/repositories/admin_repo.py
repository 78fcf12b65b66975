"""Admin dashboard and moderation calls.

Everything here is a wrapper over server-side functions whose logic is owned
by the database; this module only shapes their results.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

import asyncpg

from models import AdminDeleteResult, AdminPage, DashboardOverview, MetricRow
from database.converters import decode_json, parse_uuid
from database.exceptions import NotFoundError

logger = logging.getLogger(__name__)

ADMIN_PAGE_SIZE = 50

_LISTING_FUNCTIONS = {
    "users": "get_all_users_admin",
    "comments": "get_all_comments_admin",
    "rounds": "get_all_rounds_admin",
}


def _plain(row) -> Dict[str, Any]:
    data = dict(row.items()) if not isinstance(row, dict) else dict(row)
    return {k: (str(v) if isinstance(v, UUID) else v) for k, v in data.items()}


def _delete_result(payload: Any) -> AdminDeleteResult:
    payload = decode_json(payload)
    if isinstance(payload, dict):
        return AdminDeleteResult(**payload)
    return AdminDeleteResult(success=bool(payload))


class AdminRepositoryDB:
    """Read-mostly access for the admin dashboard."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Dashboard metrics
    # ================================================================

    async def get_dashboard_overview(self) -> DashboardOverview:
        async with self._pool.acquire() as conn:
            payload = await conn.fetchval("SELECT get_dashboard_overview()")
        return DashboardOverview(**(decode_json(payload) or {}))

    async def _metric_rows(self, sql: str, *args) -> List[MetricRow]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(sql, *args)
        return [MetricRow(**_plain(r)) for r in rows]

    async def get_activity_metrics(self, start: date, end: date) -> List[MetricRow]:
        return await self._metric_rows(
            "SELECT * FROM get_activity_metrics($1, $2)", start, end
        )

    async def get_user_growth_metrics(self, days: int) -> List[MetricRow]:
        return await self._metric_rows("SELECT * FROM get_user_growth_metrics($1)", days)

    async def get_engagement_metrics(self, days: int) -> List[MetricRow]:
        return await self._metric_rows("SELECT * FROM get_engagement_metrics($1)", days)

    async def get_top_rounds(self, days: int, limit: int = 10) -> List[Dict[str, Any]]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch("SELECT * FROM get_top_rounds($1, $2)", days, limit)
        return [_plain(r) for r in rows]

    async def get_reaction_breakdown(self, days: Optional[int] = None) -> List[Dict[str, Any]]:
        """Per-reaction-type totals from get_emoji_breakdown (all time when days is None)."""
        async with self._pool.acquire() as conn:
            if days:
                rows = await conn.fetch("SELECT * FROM get_emoji_breakdown($1)", days)
            else:
                rows = await conn.fetch("SELECT * FROM get_emoji_breakdown()")
        return [_plain(r) for r in rows]

    # ================================================================
    # Moderation listings
    # ================================================================

    async def list_items(
        self,
        kind: str,
        *,
        search: str = "",
        limit: int = ADMIN_PAGE_SIZE,
        offset: int = 0,
    ) -> AdminPage[Dict[str, Any]]:
        """One page of users, comments or rounds; each row carries the unpaged total_count."""
        function = _LISTING_FUNCTIONS.get(kind)
        if function is None:
            raise ValueError(f"Unknown listing: {kind}")
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT * FROM {function}($1, $2, $3)", search or "", limit, offset
            )
        items = [_plain(r) for r in rows]
        total = items[0].pop("total_count", len(items)) if items else 0
        for item in items[1:]:
            item.pop("total_count", None)
        return AdminPage[Dict[str, Any]](
            rows=items, total_count=int(total or 0), limit=limit, offset=offset
        )

    # ================================================================
    # Moderation actions
    # ================================================================

    async def delete_comment(self, comment_id: str) -> AdminDeleteResult:
        cid = parse_uuid(comment_id)
        if cid is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        async with self._pool.acquire() as conn:
            payload = await conn.fetchval("SELECT delete_comment_admin($1)", cid)
        result = _delete_result(payload)
        if not result.success:
            raise NotFoundError(result.message or f"Comment {comment_id} not found")
        logger.info("Admin deleted comment %s", comment_id)
        return result

    async def delete_round(self, round_id: str) -> AdminDeleteResult:
        rid = parse_uuid(round_id)
        if rid is None:
            raise NotFoundError(f"Round {round_id} not found")
        async with self._pool.acquire() as conn:
            payload = await conn.fetchval("SELECT delete_round_admin($1)", rid)
        result = _delete_result(payload)
        if not result.success:
            raise NotFoundError(result.message or f"Round {round_id} not found")
        logger.info(
            "Admin deleted round %s (%d comments, %d reactions)",
            round_id, result.deleted_comments, result.deleted_reactions,
        )
        return result

    async def ban_user(self, user_id: str) -> AdminDeleteResult:
        uid = parse_uuid(user_id)
        if uid is None:
            raise NotFoundError(f"User {user_id} not found")
        async with self._pool.acquire() as conn:
            payload = await conn.fetchval("SELECT ban_user_admin($1)", uid)
        result = _delete_result(payload)
        if not result.success:
            raise NotFoundError(result.message or f"User {user_id} not found")
        logger.warning("Admin banned user %s", user_id)
        return result

    # ================================================================
    # Raw rows for client-side aggregates
    # ================================================================

    async def get_user_segment_rows(self) -> List[Dict[str, Any]]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch("SELECT user_segment FROM analytics_user_metrics")
        return [_plain(r) for r in rows]

    async def get_power_users(self, limit: int = 10) -> List[Dict[str, Any]]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT m.user_id, m.engagement_score, m.user_segment, p.username
                   FROM analytics_user_metrics m
                   LEFT JOIN profiles p ON p.id = m.user_id
                   ORDER BY m.engagement_score DESC NULLS LAST LIMIT $1""",
                limit,
            )
        return [_plain(r) for r in rows]

    async def get_course_score_rows(self, days: int = 30) -> List[Dict[str, Any]]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT course_id, course_name, club_name, total_score FROM rounds
                   WHERE course_id IS NOT NULL
                     AND played_at >= NOW() - make_interval(days => $1)""",
                days,
            )
        return [_plain(r) for r in rows]

    async def get_event_rows(self, days: int = 7) -> List[Dict[str, Any]]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT event_type, created_at FROM analytics_events
                   WHERE created_at >= NOW() - make_interval(days => $1)""",
                days,
            )
        return [_plain(r) for r in rows]
