"""Activity notifications for a user."""

from typing import List

import asyncpg

from models import Notification
from database.connection import acquire_as
from database.converters import notification_from_row, parse_uuid

NOTIFICATION_WINDOW_DAYS = 30


class NotificationRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_notifications(self, user_id: str, *, limit: int = 50) -> List[Notification]:
        """Last 30 days of notifications, newest first, flagged new since the last check."""
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        async with self._pool.acquire() as conn:
            last_checked = await conn.fetchval(
                "SELECT last_notifications_check FROM profiles WHERE id = $1",
                uid,
            )
            rows = await conn.fetch(
                """SELECT n.id, n.user_id, n.type, n.round_id, n.created_at,
                          n.actor_id,
                          a.username AS actor_username,
                          a.full_name AS actor_full_name,
                          a.avatar_url AS actor_avatar_url,
                          r.short_code AS round_short_code,
                          r.course_name AS round_course_name,
                          r.total_score AS round_total_score
                   FROM notifications n
                   LEFT JOIN profiles a ON a.id = n.actor_id
                   LEFT JOIN rounds r ON r.id = n.round_id
                   WHERE n.user_id = $1
                     AND n.created_at >= NOW() - make_interval(days => $2)
                   ORDER BY n.created_at DESC
                   LIMIT $3""",
                uid, NOTIFICATION_WINDOW_DAYS, limit,
            )
        return [notification_from_row(r, last_checked) for r in rows]

    async def has_new_notifications(self, user_id: str) -> bool:
        """True when anything arrived after the user last opened notifications."""
        uid = parse_uuid(user_id)
        if uid is None:
            return False
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                """SELECT EXISTS (
                       SELECT 1 FROM notifications n JOIN profiles p ON p.id = n.user_id
                       WHERE n.user_id = $1
                         AND (p.last_notifications_check IS NULL
                              OR n.created_at > p.last_notifications_check)
                   )""",
                uid,
            )

    async def mark_checked(self, user_id: str) -> None:
        async with acquire_as(self._pool, user_id) as conn:
            await conn.execute("SELECT mark_notifications_checked()")
