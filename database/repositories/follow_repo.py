"""Directed follow edges between profiles."""

from typing import Dict, List, Sequence

import asyncpg

from models import Follow, FollowCounts, ProfileSummary
from database.converters import parse_uuid, summary_from_profile_row
from database.exceptions import NotFoundError


class FollowRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def is_following(self, follower_id: str, following_id: str) -> bool:
        follower, following = parse_uuid(follower_id), parse_uuid(following_id)
        if follower is None or following is None:
            return False
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                """SELECT EXISTS (
                       SELECT 1 FROM follows WHERE follower_id = $1 AND following_id = $2
                   )""",
                follower, following,
            )

    async def get_follow_statuses(
        self, follower_id: str, user_ids: Sequence[str]
    ) -> Dict[str, bool]:
        """Batch lookup: {user_id: True/False} for every id asked about."""
        statuses = {str(u): False for u in user_ids}
        follower = parse_uuid(follower_id)
        ids = [u for u in (parse_uuid(s) for s in statuses) if u is not None]
        if follower is None or not ids:
            return statuses
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT following_id FROM follows
                   WHERE follower_id = $1 AND following_id = ANY($2::uuid[])""",
                follower, ids,
            )
        for row in rows:
            statuses[str(row["following_id"])] = True
        return statuses

    async def get_followers(self, user_id: str) -> List[ProfileSummary]:
        """Profiles following `user_id`."""
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT p.id, p.username, p.full_name, p.avatar_url
                   FROM follows f JOIN profiles p ON p.id = f.follower_id
                   WHERE f.following_id = $1
                   ORDER BY f.created_at DESC""",
                uid,
            )
        return [summary_from_profile_row(r) for r in rows]

    async def get_following(self, user_id: str) -> List[ProfileSummary]:
        """Profiles `user_id` follows."""
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT p.id, p.username, p.full_name, p.avatar_url
                   FROM follows f JOIN profiles p ON p.id = f.following_id
                   WHERE f.follower_id = $1
                   ORDER BY f.created_at DESC""",
                uid,
            )
        return [summary_from_profile_row(r) for r in rows]

    async def get_follow_counts(self, user_id: str) -> FollowCounts:
        uid = parse_uuid(user_id)
        if uid is None:
            return FollowCounts(followers=0, following=0)
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """SELECT
                       (SELECT COUNT(*) FROM follows WHERE following_id = $1) AS followers,
                       (SELECT COUNT(*) FROM follows WHERE follower_id = $1) AS following""",
                uid,
            )
        return FollowCounts(followers=row["followers"], following=row["following"])

    # ================================================================
    # Write
    # ================================================================

    async def follow(self, follower_id: str, following_id: str) -> Follow:
        """Create the edge. An existing edge is left as is."""
        edge = Follow(follower_id=follower_id, following_id=following_id)
        follower, following = parse_uuid(follower_id), parse_uuid(following_id)
        if follower is None or following is None:
            raise NotFoundError(f"User {following_id} not found")
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """INSERT INTO follows (follower_id, following_id)
                       VALUES ($1, $2)
                       ON CONFLICT (follower_id, following_id) DO NOTHING""",
                    follower, following,
                )
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"User {following_id} not found") from e
        return edge

    async def unfollow(self, follower_id: str, following_id: str) -> bool:
        """Remove the edge. Returns False when there was nothing to remove."""
        follower, following = parse_uuid(follower_id), parse_uuid(following_id)
        if follower is None or following is None:
            return False
        async with self._pool.acquire() as conn:
            result = await conn.execute(
                "DELETE FROM follows WHERE follower_id = $1 AND following_id = $2",
                follower, following,
            )
        return result != "DELETE 0"
