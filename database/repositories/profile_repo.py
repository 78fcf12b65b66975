"""Profiles: lookup, lazy creation on first sign-in, edits, and user search."""

import logging
from typing import List, Optional

import asyncpg

from models import Profile, ProfileSummary, ProfileWithStats
from database.converters import parse_uuid, profile_from_row, summary_from_profile_row
from database.exceptions import DuplicateError, NotFoundError

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProfileRepositoryDB:
    """Async CRUD for profiles."""

    UPDATABLE_FIELDS = {"username", "full_name", "bio", "location", "handicap", "avatar_url", "avatar_path"}

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        uid = parse_uuid(user_id)
        if uid is None:
            return None
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM profiles WHERE id = $1", uid
            )
            return profile_from_row(row) if row else None

    async def get_profile_by_username(self, username: str) -> Optional[Profile]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM profiles WHERE LOWER(username) = LOWER($1)", username
            )
            return profile_from_row(row) if row else None

    async def get_profile_with_stats(
        self, username: str, viewer_id: Optional[str] = None
    ) -> Optional[ProfileWithStats]:
        """Profile page: counts of followers, following and rounds, and whether the viewer follows."""
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                """SELECT p.*,
                          (SELECT COUNT(*) FROM follows WHERE following_id = p.id) AS followers_count,
                          (SELECT COUNT(*) FROM follows WHERE follower_id = p.id) AS following_count,
                          (SELECT COUNT(*) FROM rounds WHERE user_id = p.id) AS rounds_count,
                          EXISTS (
                              SELECT 1 FROM follows
                              WHERE follower_id = $2 AND following_id = p.id
                          ) AS is_following
                   FROM profiles p
                   WHERE LOWER(p.username) = LOWER($1)""",
                username, parse_uuid(viewer_id),
            )
        if not row:
            return None
        base = profile_from_row(row)
        return ProfileWithStats(
            **base.model_dump(),
            followers_count=row["followers_count"],
            following_count=row["following_count"],
            rounds_count=row["rounds_count"],
            is_following=bool(row["is_following"]),
        )

    async def search_users(self, term: str, *, limit: int = 20) -> List[ProfileSummary]:
        """Username or full-name substring search; terms under two characters return nothing."""
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT id, username, full_name, avatar_url FROM profiles
                   WHERE username ILIKE $1 OR full_name ILIKE $1
                   ORDER BY username LIMIT $2""",
                _like_pattern(term), limit,
            )
        return [summary_from_profile_row(r) for r in rows]

    async def get_suggested_users(self, user_id: str, *, limit: int = 10) -> List[ProfileSummary]:
        """Newest profiles the user does not already follow, excluding themselves."""
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT p.id, p.username, p.full_name, p.avatar_url FROM profiles p
                   WHERE p.id <> $1
                     AND NOT EXISTS (
                         SELECT 1 FROM follows f
                         WHERE f.follower_id = $1 AND f.following_id = p.id
                     )
                   ORDER BY p.created_at DESC LIMIT $2""",
                uid, limit,
            )
        return [summary_from_profile_row(r) for r in rows]

    # ================================================================
    # Create
    # ================================================================

    async def ensure_profile(
        self,
        user_id: str,
        *,
        username: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> Profile:
        """Return the user's profile, creating it on first sign-in."""
        existing = await self.get_profile(user_id)
        if existing:
            return existing
        uid = parse_uuid(user_id)
        if uid is None:
            raise NotFoundError(f"User {user_id} not found")
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO profiles (id, username, full_name, avatar_url)
                       VALUES ($1, $2, $3, $4)
                       ON CONFLICT (id) DO UPDATE SET id = EXCLUDED.id
                       RETURNING *""",
                    uid, username, full_name, avatar_url,
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Username already taken: {username}") from e
        logger.info("Created profile for user %s", user_id)
        return profile_from_row(row)

    # ================================================================
    # Update
    # ================================================================

    async def update_profile(self, user_id: str, **fields) -> Profile:
        """Update profile fields (username, full_name, bio, location, handicap, avatar)."""
        updates = {k: v for k, v in fields.items() if k in self.UPDATABLE_FIELDS}
        if not updates:
            profile = await self.get_profile(user_id)
            if profile is None:
                raise NotFoundError(f"Profile {user_id} not found")
            return profile

        uid = parse_uuid(user_id)
        if uid is None:
            raise NotFoundError(f"Profile {user_id} not found")
        set_clause = ", ".join(f"{k} = ${i+2}" for i, k in enumerate(updates))
        values = [uid] + list(updates.values())
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"UPDATE profiles SET {set_clause} WHERE id = $1 RETURNING *",
                    *values,
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateError(f"Username already taken: {updates.get('username')}") from e
        if not row:
            raise NotFoundError(f"Profile {user_id} not found")
        return profile_from_row(row)
