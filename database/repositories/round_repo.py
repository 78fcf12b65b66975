"""Rounds: creation, listing for a player, single-round lookup, owner-only delete."""

import logging
from typing import List, Optional
import asyncpg

from models import FeedEntry, Round
from database.converters import feed_entry_from_row, parse_uuid, round_from_row, round_to_row
from database.exceptions import IntegrityError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

# Round columns plus the author's display fields, for list and detail views.
_ROUND_WITH_AUTHOR = """
    SELECT r.*, p.username, p.full_name, p.avatar_url
    FROM rounds r
    LEFT JOIN profiles p ON p.id = r.user_id
"""


class RoundRepositoryDB:
    """Async CRUD for rounds."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get_round(self, round_id: str) -> Optional[FeedEntry]:
        """Get one round with its author."""
        rid = parse_uuid(round_id)
        if rid is None:
            return None
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                _ROUND_WITH_AUTHOR + " WHERE r.id = $1", rid
            )
            return feed_entry_from_row(row) if row else None

    async def get_rounds_for_user(
        self, user_id: str, *, limit: int = 10, offset: int = 0
    ) -> List[FeedEntry]:
        """Get a player's rounds, most recently played first."""
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                _ROUND_WITH_AUTHOR
                + """ WHERE r.user_id = $1
                      ORDER BY r.played_at DESC NULLS LAST, r.created_at DESC
                      LIMIT $2 OFFSET $3""",
                uid, limit, offset,
            )
            return [feed_entry_from_row(r) for r in rows]

    async def count_rounds(self, user_id: str) -> int:
        uid = parse_uuid(user_id)
        if uid is None:
            return 0
        async with self._pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT COUNT(*) FROM rounds WHERE user_id = $1", uid
            )

    # ================================================================
    # Create
    # ================================================================

    async def create_round(self, round_: Round) -> Round:
        """Insert a round. Returns it with the DB-generated id and created_at."""
        data = round_to_row(round_)
        owner_id = parse_uuid(data["user_id"])
        if owner_id is None:
            raise IntegrityError(f"Round references a missing user: {data['user_id']}")
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """INSERT INTO rounds
                       (user_id, course_id, course_name, club_name, city, state,
                        tee_id, tee_data, played_at, front9, back9, total_score,
                        scores_by_hole, par, course_pars, caption, photo_url)
                       VALUES ($1, $2, $3, $4, $5, $6, $7, $8::jsonb, $9, $10, $11, $12,
                               $13::jsonb, $14, $15, $16, $17)
                       RETURNING *""",
                    owner_id,
                    data["course_id"],
                    data["course_name"], data["club_name"],
                    data["city"], data["state"],
                    data["tee_id"], data["tee_data"],
                    data["played_at"],
                    data["front9"], data["back9"], data["total_score"],
                    data["scores_by_hole"],
                    data["par"], data["course_pars"],
                    data["caption"], data["photo_url"],
                )
        except asyncpg.ForeignKeyViolationError as e:
            raise IntegrityError(f"Round references a missing user or course: {e}") from e
        saved = round_from_row(row)
        logger.info("Round %s created for user %s", saved.id, saved.user_id)
        return saved

    # ================================================================
    # Delete
    # ================================================================

    async def delete_round(self, round_id: str, user_id: str) -> None:
        """Delete a round owned by `user_id`. Reactions and comments cascade."""
        rid = parse_uuid(round_id)
        if rid is None:
            raise NotFoundError(f"Round {round_id} not found")
        async with self._pool.acquire() as conn:
            owner = await conn.fetchval(
                "SELECT user_id FROM rounds WHERE id = $1", rid
            )
            if owner is None:
                raise NotFoundError(f"Round {round_id} not found")
            if str(owner) != str(user_id):
                raise PermissionDeniedError("Only the round's owner can delete it")
            await conn.execute(
                "DELETE FROM rounds WHERE id = $1 AND user_id = $2",
                rid, parse_uuid(user_id),
            )
        logger.info("Round %s deleted by owner", round_id)
