"""Reactions: toggle semantics plus batch reads for feed pages."""

from typing import Dict, List, Sequence

import asyncpg

from models import Reaction, ReactionToggle, ReactionType
from models.social import zero_reaction_counts
from database.converters import parse_uuid, parse_uuids, reaction_from_row
from database.exceptions import NotFoundError


class ReactionRepositoryDB:
    """At most one row per (user, round, reaction type); toggling deletes it."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    # ================================================================
    # Read
    # ================================================================

    async def get_reactions(self, round_ids: Sequence[str]) -> List[Reaction]:
        """All reactions on the given rounds."""
        ids = parse_uuids(round_ids)
        if not ids:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT user_id, round_id, reaction_type FROM reactions
                   WHERE round_id = ANY($1::uuid[])""",
                ids,
            )
        return [r for r in (reaction_from_row(row) for row in rows) if r is not None]

    async def get_user_reactions(
        self, user_id: str, round_ids: Sequence[str]
    ) -> List[Reaction]:
        """The viewer's own reactions on the given rounds."""
        uid, ids = parse_uuid(user_id), parse_uuids(round_ids)
        if uid is None or not ids:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT user_id, round_id, reaction_type FROM reactions
                   WHERE user_id = $1 AND round_id = ANY($2::uuid[])""",
                uid, ids,
            )
        return [r for r in (reaction_from_row(row) for row in rows) if r is not None]

    async def get_reaction_counts(self, round_id: str) -> Dict[ReactionType, int]:
        """Per-type counts for one round, all eight types present."""
        counts = zero_reaction_counts()
        rid = parse_uuid(round_id)
        if rid is None:
            return counts
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                """SELECT reaction_type, COUNT(*) AS n FROM reactions
                   WHERE round_id = $1 GROUP BY reaction_type""",
                rid,
            )
        for row in rows:
            reaction = ReactionType.parse(row["reaction_type"])
            if reaction is not None:
                counts[reaction] = row["n"]
        return counts

    # ================================================================
    # Toggle
    # ================================================================

    async def toggle_reaction(
        self, user_id: str, round_id: str, reaction_type: ReactionType
    ) -> ReactionToggle:
        """Remove the reaction if present, otherwise add it."""
        reaction_type = ReactionType(reaction_type)
        uid, rid = parse_uuid(user_id), parse_uuid(round_id)
        if rid is None:
            raise NotFoundError(f"Round {round_id} not found")
        if uid is None:
            raise NotFoundError(f"User {user_id} not found")
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                result = await conn.execute(
                    """DELETE FROM reactions
                       WHERE user_id = $1 AND round_id = $2 AND reaction_type = $3""",
                    uid, rid, reaction_type.value,
                )
                removed = result != "DELETE 0"
                if not removed:
                    try:
                        await conn.execute(
                            """INSERT INTO reactions (user_id, round_id, reaction_type)
                               VALUES ($1, $2, $3)
                               ON CONFLICT (user_id, round_id, reaction_type) DO NOTHING""",
                            uid, rid, reaction_type.value,
                        )
                    except asyncpg.ForeignKeyViolationError as e:
                        raise NotFoundError(f"Round {round_id} not found") from e
        return ReactionToggle(round_id=round_id, reaction_type=reaction_type, removed=removed)
