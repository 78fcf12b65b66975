"""Comments on rounds. Anyone signed in may comment; only the author may delete."""

import logging
from typing import List, Sequence

import asyncpg

from models import Comment
from database.converters import comment_from_row, parse_uuid, parse_uuids
from database.exceptions import NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

_COMMENT_WITH_AUTHOR = """
    SELECT c.id, c.round_id, c.user_id, c.content, c.created_at,
           p.username AS author_username,
           p.full_name AS author_full_name,
           p.avatar_url AS author_avatar_url
    FROM comments c
    LEFT JOIN profiles p ON p.id = c.user_id
"""


class CommentRepositoryDB:

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get_comments(self, round_ids: Sequence[str]) -> List[Comment]:
        """Comments on the given rounds, oldest first, with author fields."""
        ids = parse_uuids(round_ids)
        if not ids:
            return []
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                _COMMENT_WITH_AUTHOR
                + " WHERE c.round_id = ANY($1::uuid[]) ORDER BY c.created_at ASC",
                ids,
            )
        return [comment_from_row(r) for r in rows]

    async def add_comment(self, comment: Comment) -> Comment:
        """Insert a comment and return it with id, timestamp and author fields."""
        rid, uid = parse_uuid(comment.round_id), parse_uuid(comment.user_id)
        if rid is None or uid is None:
            raise NotFoundError(f"Round {comment.round_id} not found")
        try:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(
                    """WITH inserted AS (
                           INSERT INTO comments (round_id, user_id, content)
                           VALUES ($1, $2, $3)
                           RETURNING id, round_id, user_id, content, created_at
                       )
                       SELECT i.*, p.username AS author_username,
                              p.full_name AS author_full_name,
                              p.avatar_url AS author_avatar_url
                       FROM inserted i LEFT JOIN profiles p ON p.id = i.user_id""",
                    rid, uid, comment.content,
                )
        except asyncpg.ForeignKeyViolationError as e:
            raise NotFoundError(f"Round {comment.round_id} not found") from e
        return comment_from_row(row)

    async def delete_comment(self, comment_id: str, user_id: str) -> None:
        """Delete a comment written by `user_id`."""
        cid = parse_uuid(comment_id)
        if cid is None:
            raise NotFoundError(f"Comment {comment_id} not found")
        async with self._pool.acquire() as conn:
            author = await conn.fetchval(
                "SELECT user_id FROM comments WHERE id = $1", cid
            )
            if author is None:
                raise NotFoundError(f"Comment {comment_id} not found")
            if str(author) != str(user_id):
                raise PermissionDeniedError("Only the comment's author can delete it")
            await conn.execute(
                "DELETE FROM comments WHERE id = $1 AND user_id = $2",
                cid, parse_uuid(user_id),
            )
        logger.info("Comment %s deleted by author", comment_id)
