"""Assemble pages of RoundViews from the repositories."""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

import asyncpg

from models import FeedEntry, FeedSettings, RoundView
from database.db_manager import DatabaseManager
from database.exceptions import DatabaseError
from feed.normalizer import build_round_views

logger = logging.getLogger(__name__)


async def _follow_statuses(
    db: DatabaseManager, viewer_id: Optional[str], entries: Sequence[FeedEntry]
) -> Dict[str, bool]:
    """Follow state for each distinct author other than the viewer.

    A failed lookup is logged and every author reads as not followed.
    """
    if not viewer_id:
        return {}
    author_ids = sorted({
        e.round.user_id for e in entries
        if e.round.user_id and e.round.user_id != viewer_id
    })
    if not author_ids:
        return {}
    try:
        return await db.follows.get_follow_statuses(viewer_id, author_ids)
    except (DatabaseError, asyncpg.PostgresError, OSError) as e:
        logger.warning("Follow status lookup failed, treating as not following: %s", e)
        return {}


async def hydrate_entries(
    db: DatabaseManager, entries: List[FeedEntry], viewer_id: Optional[str]
) -> List[RoundView]:
    """Fetch reactions, comments and the viewer's reactions concurrently, then normalize."""
    if not entries:
        return []
    round_ids = [e.round.id for e in entries if e.round.id]

    async def no_reactions():
        return []

    reactions, comments, mine = await asyncio.gather(
        db.reactions.get_reactions(round_ids),
        db.comments.get_comments(round_ids),
        db.reactions.get_user_reactions(viewer_id, round_ids) if viewer_id else no_reactions(),
    )
    statuses = await _follow_statuses(db, viewer_id, entries)
    return build_round_views(entries, reactions, comments, mine, statuses)


async def load_feed_page(
    db: DatabaseManager,
    viewer_id: Optional[str],
    settings: FeedSettings,
    *,
    offset: int = 0,
    limit: Optional[int] = None,
) -> List[RoundView]:
    """One page of the ranked feed for `viewer_id`."""
    entries = await db.feed.get_feed_with_discovery(
        viewer_id,
        limit=limit or settings.feed_limit,
        offset=offset,
        mode=settings.mode,
        discovery_ratio=settings.discovery_ratio,
    )
    return await hydrate_entries(db, entries, viewer_id)


async def load_user_rounds_page(
    db: DatabaseManager,
    user_id: str,
    viewer_id: Optional[str] = None,
    *,
    limit: int = 10,
    offset: int = 0,
) -> List[RoundView]:
    """One page of a player's own rounds, as seen by `viewer_id`."""
    entries = await db.rounds.get_rounds_for_user(user_id, limit=limit, offset=offset)
    return await hydrate_entries(db, entries, viewer_id)


async def load_round(
    db: DatabaseManager, round_id: str, viewer_id: Optional[str] = None
) -> Optional[RoundView]:
    """A single round page, or None if the round does not exist."""
    entry = await db.rounds.get_round(round_id)
    if entry is None:
        return None
    views = await hydrate_entries(db, [entry], viewer_id)
    return views[0]
