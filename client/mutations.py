"""Optimistic reactions and comments with rollback.

Every mutation goes Idle -> Applied -> Confirmed or RolledBack. The visible
round is updated before the request is sent; on failure the snapshot taken
just before applying is put back whole.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Dict, Hashable, Optional
from uuid import uuid4

import httpx

from models import CommentView, ProfileSummary, ReactionType, RoundView
from models.social import ANONYMOUS_AUTHOR, MAX_COMMENT_LENGTH
from client.api_client import ApiError
from client.pagination import CancelToken
from client.store import FeedStore

logger = logging.getLogger(__name__)

PENDING_PREFIX = "pending-"


class MutationState(str, Enum):
    IDLE = "idle"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


def apply_reaction_toggle(view: RoundView, reaction: ReactionType) -> RoundView:
    """Toggle `reaction` for the viewer: present -> removed, absent -> added."""
    reaction = ReactionType(reaction)
    counts = dict(view.reactions)
    if reaction in view.user_reacted:
        counts[reaction] = max(0, counts.get(reaction, 0) - 1)
        reacted = view.user_reacted - {reaction}
    else:
        counts[reaction] = counts.get(reaction, 0) + 1
        reacted = view.user_reacted | {reaction}
    return view.model_copy(update={"reactions": counts, "user_reacted": frozenset(reacted)})


def append_comment(view: RoundView, comment: CommentView) -> RoundView:
    return view.model_copy(update={"comments": [*view.comments, comment]})


def replace_comment(view: RoundView, pending_id: str, comment: CommentView) -> RoundView:
    comments = [comment if c.id == pending_id else c for c in view.comments]
    return view.model_copy(update={"comments": comments})


class KeyedMutationQueue:
    """One mutation in flight per key; later ones wait their turn in arrival order."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiting: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiting[key] = self._waiting.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiting[key] -= 1
            if not self._waiting[key]:
                del self._waiting[key]
                del self._locks[key]

    def busy(self, key: Hashable) -> bool:
        return key in self._locks


class OptimisticMutator:
    """Applies reactions and comments to a FeedStore ahead of the API call.

    Mutations are serialized per round, so a rollback snapshot can never
    contain another in-flight change to the same round.
    """

    def __init__(
        self,
        store: FeedStore,
        api,
        *,
        queue: Optional[KeyedMutationQueue] = None,
        token: Optional[CancelToken] = None,
    ):
        self.store = store
        self.api = api
        self.queue = queue or KeyedMutationQueue()
        self.token = token or CancelToken()

    async def toggle_reaction(self, round_id: str, reaction: ReactionType) -> MutationState:
        reaction = ReactionType(reaction)
        async with self.queue.hold(round_id):
            if self.token.cancelled:
                return MutationState.IDLE
            snapshot = self.store.snapshot_round(round_id)
            if snapshot is None:
                return MutationState.IDLE
            self.store.put(apply_reaction_toggle(snapshot, reaction))
            try:
                await self.api.toggle_reaction(round_id, reaction)
            except (ApiError, httpx.HTTPError) as e:
                logger.warning("Reaction %s on %s failed, rolling back: %s", reaction.value, round_id, e)
                if not self.token.cancelled:
                    self.store.restore_round(snapshot)
                return MutationState.ROLLED_BACK
            except asyncio.CancelledError:
                if not self.token.cancelled:
                    self.store.restore_round(snapshot)
                raise
            return MutationState.CONFIRMED

    async def add_comment(
        self,
        round_id: str,
        user_id: str,
        text: str,
        author: Optional[ProfileSummary] = None,
    ) -> MutationState:
        """Show the comment as pending, then swap in the server's copy.

        Blank or over-long text raises ValueError before anything changes.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Comment cannot be empty")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValueError(f"Comment must be {MAX_COMMENT_LENGTH} characters or fewer")

        async with self.queue.hold(round_id):
            if self.token.cancelled:
                return MutationState.IDLE
            snapshot = self.store.snapshot_round(round_id)
            if snapshot is None:
                return MutationState.IDLE
            pending = CommentView(
                id=f"{PENDING_PREFIX}{uuid4()}",
                round_id=round_id,
                user_id=user_id,
                text=text,
                author=(author.label() if author else None) or ANONYMOUS_AUTHOR,
                author_username=author.username if author else None,
                author_avatar=author.avatar_url if author else None,
                pending=True,
            )
            self.store.put(append_comment(snapshot, pending))
            try:
                saved = await self.api.add_comment(round_id, text)
            except (ApiError, httpx.HTTPError) as e:
                logger.warning("Comment on %s failed, rolling back: %s", round_id, e)
                if not self.token.cancelled:
                    self.store.restore_round(snapshot)
                return MutationState.ROLLED_BACK
            except asyncio.CancelledError:
                if not self.token.cancelled:
                    self.store.restore_round(snapshot)
                raise
            if self.token.cancelled:
                return MutationState.CONFIRMED
            current = self.store.get(round_id)
            if current is not None:
                self.store.put(replace_comment(current, pending.id, saved))
            return MutationState.CONFIRMED
