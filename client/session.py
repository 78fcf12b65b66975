"""A feed view's session: loading, optimistic mutations and destructive actions."""

import logging
from typing import Awaitable, Callable, Optional, Union

import httpx

from models import ProfileSummary, ReactionType
from client.api_client import ApiError, DoglegClient
from client.mutations import MutationState, OptimisticMutator
from client.pagination import DEFAULT_PAGE_SIZE, CancelToken, PagedLoader
from client.store import FeedStore

logger = logging.getLogger(__name__)

Confirm = Callable[[str], Union[bool, Awaitable[bool]]]


async def _confirmed(confirm: Optional[Confirm], prompt: str) -> bool:
    if confirm is None:
        return False
    answer = confirm(prompt)
    if hasattr(answer, "__await__"):
        answer = await answer
    return bool(answer)


class FeedSession:
    """Everything one open feed (or profile rounds list) needs.

    `close()` cancels the session: requests still in flight finish but their
    results are dropped. Destructive actions require `confirm` to return True
    before any request is sent; without a confirm callback they do nothing.
    """

    def __init__(
        self,
        api: DoglegClient,
        viewer_id: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        *,
        user_id: Optional[str] = None,
        viewer: Optional[ProfileSummary] = None,
    ):
        self.api = api
        self.viewer_id = viewer_id
        self.viewer = viewer
        self.token = CancelToken()
        self.store = FeedStore()
        if user_id is None:
            fetch = lambda offset, limit: api.get_feed(offset=offset, limit=limit)
        else:
            fetch = lambda offset, limit: api.get_user_rounds(user_id, offset=offset, limit=limit)
        self.loader = PagedLoader(fetch, page_size, sink=self.store, token=self.token)
        self.mutator = OptimisticMutator(self.store, api, token=self.token)

    @property
    def rounds(self):
        return self.store.items

    @property
    def has_more(self) -> bool:
        return self.loader.has_more

    @property
    def loading(self) -> bool:
        return self.loader.loading

    async def refresh(self) -> bool:
        return await self.loader.refresh()

    async def load_more(self) -> bool:
        return await self.loader.load_more()

    async def toggle_reaction(self, round_id: str, reaction: ReactionType) -> MutationState:
        return await self.mutator.toggle_reaction(round_id, reaction)

    async def add_comment(self, round_id: str, text: str) -> MutationState:
        if not self.viewer_id:
            raise ValueError("Sign in to comment")
        return await self.mutator.add_comment(round_id, self.viewer_id, text, author=self.viewer)

    async def delete_round(self, round_id: str, confirm: Optional[Confirm]) -> bool:
        if not await _confirmed(confirm, "Delete this round? This cannot be undone."):
            return False
        try:
            await self.api.delete_round(round_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Deleting round %s failed: %s", round_id, e)
            return False
        if not self.token.cancelled:
            self.store.remove(round_id)
        return True

    async def delete_comment(self, round_id: str, comment_id: str, confirm: Optional[Confirm]) -> bool:
        if not await _confirmed(confirm, "Delete this comment?"):
            return False
        try:
            await self.api.delete_comment(comment_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Deleting comment %s failed: %s", comment_id, e)
            return False
        async with self.mutator.queue.hold(round_id):
            view = self.store.get(round_id)
            if view is not None and not self.token.cancelled:
                self.store.put(view.model_copy(update={
                    "comments": [c for c in view.comments if c.id != comment_id]
                }))
        return True

    async def follow(self, user_id: str) -> bool:
        return await self._set_following(user_id, True)

    async def unfollow(self, user_id: str) -> bool:
        return await self._set_following(user_id, False)

    async def _set_following(self, user_id: str, flag: bool) -> bool:
        try:
            if flag:
                await self.api.follow(user_id)
            else:
                await self.api.unfollow(user_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("%s %s failed: %s", "Follow" if flag else "Unfollow", user_id, e)
            return False
        # one round at a time, behind any reaction or comment still in flight on it
        for round_id in [v.id for v in self.store if v.user_id == user_id]:
            async with self.mutator.queue.hold(round_id):
                view = self.store.get(round_id)
                if view is not None and not self.token.cancelled and view.is_following != flag:
                    self.store.put(view.model_copy(update={"is_following": flag}))
        return True

    def close(self) -> None:
        self.token.cancel()
