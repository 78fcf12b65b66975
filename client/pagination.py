"""Cancellation tokens and a paged list loader with an in-flight guard."""

import logging
from typing import Awaitable, Callable, Generic, Hashable, List, Optional, Protocol, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class CancelToken:
    """Set once when the owning view goes away; checked after every await."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class PageSink(Protocol[T]):
    def replace(self, items: List[T]) -> None:
        ...

    def append(self, items: List[T]) -> int:
        ...


class ListSink(Generic[T]):
    """Plain ordered list that drops items whose key is already present."""

    def __init__(self, key: Callable[[T], Hashable] = lambda item: item.id):
        self._key = key
        self.items: List[T] = []

    def replace(self, items: List[T]) -> None:
        self.items = list(items)

    def append(self, items: List[T]) -> int:
        seen = {self._key(item) for item in self.items}
        fresh = []
        for item in items:
            k = self._key(item)
            if k not in seen:
                seen.add(k)
                fresh.append(item)
        self.items = self.items + fresh
        return len(fresh)


class PagedLoader(Generic[T]):
    """Offset pagination for one list view.

    Only one load runs at a time; a call made while one is in flight returns
    False without fetching, so pages are requested strictly in offset order.
    A failed load keeps the items already shown and records the error. Once
    the token is cancelled, late responses are dropped.
    """

    def __init__(
        self,
        fetch_page: Callable[[int, int], Awaitable[List[T]]],
        page_size: int = DEFAULT_PAGE_SIZE,
        sink: Optional[PageSink] = None,
        token: Optional[CancelToken] = None,
    ):
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.sink = sink if sink is not None else ListSink()
        self.token = token or CancelToken()
        self.offset = 0
        self.has_more = True
        self.loading = False
        self.last_error: Optional[Exception] = None

    async def refresh(self) -> bool:
        """Reload from the first page, replacing the current items."""
        return await self._load(offset=0, append=False)

    async def load_more(self) -> bool:
        """Fetch and append the next page, if there is one."""
        if not self.has_more:
            return False
        return await self._load(offset=self.offset, append=True)

    async def _load(self, *, offset: int, append: bool) -> bool:
        if self.loading or self.token.cancelled:
            return False
        self.loading = True
        try:
            page = await self._fetch_page(offset, self.page_size)
        except Exception as e:
            if not self.token.cancelled:
                logger.warning("Loading page at offset %d failed: %s", offset, e)
                self.last_error = e
            return False
        finally:
            self.loading = False

        if self.token.cancelled:
            return False
        self.last_error = None
        self.has_more = len(page) >= self.page_size
        if append:
            self.sink.append(page)
            # duplicates still count toward the server-side offset
            self.offset += len(page)
        else:
            self.sink.replace(page)
            self.offset = len(page)
        return True
