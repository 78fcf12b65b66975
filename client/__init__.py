from .api_client import ApiError, DoglegClient
from .mutations import KeyedMutationQueue, MutationState, OptimisticMutator, apply_reaction_toggle
from .pagination import CancelToken, ListSink, PagedLoader
from .session import FeedSession
from .store import FeedStore

__all__ = [
    "ApiError",
    "DoglegClient",
    "KeyedMutationQueue",
    "MutationState",
    "OptimisticMutator",
    "apply_reaction_toggle",
    "CancelToken",
    "ListSink",
    "PagedLoader",
    "FeedSession",
    "FeedStore",
]
