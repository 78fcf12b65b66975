import math
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Any, Dict, FrozenSet, List, Optional

from .profile import ProfileSummary
from .round import Round
from .social import CommentView, ReactionType, zero_reaction_counts

DEFAULT_FEED_LIMIT = 10
MAX_FEED_LIMIT = 100


class FeedMode(str, Enum):
    FOLLOWING = "following"
    MIXED = "mixed"
    DISCOVER = "discover"


DEFAULT_DISCOVERY_RATIO = {
    FeedMode.FOLLOWING: 0.0,
    FeedMode.MIXED: 0.3,
    FeedMode.DISCOVER: 1.0,
}


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class FeedSettings(BaseModel):
    """Feed algorithm settings read by the ranking RPC.

    Raw input is normalized rather than rejected: an unknown mode becomes
    ``following``, a missing ratio takes the mode's default, and a missing
    limit becomes 10. Instances are immutable so a cached value can only be
    replaced whole.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mode: FeedMode = FeedMode.FOLLOWING
    discovery_ratio: float = Field(0.0, ge=0.0, le=1.0, alias="discoveryRatio")
    feed_limit: int = Field(DEFAULT_FEED_LIMIT, ge=1, le=MAX_FEED_LIMIT, alias="feedLimit")

    @model_validator(mode="before")
    @classmethod
    def normalize(cls, data):
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return data
        valid_modes = {m.value for m in FeedMode}
        raw_mode = data.get("mode")
        if isinstance(raw_mode, FeedMode):
            raw_mode = raw_mode.value
        mode = FeedMode(raw_mode) if raw_mode in valid_modes else FeedMode.FOLLOWING

        ratio = _as_number(data.get("discoveryRatio", data.get("discovery_ratio")))
        if ratio is None:
            ratio = DEFAULT_DISCOVERY_RATIO[mode]
        ratio = min(1.0, max(0.0, ratio))

        limit = _as_number(data.get("feedLimit", data.get("feed_limit")))
        limit = int(limit) if limit is not None and limit >= 1 else DEFAULT_FEED_LIMIT
        limit = min(limit, MAX_FEED_LIMIT)

        return {"mode": mode, "discoveryRatio": ratio, "feedLimit": limit}

    def to_storage(self) -> Dict[str, Any]:
        """JSON value stored under app_settings key 'feed'."""
        return self.model_dump(mode="json", by_alias=True)


class FeedEntry(BaseModel):
    """One row of a feed or rounds query: the round plus its author and ranking tags."""
    round: Round
    author: Optional[ProfileSummary] = None
    source: str = "following"
    reason: Optional[str] = None


class RoundView(Round):
    """Denormalized round ready for rendering."""
    author: Optional[ProfileSummary] = None
    reactions: Dict[ReactionType, int] = Field(default_factory=zero_reaction_counts)
    comments: List[CommentView] = Field(default_factory=list)
    user_reacted: FrozenSet[ReactionType] = frozenset()
    is_following: bool = False
    source: str = "following"
    reason: Optional[str] = None
    vs_par: Optional[str] = None
    display_name: Optional[str] = None

    @model_validator(mode="after")
    def fill_reaction_types(self):
        if len(self.reactions) != len(ReactionType):
            counts = zero_reaction_counts()
            counts.update(self.reactions)
            self.__dict__["reactions"] = counts
        return self

    def reaction_count(self, reaction: ReactionType) -> int:
        return self.reactions.get(reaction, 0)

    def has_reacted(self, reaction: ReactionType) -> bool:
        return reaction in self.user_reacted
