from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional

from .base import BaseGolfModel
from .profile import ProfileSummary

MAX_COMMENT_LENGTH = 280
ANONYMOUS_AUTHOR = "Anonymous"


class ReactionType(str, Enum):
    """The eight reactions a user can leave on a round, in display order."""
    FIRE = "fire"
    CLAP = "clap"
    DART = "dart"
    GOAT = "goat"
    VOMIT = "vomit"
    CLOWN = "clown"
    SKULL = "skull"
    LAUGH = "laugh"

    @property
    def emoji(self) -> str:
        return REACTION_EMOJI[self]

    @classmethod
    def parse(cls, value: str) -> Optional["ReactionType"]:
        """Return the member for `value`, or None for unknown reaction names."""
        try:
            return cls(value)
        except ValueError:
            return None


REACTION_EMOJI = {
    ReactionType.FIRE: "\U0001F525",
    ReactionType.CLAP: "\U0001F44F",
    ReactionType.DART: "\U0001F3AF",
    ReactionType.GOAT: "\U0001F410",
    ReactionType.VOMIT: "\U0001F92E",
    ReactionType.CLOWN: "\U0001F921",
    ReactionType.SKULL: "\U0001F480",
    ReactionType.LAUGH: "\U0001F602",
}


def zero_reaction_counts() -> dict:
    """All eight reaction types mapped to 0."""
    return {r: 0 for r in ReactionType}


class Reaction(BaseModel):
    """One user's reaction of one type on one round."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    round_id: str
    reaction_type: ReactionType


class ReactionToggle(BaseModel):
    """Outcome of toggling a reaction: `removed` is True when the reaction was deleted."""
    round_id: str
    reaction_type: ReactionType
    removed: bool


class Comment(BaseGolfModel):
    """A comment row as stored."""
    id: Optional[str] = None
    round_id: str
    user_id: str
    content: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)
    created_at: Optional[datetime] = None
    author: Optional[ProfileSummary] = None

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v


class CommentView(BaseModel):
    """A comment flattened for rendering, with resolved author display fields."""
    id: Optional[str] = None
    round_id: Optional[str] = None
    user_id: Optional[str] = None
    text: str
    author: str = ANONYMOUS_AUTHOR
    author_username: Optional[str] = None
    author_avatar: Optional[str] = None
    created_at: Optional[datetime] = None
    pending: bool = False

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentView":
        profile = comment.author
        return cls(
            id=comment.id,
            round_id=comment.round_id,
            user_id=comment.user_id,
            text=comment.content,
            author=(profile.label() if profile else None) or ANONYMOUS_AUTHOR,
            author_username=profile.username if profile else None,
            author_avatar=profile.avatar_url if profile else None,
            created_at=comment.created_at,
        )


class Follow(BaseModel):
    """A directed follow edge."""
    model_config = ConfigDict(frozen=True)

    follower_id: str
    following_id: str

    @model_validator(mode='after')
    def no_self_follow(self):
        if self.follower_id == self.following_id:
            raise ValueError("Users cannot follow themselves")
        return self


class FollowCounts(BaseModel):
    followers: int = 0
    following: int = 0
