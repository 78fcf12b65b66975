"""API-specific request and response models."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from models import ReactionType, RoundView
from models.social import MAX_COMMENT_LENGTH


class FeedPageResponse(BaseModel):
    """A page of rounds plus where the next page starts."""
    rounds: List[RoundView]
    offset: int
    next_offset: int
    has_more: bool


class ReactionRequest(BaseModel):
    reaction_type: ReactionType


class CommentRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=MAX_COMMENT_LENGTH)


class CreateProfileRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=40)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=40)
    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    handicap: Optional[float] = Field(None, ge=-10, le=54)


class FollowStatusResponse(BaseModel):
    user_id: str
    is_following: bool


class NotificationStatusResponse(BaseModel):
    has_new: bool


class TrackEventRequest(BaseModel):
    event_type: str = Field(..., min_length=1, max_length=100)
    event_data: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None
