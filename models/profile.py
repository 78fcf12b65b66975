from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional

from .base import BaseGolfModel


class ProfileSummary(BaseModel):
    """The slice of a profile embedded in rounds, comments and notifications."""
    id: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None

    def label(self) -> Optional[str]:
        """Preferred display label: username, then full name."""
        return self.username or self.full_name or None


class Profile(BaseGolfModel):
    """A user's public profile, one-to-one with an authenticated identity."""
    id: str
    username: str = Field(..., min_length=1, max_length=40)
    full_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = None
    avatar_path: Optional[str] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    handicap: Optional[float] = Field(None, ge=-10, le=54)
    last_notifications_check: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("username")
    @classmethod
    def clean_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be blank")
        if any(ch.isspace() for ch in v):
            raise ValueError("Username cannot contain spaces")
        return v

    def summary(self) -> ProfileSummary:
        return ProfileSummary(
            id=self.id,
            username=self.username,
            full_name=self.full_name,
            avatar_url=self.avatar_url,
        )


class ProfileWithStats(Profile):
    """Profile page payload: the profile plus follow and round counts."""
    followers_count: int = 0
    following_count: int = 0
    rounds_count: int = 0
    is_following: bool = False
