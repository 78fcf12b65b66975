from datetime import datetime
from pydantic import BaseModel
from typing import Optional

from .profile import ProfileSummary


class Notification(BaseModel):
    """An activity notification (reaction, comment, follow) addressed to a user."""
    id: str
    user_id: str
    type: str
    actor: Optional[ProfileSummary] = None
    round_id: Optional[str] = None
    round_short_code: Optional[str] = None
    round_course_name: Optional[str] = None
    round_total_score: Optional[int] = None
    created_at: Optional[datetime] = None
    is_new: bool = False
