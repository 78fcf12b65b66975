from .base import BaseGolfModel
from .profile import Profile, ProfileSummary, ProfileWithStats
from .round import Round, ScoreSubmission
from .social import (
    Comment,
    CommentView,
    Follow,
    FollowCounts,
    Reaction,
    ReactionToggle,
    ReactionType,
)
from .feed import FeedEntry, FeedMode, FeedSettings, RoundView
from .course import CourseDetail, CourseSearchResult, LocationQuery, Tee
from .notification import Notification
from .admin import AdminDeleteResult, AdminPage, DashboardOverview, MetricRow

__all__ = [
    "BaseGolfModel",
    "Profile", "ProfileSummary", "ProfileWithStats",
    "Round", "ScoreSubmission",
    "Comment", "CommentView", "Follow", "FollowCounts",
    "Reaction", "ReactionToggle", "ReactionType",
    "FeedEntry", "FeedMode", "FeedSettings", "RoundView",
    "CourseDetail", "CourseSearchResult", "LocationQuery", "Tee",
    "Notification",
    "AdminDeleteResult", "AdminPage", "DashboardOverview", "MetricRow",
]
