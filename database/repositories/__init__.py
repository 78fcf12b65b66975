from .admin_repo import AdminRepositoryDB
from .analytics_repo import AnalyticsRepositoryDB
from .comment_repo import CommentRepositoryDB
from .course_repo import CourseRepositoryDB
from .feed_repo import FeedRepositoryDB
from .follow_repo import FollowRepositoryDB
from .notification_repo import NotificationRepositoryDB
from .profile_repo import ProfileRepositoryDB
from .reaction_repo import ReactionRepositoryDB
from .round_repo import RoundRepositoryDB
from .settings_repo import SettingsRepositoryDB

__all__ = [
    "AdminRepositoryDB",
    "AnalyticsRepositoryDB",
    "CommentRepositoryDB",
    "CourseRepositoryDB",
    "FeedRepositoryDB",
    "FollowRepositoryDB",
    "NotificationRepositoryDB",
    "ProfileRepositoryDB",
    "ReactionRepositoryDB",
    "RoundRepositoryDB",
    "SettingsRepositoryDB",
]
