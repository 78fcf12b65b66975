import asyncpg

from database.repositories import (
    AdminRepositoryDB,
    AnalyticsRepositoryDB,
    CommentRepositoryDB,
    CourseRepositoryDB,
    FeedRepositoryDB,
    FollowRepositoryDB,
    NotificationRepositoryDB,
    ProfileRepositoryDB,
    ReactionRepositoryDB,
    RoundRepositoryDB,
    SettingsRepositoryDB,
)


class DatabaseManager:
    """Single entry point holding one repository per table group, sharing a pool."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool
        self.rounds = RoundRepositoryDB(pool)
        self.reactions = ReactionRepositoryDB(pool)
        self.comments = CommentRepositoryDB(pool)
        self.follows = FollowRepositoryDB(pool)
        self.profiles = ProfileRepositoryDB(pool)
        self.courses = CourseRepositoryDB(pool)
        self.feed = FeedRepositoryDB(pool)
        self.settings = SettingsRepositoryDB(pool)
        self.notifications = NotificationRepositoryDB(pool)
        self.admin = AdminRepositoryDB(pool)
        self.analytics = AnalyticsRepositoryDB(pool)
