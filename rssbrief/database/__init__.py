"""
Database module - SQLite persistence for feeds, items, briefs and digests.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection, to_db_time, utcnow
from .models import (
    DBBriefItem,
    DBDigest,
    DBFeed,
    DBFeedItem,
    DBPreferences,
    DBTopic,
    DBUser,
    Schedule,
)
from .brief_repository import BriefRepository
from .digest_repository import DigestRepository
from .feed_item_repository import FeedItemRepository
from .feed_repository import FeedRepository
from .preferences_repository import PreferencesRepository
from .topic_repository import TopicRepository
from .user_repository import UserRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "to_db_time",
    "utcnow",
    "DBBriefItem",
    "DBDigest",
    "DBFeed",
    "DBFeedItem",
    "DBPreferences",
    "DBTopic",
    "DBUser",
    "Schedule",
    "BriefRepository",
    "DigestRepository",
    "FeedItemRepository",
    "FeedRepository",
    "PreferencesRepository",
    "TopicRepository",
    "UserRepository",
]
