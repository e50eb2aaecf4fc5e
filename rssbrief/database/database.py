"""
Database facade - provides unified access to all repositories.

Pipeline components take a ``Database`` and reach the repositories through
its attributes (``db.feeds``, ``db.briefs`` ...). A few cross-repository
helpers live here.
"""

from pathlib import Path

from .connection import DatabaseConnection
from .brief_repository import BriefRepository
from .digest_repository import DigestRepository
from .feed_item_repository import FeedItemRepository
from .feed_repository import FeedRepository
from .models import DBFeed, DBPreferences, DBUser
from .preferences_repository import PreferencesRepository
from .topic_repository import TopicRepository
from .user_repository import UserRepository


class Database:
    """Unified database access facade."""

    def __init__(self, db_path: Path):
        self._connection = DatabaseConnection(db_path)

        self.users = UserRepository(self._connection)
        self.preferences = PreferencesRepository(self._connection)
        self.feeds = FeedRepository(self._connection)
        self.feed_items = FeedItemRepository(self._connection)
        self.topics = TopicRepository(self._connection)
        self.briefs = BriefRepository(self._connection)
        self.digests = DigestRepository(self._connection)

    # ─────────────────────────────────────────────────────────────
    # Cross-repository helpers
    # ─────────────────────────────────────────────────────────────

    def add_user(self, email: str, name: str = "") -> int:
        """Create a user together with default preferences."""
        user_id = self.users.add(email)
        self.preferences.update(user_id, name=name)
        return user_id

    def get_user(self, user_id: int) -> DBUser | None:
        return self.users.get(user_id)

    def get_preferences(self, user_id: int) -> DBPreferences | None:
        return self.preferences.get(user_id)

    def get_followed_feeds(self) -> list[DBFeed]:
        """Every feed with at least one following user, once each."""
        return self.feeds.get_many(self.feeds.get_followed_feed_ids())

    def get_user_feeds(self, user_id: int) -> list[DBFeed]:
        return self.feeds.get_many(self.feeds.get_user_feed_ids(user_id))
