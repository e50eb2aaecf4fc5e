"""
Database connection management and schema initialization.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator


def to_db_time(value: datetime | None) -> str | None:
    """Serialize a datetime as fixed-width UTC ISO 8601 so text comparison orders correctly."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DatabaseConnection:
    """Manages database connection and schema."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @contextmanager
    def conn(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with row factory."""
        connection = sqlite3.connect(self.db_path, timeout=30)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _init_schema(self):
        """Initialize database schema."""
        with self.conn() as connection:
            connection.executescript("""
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT UNIQUE NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS preferences (
                    user_id INTEGER PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT NOT NULL DEFAULT '',
                    onboarded BOOLEAN NOT NULL DEFAULT FALSE,
                    style TEXT NOT NULL DEFAULT 'concise'
                        CHECK(style IN ('concise', 'detailed')),
                    schedule_hour INTEGER NOT NULL DEFAULT 9
                        CHECK(schedule_hour BETWEEN 0 AND 23),
                    schedule_day_of_week INTEGER NOT NULL DEFAULT 0
                        CHECK(schedule_day_of_week BETWEEN 0 AND 6),
                    timezone TEXT NOT NULL DEFAULT 'UTC',
                    email_notifications BOOLEAN NOT NULL DEFAULT TRUE,
                    language TEXT
                );

                CREATE TABLE IF NOT EXISTS feeds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT UNIQUE NOT NULL,
                    title TEXT NOT NULL DEFAULT '',
                    last_refreshed_at TIMESTAMP,
                    fetch_error TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                );

                CREATE TABLE IF NOT EXISTS topics (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
                    name TEXT NOT NULL,
                    tags TEXT NOT NULL DEFAULT '[]',
                    bookmarked BOOLEAN NOT NULL DEFAULT FALSE,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS topic_feeds (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    feed_id INTEGER NOT NULL REFERENCES feeds(id),
                    topic_id INTEGER NOT NULL REFERENCES topics(id) ON DELETE CASCADE,
                    user_id INTEGER REFERENCES users(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS feed_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    feed_id INTEGER NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
                    url TEXT UNIQUE NOT NULL,
                    title TEXT,
                    published_at TIMESTAMP NOT NULL,
                    created_at TIMESTAMP NOT NULL
                );

                CREATE TABLE IF NOT EXISTS brief_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    feed_item_id INTEGER NOT NULL REFERENCES feed_items(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    summary TEXT NOT NULL,
                    translation TEXT,
                    url TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    sent_at TIMESTAMP,
                    UNIQUE(user_id, feed_item_id)
                );

                CREATE TABLE IF NOT EXISTS digests (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    scheduled_for TIMESTAMP NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending'
                        CHECK(status IN ('pending', 'sent', 'failed')),
                    delivery_id TEXT,
                    error TEXT,
                    item_count INTEGER NOT NULL DEFAULT 0,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL,
                    UNIQUE(user_id, scheduled_for)
                );

                -- NULL owners (curated topics) must still collide, so index on COALESCE
                CREATE UNIQUE INDEX IF NOT EXISTS idx_topics_owner_name
                    ON topics(COALESCE(user_id, 0), name);
                CREATE UNIQUE INDEX IF NOT EXISTS idx_topic_feeds_unique
                    ON topic_feeds(COALESCE(user_id, 0), topic_id, feed_id);

                CREATE INDEX IF NOT EXISTS idx_topics_user ON topics(user_id);
                CREATE INDEX IF NOT EXISTS idx_topic_feeds_user ON topic_feeds(user_id);
                CREATE INDEX IF NOT EXISTS idx_topic_feeds_topic ON topic_feeds(topic_id);
                CREATE INDEX IF NOT EXISTS idx_topic_feeds_feed ON topic_feeds(feed_id);
                CREATE INDEX IF NOT EXISTS idx_feed_items_feed_published
                    ON feed_items(feed_id, published_at DESC);
                CREATE INDEX IF NOT EXISTS idx_brief_items_user ON brief_items(user_id, created_at DESC);
                CREATE INDEX IF NOT EXISTS idx_preferences_schedule
                    ON preferences(schedule_hour, schedule_day_of_week);
            """)
