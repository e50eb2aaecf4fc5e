"""
Feed repository - feed rows and their refresh checkpoint.
"""

from datetime import datetime

from .connection import DatabaseConnection, to_db_time
from .converters import row_to_feed
from .models import DBFeed


class FeedRepository:
    """Repository for feed operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get_or_create(self, url: str, title: str = "") -> int:
        """Return the feed ID for a URL, inserting the feed on first reference."""
        with self._db.conn() as conn:
            conn.execute(
                "INSERT INTO feeds (url, title) VALUES (?, ?) ON CONFLICT(url) DO NOTHING",
                (url, title)
            )
            row = conn.execute("SELECT id FROM feeds WHERE url = ?", (url,)).fetchone()
            return row["id"]

    def get(self, feed_id: int) -> DBFeed | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM feeds WHERE id = ?", (feed_id,)).fetchone()
            return row_to_feed(row) if row else None

    def get_by_url(self, url: str) -> DBFeed | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM feeds WHERE url = ?", (url,)).fetchone()
            return row_to_feed(row) if row else None

    def get_many(self, feed_ids: list[int]) -> list[DBFeed]:
        """Get feeds by ID, ordered by ID."""
        if not feed_ids:
            return []
        placeholders = ",".join("?" * len(feed_ids))
        with self._db.conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM feeds WHERE id IN ({placeholders}) ORDER BY id",
                list(feed_ids)
            ).fetchall()
            return [row_to_feed(row) for row in rows]

    def get_followed_feed_ids(self) -> list[int]:
        """IDs of feeds with at least one following user, each listed once."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT DISTINCT feed_id FROM topic_feeds WHERE user_id IS NOT NULL ORDER BY feed_id"
            ).fetchall()
            return [row["feed_id"] for row in rows]

    def get_user_feed_ids(self, user_id: int) -> list[int]:
        """IDs of the feeds a user follows through any topic."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT DISTINCT feed_id FROM topic_feeds WHERE user_id = ? ORDER BY feed_id",
                (user_id,)
            ).fetchall()
            return [row["feed_id"] for row in rows]

    def advance_checkpoint(self, feed_id: int, refreshed_at: datetime) -> bool:
        """
        Set last_refreshed_at and clear the last error.

        The checkpoint only moves forward; an older timestamp leaves it as is.
        Returns True if the row changed.
        """
        stamp = to_db_time(refreshed_at)
        with self._db.conn() as conn:
            cursor = conn.execute(
                """UPDATE feeds SET last_refreshed_at = ?, fetch_error = NULL
                   WHERE id = ? AND (last_refreshed_at IS NULL OR last_refreshed_at <= ?)""",
                (stamp, feed_id, stamp)
            )
            return cursor.rowcount > 0

    def record_error(self, feed_id: int, error: str):
        """Store the last fetch/parse error without touching the checkpoint."""
        with self._db.conn() as conn:
            conn.execute("UPDATE feeds SET fetch_error = ? WHERE id = ?", (error, feed_id))

    def update_title(self, feed_id: int, title: str):
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE feeds SET title = ? WHERE id = ? AND title = ''", (title, feed_id)
            )
