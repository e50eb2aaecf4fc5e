"""
Feed item repository - ingested entries, deduplicated globally by URL.
"""

from datetime import datetime

from .connection import DatabaseConnection, to_db_time, utcnow
from .converters import row_to_feed_item
from .models import DBFeedItem


class FeedItemRepository:
    """Repository for feed item operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add_if_absent(
        self,
        feed_id: int,
        url: str,
        published_at: datetime,
        title: str | None = None,
    ) -> int | None:
        """
        Insert a feed item unless one with the same URL exists.

        The UNIQUE(url) constraint makes this safe against concurrent
        refreshes. Returns the new ID, or None for a duplicate.
        """
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO feed_items (feed_id, url, title, published_at, created_at)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(url) DO NOTHING""",
                (feed_id, url, title, to_db_time(published_at), to_db_time(utcnow()))
            )
            return cursor.lastrowid if cursor.rowcount else None

    def get(self, item_id: int) -> DBFeedItem | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM feed_items WHERE id = ?", (item_id,)).fetchone()
            return row_to_feed_item(row) if row else None

    def get_by_url(self, url: str) -> DBFeedItem | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM feed_items WHERE url = ?", (url,)).fetchone()
            return row_to_feed_item(row) if row else None

    def get_for_feeds_since(self, feed_ids: list[int], since: datetime) -> list[DBFeedItem]:
        """Items from the given feeds published after ``since``, newest first."""
        if not feed_ids:
            return []
        placeholders = ",".join("?" * len(feed_ids))
        with self._db.conn() as conn:
            rows = conn.execute(
                f"""SELECT * FROM feed_items
                    WHERE feed_id IN ({placeholders}) AND published_at > ?
                    ORDER BY published_at DESC, id DESC""",
                list(feed_ids) + [to_db_time(since)]
            ).fetchall()
            return [row_to_feed_item(row) for row in rows]

    def count_for_feed(self, feed_id: int) -> int:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM feed_items WHERE feed_id = ?", (feed_id,)
            ).fetchone()
            return row["n"]
