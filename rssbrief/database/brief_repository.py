"""
Brief repository - per-user summaries of feed items.
"""

from datetime import datetime

from .connection import DatabaseConnection, to_db_time, utcnow
from .converters import row_to_brief_item
from .models import DBBriefItem


class BriefRepository:
    """Repository for brief item operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add_if_absent(
        self,
        user_id: int,
        feed_item_id: int,
        title: str,
        summary: str,
        url: str,
        translation: str | None = None,
    ) -> int | None:
        """
        Store a brief item unless the user already has one for the feed item.

        Returns the new ID, or None when a brief already existed.
        """
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO brief_items
                   (user_id, feed_item_id, title, summary, translation, url, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(user_id, feed_item_id) DO NOTHING""",
                (user_id, feed_item_id, title, summary, translation, url, to_db_time(utcnow()))
            )
            return cursor.lastrowid if cursor.rowcount else None

    def get_existing_feed_item_ids(self, user_id: int, feed_item_ids: list[int]) -> set[int]:
        """Subset of the given feed item IDs the user already has briefs for."""
        if not feed_item_ids:
            return set()
        placeholders = ",".join("?" * len(feed_item_ids))
        with self._db.conn() as conn:
            rows = conn.execute(
                f"""SELECT feed_item_id FROM brief_items
                    WHERE user_id = ? AND feed_item_id IN ({placeholders})""",
                [user_id] + list(feed_item_ids)
            ).fetchall()
            return {row["feed_item_id"] for row in rows}

    def get_user_briefs(self, user_id: int, limit: int = 50, offset: int = 0) -> list[DBBriefItem]:
        """A user's brief items, newest first."""
        with self._db.conn() as conn:
            rows = conn.execute(
                """SELECT * FROM brief_items WHERE user_id = ?
                   ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?""",
                (user_id, limit, offset)
            ).fetchall()
            return [row_to_brief_item(row) for row in rows]

    def get_unsent(self, user_id: int, since: datetime) -> list[DBBriefItem]:
        """Unsent brief items created after ``since``, newest first, with their feed ID."""
        with self._db.conn() as conn:
            rows = conn.execute(
                """SELECT b.*, fi.feed_id AS feed_id
                   FROM brief_items b
                   JOIN feed_items fi ON fi.id = b.feed_item_id
                   WHERE b.user_id = ? AND b.sent_at IS NULL AND b.created_at > ?
                   ORDER BY b.created_at DESC, b.id DESC""",
                (user_id, to_db_time(since))
            ).fetchall()
            return [row_to_brief_item(row) for row in rows]
