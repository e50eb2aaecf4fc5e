"""
Topic repository - user and curated topics, and their feed links.

Curated topics have ``user_id = NULL``. Their links are templates that get
copied into user-owned links when a user follows the topic.
"""

import json

from .connection import DatabaseConnection, to_db_time, utcnow
from .converters import row_to_topic
from .models import DBTopic


class TopicRepository:
    """Repository for topics and feed-topic links."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(
        self,
        name: str,
        user_id: int | None = None,
        tags: list[str] | None = None,
        bookmarked: bool = False,
    ) -> int:
        """Add a topic. Raises sqlite3.IntegrityError on a duplicate name for the owner."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT INTO topics (user_id, name, tags, bookmarked, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (user_id, name, json.dumps(tags or []), bookmarked, to_db_time(utcnow()))
            )
            return cursor.lastrowid

    def get(self, topic_id: int) -> DBTopic | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM topics WHERE id = ?", (topic_id,)).fetchone()
            return row_to_topic(row) if row else None

    def get_by_name(self, name: str, user_id: int | None = None) -> DBTopic | None:
        """Find a topic by name for an owner (None = curated)."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM topics WHERE name = ? AND user_id IS ?", (name, user_id)
            ).fetchone()
            return row_to_topic(row) if row else None

    def get_user_topics(self, user_id: int) -> list[DBTopic]:
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM topics WHERE user_id = ? ORDER BY name", (user_id,)
            ).fetchall()
            return [row_to_topic(row) for row in rows]

    def get_curated(self) -> list[DBTopic]:
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM topics WHERE user_id IS NULL ORDER BY name"
            ).fetchall()
            return [row_to_topic(row) for row in rows]

    def link(self, topic_id: int, feed_id: int, user_id: int | None = None) -> bool:
        """Link a feed to a topic. Returns False if the link already existed."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO topic_feeds (feed_id, topic_id, user_id) VALUES (?, ?, ?)",
                (feed_id, topic_id, user_id)
            )
            return cursor.rowcount > 0

    def get_curated_feed_ids(self, topic_id: int) -> list[int]:
        """Feed IDs of a topic's template links."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT feed_id FROM topic_feeds WHERE topic_id = ? AND user_id IS NULL ORDER BY feed_id",
                (topic_id,)
            ).fetchall()
            return [row["feed_id"] for row in rows]

    def get_topic_names_by_feed(self, user_id: int) -> dict[int, str]:
        """
        Map each feed a user follows to the topic it is filed under.

        A feed linked through several topics is filed under the first topic
        by name.
        """
        with self._db.conn() as conn:
            rows = conn.execute(
                """SELECT tf.feed_id, MIN(t.name) AS name
                   FROM topic_feeds tf
                   JOIN topics t ON t.id = tf.topic_id
                   WHERE tf.user_id = ?
                   GROUP BY tf.feed_id""",
                (user_id,)
            ).fetchall()
            return {row["feed_id"]: row["name"] for row in rows}
