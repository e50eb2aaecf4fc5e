"""
Digest repository - one row per (user, scheduled hour) digest occurrence.

Status moves ``pending -> sent`` or ``pending -> failed``. A failed row may be
claimed again (``failed -> pending``); a pending or sent row may not, which is
what keeps a digest from going out twice for the same occurrence.
"""

from datetime import datetime

from .connection import DatabaseConnection, to_db_time, utcnow
from .converters import row_to_digest
from .models import DBDigest


class DigestRepository:
    """Repository for digest occurrences."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def claim(self, user_id: int, scheduled_for: datetime) -> int | None:
        """
        Claim a digest occurrence for sending.

        Returns the digest ID when this caller owns the occurrence, or None
        when it is already pending elsewhere or has been sent.
        """
        stamp = to_db_time(utcnow())
        slot = to_db_time(scheduled_for)
        with self._db.conn() as conn:
            cursor = conn.execute(
                """INSERT OR IGNORE INTO digests
                   (user_id, scheduled_for, status, created_at, updated_at)
                   VALUES (?, ?, 'pending', ?, ?)""",
                (user_id, slot, stamp, stamp)
            )
            if cursor.rowcount:
                return cursor.lastrowid

            row = conn.execute(
                "SELECT id, status FROM digests WHERE user_id = ? AND scheduled_for = ?",
                (user_id, slot)
            ).fetchone()
            if row is None or row["status"] != "failed":
                return None

            cursor = conn.execute(
                """UPDATE digests SET status = 'pending', error = NULL, updated_at = ?
                   WHERE id = ? AND status = 'failed'""",
                (stamp, row["id"])
            )
            return row["id"] if cursor.rowcount else None

    def mark_sent(
        self,
        digest_id: int,
        delivery_id: str,
        item_count: int,
        brief_ids: list[int] | None = None,
        sent_at: datetime | None = None,
    ):
        """
        Mark a digest sent and stamp its brief items in one transaction.
        """
        sent_at = sent_at or utcnow()
        with self._db.conn() as conn:
            conn.execute(
                """UPDATE digests SET status = 'sent', delivery_id = ?, item_count = ?,
                   error = NULL, updated_at = ? WHERE id = ?""",
                (delivery_id, item_count, to_db_time(utcnow()), digest_id)
            )
            if brief_ids:
                placeholders = ",".join("?" * len(brief_ids))
                conn.execute(
                    f"""UPDATE brief_items SET sent_at = ?
                        WHERE id IN ({placeholders}) AND sent_at IS NULL""",
                    [to_db_time(sent_at)] + list(brief_ids)
                )

    def mark_failed(self, digest_id: int, error: str):
        with self._db.conn() as conn:
            conn.execute(
                "UPDATE digests SET status = 'failed', error = ?, updated_at = ? WHERE id = ?",
                (error, to_db_time(utcnow()), digest_id)
            )

    def delete(self, digest_id: int):
        with self._db.conn() as conn:
            conn.execute("DELETE FROM digests WHERE id = ?", (digest_id,))

    def get(self, digest_id: int) -> DBDigest | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM digests WHERE id = ?", (digest_id,)).fetchone()
            return row_to_digest(row) if row else None

    def get_for_user(self, user_id: int) -> list[DBDigest]:
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM digests WHERE user_id = ? ORDER BY scheduled_for DESC",
                (user_id,)
            ).fetchall()
            return [row_to_digest(row) for row in rows]
