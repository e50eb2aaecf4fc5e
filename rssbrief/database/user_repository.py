"""
User repository - account rows that digests are addressed to.
"""

from .connection import DatabaseConnection
from .converters import row_to_user
from .models import DBUser


class UserRepository:
    """Repository for user operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, email: str) -> int:
        """Add a new user. Returns user ID."""
        with self._db.conn() as conn:
            cursor = conn.execute("INSERT INTO users (email) VALUES (?)", (email.strip().lower(),))
            return cursor.lastrowid

    def get(self, user_id: int) -> DBUser | None:
        with self._db.conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
            return row_to_user(row) if row else None

    def get_by_email(self, email: str) -> DBUser | None:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
            return row_to_user(row) if row else None

    def get_many(self, user_ids: list[int]) -> dict[int, DBUser]:
        """Get users keyed by ID."""
        if not user_ids:
            return {}
        placeholders = ",".join("?" * len(user_ids))
        with self._db.conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM users WHERE id IN ({placeholders})", user_ids
            ).fetchall()
            return {row["id"]: row_to_user(row) for row in rows}
