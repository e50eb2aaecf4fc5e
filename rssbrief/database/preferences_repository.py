"""
Preferences repository - per-user brief style, schedule and notification settings.

Rows are created lazily with defaults the first time they are read for
writing (``get_or_create``).
"""

from .connection import DatabaseConnection
from .converters import row_to_preferences
from .models import DBPreferences

_UPDATABLE = {
    "name": "name",
    "onboarded": "onboarded",
    "style": "style",
    "hour": "schedule_hour",
    "day_of_week": "schedule_day_of_week",
    "timezone": "timezone",
    "email_notifications": "email_notifications",
    "language": "language",
}


class PreferencesRepository:
    """Repository for user preferences."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get(self, user_id: int) -> DBPreferences | None:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM preferences WHERE user_id = ?", (user_id,)
            ).fetchone()
            return row_to_preferences(row) if row else None

    def get_or_create(self, user_id: int) -> DBPreferences:
        """Get preferences, inserting the defaults on first access."""
        with self._db.conn() as conn:
            conn.execute(
                "INSERT INTO preferences (user_id) VALUES (?) ON CONFLICT(user_id) DO NOTHING",
                (user_id,)
            )
            row = conn.execute(
                "SELECT * FROM preferences WHERE user_id = ?", (user_id,)
            ).fetchone()
            return row_to_preferences(row)

    def update(self, user_id: int, **fields) -> DBPreferences:
        """
        Patch preference fields, creating the row first if needed.

        Accepted keys: name, onboarded, style, hour, day_of_week, timezone,
        email_notifications, language. None values are ignored except for
        language, which may be cleared.
        """
        self.get_or_create(user_id)
        assignments = []
        params: list = []
        for key, value in fields.items():
            if key not in _UPDATABLE:
                raise KeyError(f"Unknown preference field: {key}")
            if value is None and key != "language":
                continue
            assignments.append(f"{_UPDATABLE[key]} = ?")
            params.append(value)

        if assignments:
            with self._db.conn() as conn:
                conn.execute(
                    f"UPDATE preferences SET {', '.join(assignments)} WHERE user_id = ?",
                    params + [user_id]
                )
        return self.get(user_id)

    def get_onboarded_user_ids(self) -> list[int]:
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT user_id FROM preferences WHERE onboarded = 1 ORDER BY user_id"
            ).fetchall()
            return [row["user_id"] for row in rows]

    def find_by_schedule_slots(
        self,
        slots: set[tuple[int, int]],
        require_email: bool = True,
    ) -> list[DBPreferences]:
        """
        Find onboarded users whose (hour, day_of_week) is one of the given slots.

        Uses the schedule index; callers still confirm each match against the
        user's own timezone.
        """
        if not slots:
            return []
        clauses = " OR ".join("(schedule_hour = ? AND schedule_day_of_week = ?)" for _ in slots)
        params: list = [value for slot in sorted(slots) for value in slot]
        query = f"SELECT * FROM preferences WHERE onboarded = 1 AND ({clauses})"
        if require_email:
            query += " AND email_notifications = 1"
        query += " ORDER BY user_id"

        with self._db.conn() as conn:
            rows = conn.execute(query, params).fetchall()
            return [row_to_preferences(row) for row in rows]
