"""
Database row converters - convert SQLite rows to dataclasses.
"""

import json
import sqlite3
from datetime import datetime, timezone

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


def parse_db_time(value: str | None) -> datetime | None:
    """Parse a stored timestamp into an aware UTC datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def row_to_user(row: sqlite3.Row) -> DBUser:
    return DBUser(id=row["id"], email=row["email"])


def row_to_preferences(row: sqlite3.Row) -> DBPreferences:
    return DBPreferences(
        user_id=row["user_id"],
        name=row["name"],
        onboarded=bool(row["onboarded"]),
        style=row["style"],
        schedule=Schedule(
            hour=row["schedule_hour"],
            day_of_week=row["schedule_day_of_week"],
            timezone=row["timezone"],
        ),
        email_notifications=bool(row["email_notifications"]),
        language=row["language"],
    )


def row_to_feed(row: sqlite3.Row) -> DBFeed:
    return DBFeed(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        last_refreshed_at=parse_db_time(row["last_refreshed_at"]),
        fetch_error=row["fetch_error"],
    )


def row_to_topic(row: sqlite3.Row) -> DBTopic:
    tags = []
    if row["tags"]:
        try:
            tags = json.loads(row["tags"])
        except json.JSONDecodeError:
            pass

    return DBTopic(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        tags=tags,
        bookmarked=bool(row["bookmarked"]),
        created_at=parse_db_time(row["created_at"]),
    )


def row_to_feed_item(row: sqlite3.Row) -> DBFeedItem:
    return DBFeedItem(
        id=row["id"],
        feed_id=row["feed_id"],
        url=row["url"],
        title=row["title"],
        published_at=parse_db_time(row["published_at"]),
    )


def row_to_brief_item(row: sqlite3.Row) -> DBBriefItem:
    # feed_id only exists on queries joined with feed_items
    feed_id = row["feed_id"] if "feed_id" in row.keys() else None

    return DBBriefItem(
        id=row["id"],
        user_id=row["user_id"],
        feed_item_id=row["feed_item_id"],
        title=row["title"],
        summary=row["summary"],
        url=row["url"],
        created_at=parse_db_time(row["created_at"]),
        translation=row["translation"],
        sent_at=parse_db_time(row["sent_at"]),
        feed_id=feed_id,
    )


def row_to_digest(row: sqlite3.Row) -> DBDigest:
    return DBDigest(
        id=row["id"],
        user_id=row["user_id"],
        scheduled_for=parse_db_time(row["scheduled_for"]),
        status=row["status"],
        delivery_id=row["delivery_id"],
        error=row["error"],
        item_count=row["item_count"],
    )
