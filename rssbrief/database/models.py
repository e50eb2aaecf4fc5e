"""
Database models - dataclasses for database entities.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class DBUser:
    id: int
    email: str


@dataclass
class Schedule:
    """Weekly digest slot in the user's local time."""
    hour: int  # 0-23
    day_of_week: int  # 0-6, 0 = Sunday
    timezone: str  # IANA name


@dataclass
class DBPreferences:
    user_id: int
    name: str
    onboarded: bool
    style: str  # concise | detailed
    schedule: Schedule
    email_notifications: bool
    language: str | None = None


@dataclass
class DBFeed:
    id: int
    url: str
    title: str
    last_refreshed_at: datetime | None
    fetch_error: str | None = None


@dataclass
class DBTopic:
    id: int
    user_id: int | None  # None for curated topics
    name: str
    tags: list[str] = field(default_factory=list)
    bookmarked: bool = False
    created_at: datetime | None = None


@dataclass
class DBFeedItem:
    id: int
    feed_id: int
    url: str
    title: str | None
    published_at: datetime


@dataclass
class DBBriefItem:
    id: int
    user_id: int
    feed_item_id: int
    title: str
    summary: str
    url: str
    created_at: datetime
    translation: str | None = None
    sent_at: datetime | None = None
    feed_id: int | None = None  # populated by joins with feed_items


@dataclass
class DBDigest:
    id: int
    user_id: int
    scheduled_for: datetime
    status: str  # pending | sent | failed
    delivery_id: str | None = None
    error: str | None = None
    item_count: int = 0
