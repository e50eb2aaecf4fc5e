"""
Pydantic models for API request/response validation.
"""

from pydantic import BaseModel, Field

from .briefs import CompileReport
from .database import DBBriefItem, DBPreferences, DBTopic
from .digest import DispatchReport
from .refresh import RefreshReport


# ─────────────────────────────────────────────────────────────
# Brief Schemas
# ─────────────────────────────────────────────────────────────

class BriefItemResponse(BaseModel):
    id: int
    feed_item_id: int
    title: str
    summary: str
    translation: str | None = None
    url: str
    created_at: str
    sent_at: str | None = None

    @classmethod
    def from_db(cls, item: DBBriefItem) -> "BriefItemResponse":
        return cls(
            id=item.id,
            feed_item_id=item.feed_item_id,
            title=item.title,
            summary=item.summary,
            translation=item.translation,
            url=item.url,
            created_at=item.created_at.isoformat(),
            sent_at=item.sent_at.isoformat() if item.sent_at else None,
        )


class NextBriefResponse(BaseModel):
    """When the next digest goes out."""
    next_brief_at: str
    hour: int
    day_of_week: int
    timezone: str
    seconds_until_next: int


# ─────────────────────────────────────────────────────────────
# Topic Schemas
# ─────────────────────────────────────────────────────────────

class TopicCreateRequest(BaseModel):
    name: str
    tags: list[str] = Field(default_factory=list)
    feed_urls: list[str] = Field(default_factory=list)


class TopicResponse(BaseModel):
    id: int
    name: str
    tags: list[str]
    bookmarked: bool
    curated: bool

    @classmethod
    def from_db(cls, topic: DBTopic) -> "TopicResponse":
        return cls(
            id=topic.id,
            name=topic.name,
            tags=topic.tags,
            bookmarked=topic.bookmarked,
            curated=topic.user_id is None,
        )


class FollowResponse(BaseModel):
    topic_id: int
    links_created: int


# ─────────────────────────────────────────────────────────────
# Onboarding Schemas
# ─────────────────────────────────────────────────────────────

class OnboardRequest(BaseModel):
    name: str
    style: str = "concise"
    hour: int = 9
    day_of_week: int = 0  # 0 = Sunday
    timezone: str = "UTC"
    topic_ids: list[int] = Field(default_factory=list)
    language: str | None = None
    email_notifications: bool = True


class PreferencesResponse(BaseModel):
    user_id: int
    name: str
    onboarded: bool
    style: str
    hour: int
    day_of_week: int
    timezone: str
    email_notifications: bool
    language: str | None = None

    @classmethod
    def from_db(cls, prefs: DBPreferences) -> "PreferencesResponse":
        return cls(
            user_id=prefs.user_id,
            name=prefs.name,
            onboarded=prefs.onboarded,
            style=prefs.style,
            hour=prefs.schedule.hour,
            day_of_week=prefs.schedule.day_of_week,
            timezone=prefs.schedule.timezone,
            email_notifications=prefs.email_notifications,
            language=prefs.language,
        )


# ─────────────────────────────────────────────────────────────
# Job Schemas
# ─────────────────────────────────────────────────────────────

class RefreshReportResponse(BaseModel):
    refreshed: int
    failed: int
    inserted: int
    errors: dict[int, str] = Field(default_factory=dict)

    @classmethod
    def from_report(cls, report: RefreshReport) -> "RefreshReportResponse":
        return cls(
            refreshed=report.refreshed,
            failed=len(report.failed),
            inserted=report.inserted,
            errors={o.feed_id: o.error or "" for o in report.failed},
        )


class CompileReportResponse(BaseModel):
    total: int
    compiled: dict[int, int]
    failed_users: dict[int, str]

    @classmethod
    def from_report(cls, report: CompileReport) -> "CompileReportResponse":
        return cls(
            total=report.total,
            compiled=report.compiled,
            failed_users=report.failed_users,
        )


class DispatchReportResponse(BaseModel):
    sent: int
    failed: int
    skipped: int
    claimed: int

    @classmethod
    def from_report(cls, report: DispatchReport) -> "DispatchReportResponse":
        return cls(
            sent=report.sent,
            failed=report.failed,
            skipped=report.count("skipped"),
            claimed=report.count("claimed"),
        )
