"""
Digest Scheduler - assemble, render and deliver weekly briefs.

Dispatch flow per due user:
1. Claim the (user, hour) occurrence row so the digest goes out at most once
2. Assemble unsent brief items from the last week, grouped by topic
3. Render markdown text and hand it to the delivery adapter
4. Mark the occurrence sent (and its brief items) or failed
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .database import Database, DBBriefItem, DBPreferences, utcnow
from .delivery import DeliveryAdapter, EmailMessage
from .results import Err
from .schedule import (
    InvalidTimezoneError,
    candidate_slots,
    is_due,
    local_now,
    occurrence_slot,
)
from .summarizer import SummaryStyle

logger = logging.getLogger(__name__)

DIGEST_WINDOW = timedelta(days=7)
UNCATEGORIZED_TOPIC = "Other"

# Items kept per topic
STYLE_CAPS = {
    SummaryStyle.CONCISE: 1,
    SummaryStyle.DETAILED: 5,
}


@dataclass
class DigestSection:
    topic: str
    items: list[DBBriefItem]
    candidate_count: int = 0


@dataclass
class AssembledDigest:
    """Sections to render plus every candidate item the digest covers."""
    sections: list[DigestSection] = field(default_factory=list)
    candidate_ids: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.candidate_ids

    @property
    def item_count(self) -> int:
        return sum(len(section.items) for section in self.sections)


@dataclass
class DigestOutcome:
    user_id: int
    status: str  # sent | skipped | failed | claimed
    delivery_id: str | None = None
    item_count: int = 0
    error: str | None = None


@dataclass
class DispatchReport:
    outcomes: list[DigestOutcome] = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def sent(self) -> int:
        return self.count("sent")

    @property
    def failed(self) -> int:
        return self.count("failed")


def format_local_date(value: date) -> str:
    """e.g. Sunday, October 18, 2026"""
    return f"{value:%A, %B} {value.day}, {value.year}"


def digest_subject(local_date: date) -> str:
    return f"Your RSS Brief for {format_local_date(local_date)}"


def assemble_digest(
    db: Database,
    user_id: int,
    style: SummaryStyle | str,
    now: datetime | None = None,
) -> AssembledDigest:
    """
    Group a user's unsent brief items by topic and cap each topic by style.

    Items whose feed sits in several of the user's topics go under the first
    topic by name; items from feeds in none go under "Other". Topics are
    ordered by how many candidates they had, then by name.
    """
    now = now or utcnow()
    cap = STYLE_CAPS[SummaryStyle(style)]
    candidates = db.briefs.get_unsent(user_id, now - DIGEST_WINDOW)
    topic_by_feed = db.topics.get_topic_names_by_feed(user_id)

    grouped: dict[str, list[DBBriefItem]] = {}
    for item in candidates:
        topic = topic_by_feed.get(item.feed_id, UNCATEGORIZED_TOPIC)
        grouped.setdefault(topic, []).append(item)

    sections = [
        DigestSection(topic=topic, items=items[:cap], candidate_count=len(items))
        for topic, items in grouped.items()
    ]
    sections.sort(key=lambda s: (-s.candidate_count, s.topic))

    return AssembledDigest(sections=sections, candidate_ids=[item.id for item in candidates])


def render_digest(digest: AssembledDigest, local_date: date, name: str = "") -> str:
    """Render an assembled digest as markdown text."""
    greeting = f"Hi {name}, here's" if name else "Here's"
    lines = [
        f"# Your Weekly RSS Brief - {format_local_date(local_date)}",
        "",
        f"{greeting} what's been happening in your followed topics:",
        "",
    ]

    for section in digest.sections:
        lines += [f"## {section.topic}", ""]
        for item in section.items:
            lines.append(f"### [{item.title}]({item.url})")
            lines.append(item.summary)
            if item.translation:
                lines += ["", f"*Translation: {item.translation}*"]
            lines += ["", "---", ""]

    lines.append("*This brief was generated automatically based on your followed topics.*")
    return "\n".join(lines)


class DigestScheduler:
    """Finds users whose digest is due and delivers it exactly once per occurrence."""

    def __init__(
        self,
        db: Database,
        delivery: DeliveryAdapter,
        from_addr: str,
        concurrency: int = 3,
    ):
        self.db = db
        self.delivery = delivery
        self.from_addr = from_addr
        self.concurrency = max(1, concurrency)

    def due_users(self, now: datetime) -> list[DBPreferences]:
        """Onboarded users with email on whose local schedule matches ``now``."""
        due = []
        for prefs in self.db.preferences.find_by_schedule_slots(candidate_slots(now)):
            try:
                if is_due(prefs.schedule, now):
                    due.append(prefs)
            except InvalidTimezoneError as e:
                logger.warning(f"Skipping user {prefs.user_id}: {e}")
        return due

    async def dispatch(self, now: datetime | None = None) -> DispatchReport:
        """Deliver every due digest for the current hour."""
        now = now or utcnow()
        due = self.due_users(now)
        logger.info(f"{len(due)} digests due at {occurrence_slot(now).isoformat()}")
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(prefs: DBPreferences) -> DigestOutcome:
            async with semaphore:
                try:
                    return await self.deliver(prefs, now)
                except sqlite3.Error as e:
                    logger.error(f"Digest for user {prefs.user_id}: database error: {e}")
                    return DigestOutcome(user_id=prefs.user_id, status="failed", error=str(e))

        outcomes = await asyncio.gather(*(bounded(prefs) for prefs in due))
        report = DispatchReport(outcomes=list(outcomes))
        logger.info(
            f"Digest dispatch: {report.sent} sent, {report.failed} failed, "
            f"{report.count('skipped')} skipped"
        )
        return report

    async def deliver(self, prefs: DBPreferences, now: datetime) -> DigestOutcome:
        """Claim, assemble, render and send one user's digest."""
        user_id = prefs.user_id
        user = self.db.users.get(user_id)
        if user is None:
            return DigestOutcome(user_id=user_id, status="skipped", error="User not found")

        digest_id = self.db.digests.claim(user_id, occurrence_slot(now))
        if digest_id is None:
            logger.debug(f"Digest for user {user_id} already claimed this hour")
            return DigestOutcome(user_id=user_id, status="claimed")

        try:
            digest = assemble_digest(self.db, user_id, prefs.style, now)
        except sqlite3.Error as e:
            logger.error(f"Failed to assemble digest for user {user_id}: {e}")
            self.db.digests.mark_failed(digest_id, str(e))
            return DigestOutcome(user_id=user_id, status="failed", error=str(e))

        if digest.is_empty:
            self.db.digests.delete(digest_id)
            logger.info(f"No unsent briefs for user {user_id}, skipping digest")
            return DigestOutcome(user_id=user_id, status="skipped")

        local_date = local_now(prefs.schedule, now).date()
        message = EmailMessage(
            to=user.email,
            from_addr=self.from_addr,
            subject=digest_subject(local_date),
            text=render_digest(digest, local_date, prefs.name),
        )

        result = await self.delivery.safe_send(message)
        if isinstance(result, Err):
            logger.error(f"Digest delivery failed for user {user_id}: {result.error}")
            self.db.digests.mark_failed(digest_id, str(result.error))
            return DigestOutcome(user_id=user_id, status="failed", error=str(result.error))

        error = None
        try:
            self.db.digests.mark_sent(
                digest_id, result.value, digest.item_count,
                brief_ids=digest.candidate_ids, sent_at=now,
            )
        except sqlite3.Error as e:
            # Mail is out; the claim stays pending so this hour is not resent
            logger.error(f"Digest {digest_id} sent as {result.value} but not recorded: {e}")
            error = f"Delivery not recorded: {e}"
        return DigestOutcome(
            user_id=user_id,
            status="sent",
            delivery_id=result.value,
            item_count=digest.item_count,
            error=error,
        )
