"""
Brief Compiler - turn a user's new feed items into summarized brief items.

For each user: take the items of followed feeds from the last week, drop
the ones already briefed, then extract and summarize the rest with bounded
concurrency. An item that fails extraction or summarization is logged and
dropped; the others still get compiled.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .database import Database, DBFeedItem, utcnow
from .exceptions import PipelineError
from .extractors import ContentExtractor
from .results import Err
from .summarizer import Summarizer, SummaryStyle

logger = logging.getLogger(__name__)

BRIEF_WINDOW = timedelta(days=7)


@dataclass
class ProcessedBrief:
    """A brief item produced in this run."""
    feed_item_id: int
    url: str
    title: str
    summary: str
    translation: str | None = None


@dataclass
class CompileReport:
    """Per-user brief counts for a batch run."""
    compiled: dict[int, int] = field(default_factory=dict)
    failed_users: dict[int, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.compiled.values())


class BriefCompiler:
    """Compiles brief items for users from their followed feeds."""

    def __init__(
        self,
        db: Database,
        extractor: ContentExtractor,
        summarizer: Summarizer,
        concurrency: int = 5,
    ):
        self.db = db
        self.extractor = extractor
        self.summarizer = summarizer
        self.concurrency = max(1, concurrency)

    async def compile_for_user(self, user_id: int, now: datetime | None = None) -> list[ProcessedBrief]:
        """
        Compile briefs for every new item in a user's followed feeds.

        Raises:
            PipelineError: the user has no preferences
        """
        now = now or utcnow()
        prefs = self.db.preferences.get(user_id)
        if prefs is None:
            raise PipelineError(f"User {user_id} has no preferences", step="preferences")

        feed_ids = self.db.feeds.get_user_feed_ids(user_id)
        items = self.db.feed_items.get_for_feeds_since(feed_ids, now - BRIEF_WINDOW)
        existing = self.db.briefs.get_existing_feed_item_ids(user_id, [i.id for i in items])
        pending = [item for item in items if item.id not in existing]
        if not pending:
            logger.debug(f"User {user_id}: no new items to brief")
            return []

        logger.info(f"User {user_id}: compiling {len(pending)} briefs ({prefs.style})")
        style = SummaryStyle(prefs.style)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(item: DBFeedItem) -> ProcessedBrief | None:
            async with semaphore:
                return await self._process_item(user_id, item, style, prefs.language)

        results = await asyncio.gather(*(bounded(item) for item in pending))
        return [brief for brief in results if brief is not None]

    async def _process_item(
        self,
        user_id: int,
        item: DBFeedItem,
        style: SummaryStyle,
        language: str | None,
    ) -> ProcessedBrief | None:
        extracted = await self.extractor.safe_extract(item.url)
        if isinstance(extracted, Err):
            self._log_skip(user_id, extracted.error)
            return None

        content = extracted.value
        title = item.title or content.title or item.url
        summary = await self.summarizer.safe_summarize(
            content.content, style, language=language, title=title, url=item.url
        )
        if isinstance(summary, Err):
            self._log_skip(user_id, summary.error)
            return None

        try:
            self.db.briefs.add_if_absent(
                user_id=user_id,
                feed_item_id=item.id,
                title=title,
                summary=summary.value.text,
                url=item.url,
                translation=summary.value.translation,
            )
        except sqlite3.Error as e:
            logger.error(f"User {user_id}: failed to store brief for {item.url}: {e}")
            return None

        return ProcessedBrief(
            feed_item_id=item.id,
            url=item.url,
            title=title,
            summary=summary.value.text,
            translation=summary.value.translation,
        )

    def _log_skip(self, user_id: int, error: PipelineError):
        logger.warning(f"User {user_id}: skipping {error.url} at {error.step}: {error.message}")

    async def compile_all(self, now: datetime | None = None) -> CompileReport:
        """Compile briefs for every onboarded user. One user's failure never stops the rest."""
        now = now or utcnow()
        user_ids = self.db.preferences.get_onboarded_user_ids()
        report = CompileReport()
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(user_id: int):
            async with semaphore:
                try:
                    briefs = await self.compile_for_user(user_id, now)
                    report.compiled[user_id] = len(briefs)
                except (PipelineError, sqlite3.Error) as e:
                    logger.error(f"Brief compilation failed for user {user_id}: {e}")
                    report.failed_users[user_id] = str(e)

        await asyncio.gather(*(bounded(user_id) for user_id in user_ids))
        logger.info(f"Compiled {report.total} briefs for {len(report.compiled)} users")
        return report
