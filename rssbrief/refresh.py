"""
Feed Refresh Engine - pull new items from every followed feed.

Each cycle refreshes every feed with at least one follower exactly once,
with bounded concurrency. A feed's ``last_refreshed_at`` is its checkpoint:
items published before it are ignored, and it only advances after a
successful fetch and parse.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .database import Database, DBFeed, utcnow
from .feeds import FeedParser
from .results import Err

logger = logging.getLogger(__name__)

# How far back the first fetch of a feed looks
FIRST_FETCH_WINDOW = timedelta(days=7)


@dataclass
class FeedOutcome:
    """Result of refreshing one feed."""
    feed_id: int
    url: str
    ok: bool
    inserted: int = 0
    skipped: int = 0
    error: str | None = None


@dataclass
class RefreshReport:
    """Summary of one refresh cycle."""
    outcomes: list[FeedOutcome] = field(default_factory=list)

    @property
    def refreshed(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> list[FeedOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def inserted(self) -> int:
        return sum(o.inserted for o in self.outcomes)


class FeedRefreshEngine:
    """Refreshes followed feeds and stores their new items."""

    def __init__(self, db: Database, parser: FeedParser, concurrency: int = 5):
        self.db = db
        self.parser = parser
        self.concurrency = max(1, concurrency)

    async def refresh_all(self, now: datetime | None = None) -> RefreshReport:
        """Refresh every feed that has at least one following user."""
        now = now or utcnow()
        feeds = self.db.get_followed_feeds()
        logger.info(f"Refreshing {len(feeds)} followed feeds")
        report = await self._refresh_many(feeds, now)
        logger.info(
            f"Refresh complete: {report.refreshed} ok, {len(report.failed)} failed, "
            f"{report.inserted} new items"
        )
        return report

    async def refresh_feeds(self, feed_ids: list[int], now: datetime | None = None) -> RefreshReport:
        """Refresh a specific set of feeds, e.g. a newly onboarded user's."""
        now = now or utcnow()
        feeds = self.db.feeds.get_many(sorted(set(feed_ids)))
        return await self._refresh_many(feeds, now)

    async def _refresh_many(self, feeds: list[DBFeed], now: datetime) -> RefreshReport:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(feed: DBFeed) -> FeedOutcome:
            async with semaphore:
                try:
                    return await self.refresh_feed(feed, now)
                except sqlite3.Error as e:
                    logger.error(f"Feed {feed.id} ({feed.url}): database error: {e}")
                    return FeedOutcome(feed_id=feed.id, url=feed.url, ok=False, error=str(e))

        # Feeds arrive unique per cycle; dedupe again in case callers pass repeats
        unique = list({feed.id: feed for feed in feeds}.values())
        outcomes = await asyncio.gather(*(bounded(feed) for feed in unique))
        return RefreshReport(outcomes=list(outcomes))

    async def refresh_feed(self, feed: DBFeed, now: datetime | None = None) -> FeedOutcome:
        """
        Fetch one feed and insert its items newer than the checkpoint.

        On fetch/parse failure the error is recorded and the checkpoint is
        left untouched so the next cycle retries the same window.
        """
        now = now or utcnow()
        cutoff = feed.last_refreshed_at or (now - FIRST_FETCH_WINDOW)

        result = await self.parser.safe_fetch(feed.url)
        if isinstance(result, Err):
            error = result.error
            logger.warning(f"Feed {feed.id} ({feed.url}) failed at {error.step}: {error.message}")
            self.db.feeds.record_error(feed.id, str(error))
            return FeedOutcome(feed_id=feed.id, url=feed.url, ok=False, error=str(error))

        parsed = result.value
        if parsed.title and not feed.title:
            self.db.feeds.update_title(feed.id, parsed.title)

        inserted = 0
        skipped = 0
        for item in parsed.items:
            if not item.link:
                skipped += 1
                continue

            published_at = item.published or now
            if published_at < cutoff:
                skipped += 1
                continue

            try:
                if self.db.feed_items.add_if_absent(feed.id, item.link, published_at, item.title):
                    inserted += 1
                else:
                    skipped += 1
            except sqlite3.Error as e:
                logger.error(f"Feed {feed.id}: failed to store item {item.link}: {e}")
                skipped += 1

        self.db.feeds.advance_checkpoint(feed.id, now)
        logger.debug(f"Feed {feed.id}: {inserted} new, {skipped} skipped")
        return FeedOutcome(feed_id=feed.id, url=feed.url, ok=True, inserted=inserted, skipped=skipped)
