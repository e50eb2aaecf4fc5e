"""
Feed Parser - Fetch and parse RSS/Atom feeds.

Handles:
- RSS 2.0 and Atom 1.0 formats (via feedparser)
- Short, bounded fetch timeout with a distinctive user agent
- Structural validation: missing optional fields are fine,
  a payload that is not a feed at all is a ParseError
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import aiohttp
import feedparser

from .exceptions import FetchError, ParseError, PipelineError
from .results import Ok, Err
from .url_validator import validate_url, UnsafeURLError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "RSSBriefBot/1.0"


@dataclass
class ParsedItem:
    """A single entry from a feed. Every field is optional in the wild."""
    link: str | None = None
    title: str | None = None
    published_at: str | None = None  # raw pubDate/updated string
    published: datetime | None = None  # parsed, timezone-aware UTC


@dataclass
class ParsedFeed:
    """Channel-level link plus the items of a parsed feed."""
    channel_link: str | None = None
    title: str | None = None
    items: list[ParsedItem] = field(default_factory=list)


def parse_published(value: str | None) -> datetime | None:
    """
    Parse a feed date string into an aware UTC datetime.

    Accepts RFC 822 (RSS pubDate) and ISO 8601 (Atom). Returns None for
    missing or unparseable values.
    """
    if not value:
        return None
    value = value.strip()
    parsed = None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _struct_to_datetime(value) -> datetime | None:
    """feedparser normalizes *_parsed fields to UTC struct_time."""
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


class FeedParser:
    """Fetches and parses RSS/Atom feeds."""

    def __init__(self, timeout: float = 2.0, user_agent: str | None = None):
        self.timeout = timeout
        self.user_agent = user_agent or DEFAULT_USER_AGENT

    async def fetch(self, url: str) -> ParsedFeed:
        """
        Fetch and parse a feed URL.

        Raises:
            FetchError: network failure, timeout, or non-2xx status
            ParseError: payload is not a recognizable RSS/Atom document
        """
        content = await self._download(url)
        return self.parse(content, url)

    async def safe_fetch(self, url: str) -> Ok[ParsedFeed] | Err[PipelineError]:
        """Fetch a feed, returning Err on expected failures instead of raising."""
        try:
            return Ok(await self.fetch(url))
        except (FetchError, ParseError) as e:
            return Err(e)

    async def _download(self, url: str) -> bytes:
        try:
            validate_url(url)
        except UnsafeURLError as e:
            raise FetchError(str(e), url=url)

        headers = {"User-Agent": self.user_agent}
        try:
            async with aiohttp.ClientSession(headers=headers) as session:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as resp:
                    if resp.status >= 300:
                        raise FetchError(f"HTTP {resp.status}", url=url)
                    # Raw bytes: feedparser sniffs the encoding from the XML itself
                    return await resp.read()
        except asyncio.TimeoutError:
            raise FetchError(f"Timed out after {self.timeout}s", url=url)
        except aiohttp.ClientError as e:
            raise FetchError(f"HTTP request error: {e}", url=url)

    def parse(self, content: str | bytes, url: str = "") -> ParsedFeed:
        """Parse feed content using feedparser."""
        parsed = feedparser.parse(content)

        # An unknown root with nothing usable inside is not a feed.
        if not parsed.entries and (parsed.bozo or not parsed.version):
            reason = parsed.get("bozo_exception") or "no RSS/Atom root element"
            raise ParseError(f"Failed to parse feed: {reason}", url=url or None)

        items = []
        for entry in parsed.entries:
            link = entry.get("link") or None
            if not link:
                for candidate in entry.get("links", []):
                    if candidate.get("rel") == "alternate" and candidate.get("href"):
                        link = candidate["href"]
                        break

            raw_date = entry.get("published") or entry.get("updated")
            published = (
                _struct_to_datetime(entry.get("published_parsed"))
                or _struct_to_datetime(entry.get("updated_parsed"))
                or parse_published(raw_date)
            )

            items.append(ParsedItem(
                link=link,
                title=entry.get("title"),
                published_at=raw_date,
                published=published,
            ))

        return ParsedFeed(
            channel_link=parsed.feed.get("link"),
            title=parsed.feed.get("title"),
            items=items,
        )


def parse_feed_sync(content: str | bytes, url: str = "") -> ParsedFeed:
    """
    Synchronous feed parsing (for use when content is already fetched).

    Useful for testing or when you already have the feed content.
    """
    return FeedParser().parse(content, url)
