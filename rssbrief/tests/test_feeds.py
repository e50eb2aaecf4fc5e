"""
Tests for feed fetching and parsing.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from rssbrief.exceptions import FetchError, ParseError
from rssbrief.feeds import FeedParser, parse_feed_sync, parse_published
from rssbrief.results import Err, Ok

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>https://example.com/</link>
    <item>
      <title>First post</title>
      <link>https://example.com/first</link>
      <pubDate>Mon, 12 Jan 2026 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No date</title>
      <link>https://example.com/undated</link>
    </item>
    <item>
      <title>No link</title>
    </item>
  </channel>
</rss>"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <link href="https://atom.example.com/" rel="alternate"/>
  <entry>
    <title>Atom entry</title>
    <link href="https://atom.example.com/entry" rel="alternate"/>
    <updated>2026-01-11T08:30:00Z</updated>
  </entry>
</feed>"""


class TestParse:
    """Tests for parsing feed payloads."""

    def test_parses_rss(self):
        feed = parse_feed_sync(RSS_FEED)

        assert feed.title == "Example Blog"
        assert feed.channel_link == "https://example.com/"
        assert len(feed.items) == 3
        first = feed.items[0]
        assert first.link == "https://example.com/first"
        assert first.title == "First post"
        assert first.published == datetime(2026, 1, 12, 9, 0, tzinfo=timezone.utc)

    def test_missing_optional_fields_are_tolerated(self):
        feed = parse_feed_sync(RSS_FEED)

        assert feed.items[1].published is None
        assert feed.items[1].published_at is None
        assert feed.items[2].link is None

    def test_parses_atom(self):
        feed = parse_feed_sync(ATOM_FEED)

        assert feed.channel_link == "https://atom.example.com/"
        assert feed.items[0].link == "https://atom.example.com/entry"
        assert feed.items[0].published == datetime(2026, 1, 11, 8, 30, tzinfo=timezone.utc)

    def test_html_page_is_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            parse_feed_sync("<html><body><p>Not a feed</p></body></html>", "https://example.com")
        assert exc_info.value.step == "parse"
        assert exc_info.value.url == "https://example.com"

    def test_garbage_is_parse_error(self):
        with pytest.raises(ParseError):
            parse_feed_sync("this is not xml at all")


class TestParsePublished:
    """Tests for date string parsing."""

    def test_rfc822(self):
        assert parse_published("Mon, 12 Jan 2026 09:00:00 +0100") == datetime(
            2026, 1, 12, 8, 0, tzinfo=timezone.utc
        )

    def test_iso8601(self):
        assert parse_published("2026-01-12T09:00:00Z") == datetime(
            2026, 1, 12, 9, 0, tzinfo=timezone.utc
        )

    def test_naive_is_utc(self):
        assert parse_published("2026-01-12T09:00:00").tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "yesterday-ish"])
    def test_missing_or_invalid(self, value):
        assert parse_published(value) is None


class TestFetch:
    """Tests for fetch error handling."""

    @pytest.mark.asyncio
    async def test_safe_fetch_ok(self):
        parser = FeedParser()
        with patch.object(parser, "_download", AsyncMock(return_value=RSS_FEED)):
            result = await parser.safe_fetch("https://example.com/feed")

        assert isinstance(result, Ok)
        assert len(result.value.items) == 3

    @pytest.mark.asyncio
    async def test_safe_fetch_network_error(self):
        parser = FeedParser()
        error = FetchError("HTTP 503", url="https://example.com/feed")
        with patch.object(parser, "_download", AsyncMock(side_effect=error)):
            result = await parser.safe_fetch("https://example.com/feed")

        assert isinstance(result, Err)
        assert result.error.step == "fetch"

    @pytest.mark.asyncio
    async def test_mislabelled_charset_still_parses(self, serve_bytes):
        # Declared UTF-8, but the title is Latin-1 encoded
        body = RSS_FEED.replace("First post", "Café news").encode("latin-1")
        session = serve_bytes(body, charset="utf-8")
        result = await FeedParser().safe_fetch("https://example.com/feed")

        assert session.requested == ["https://example.com/feed"]
        assert isinstance(result, Ok)
        assert result.value.items[0].link == "https://example.com/first"
        assert result.value.items[0].title.startswith("Caf")

    @pytest.mark.asyncio
    async def test_undecodable_bytes_do_not_raise(self, serve_bytes):
        body = b"<rss><channel>\xff\xfe\xfa</channel></rss>"
        serve_bytes(body, charset="utf-8")
        result = await FeedParser().safe_fetch("https://example.com/feed")

        assert isinstance(result, (Ok, Err))
        if isinstance(result, Ok):
            assert result.value.items == []

    @pytest.mark.asyncio
    async def test_safe_fetch_parse_error(self):
        parser = FeedParser()
        with patch.object(parser, "_download", AsyncMock(return_value="<html></html>")):
            result = await parser.safe_fetch("https://example.com/feed")

        assert isinstance(result, Err)
        assert isinstance(result.error, ParseError)

    @pytest.mark.asyncio
    async def test_blocked_url_is_fetch_error(self):
        parser = FeedParser()
        with pytest.raises(FetchError):
            await parser.fetch("http://localhost/feed.xml")
