"""
Tests for article content extraction.
"""

from unittest.mock import AsyncMock, patch

import pytest

from rssbrief.exceptions import ExtractionError
from rssbrief.extractors import ContentExtractor
from rssbrief.results import Err, Ok

PARAGRAPH = (
    "The city council approved a new transit plan on Tuesday that adds three "
    "bus lines and extends service hours on the busiest routes through the winter. "
)

ARTICLE_HTML = f"""<html>
<head><title>Transit plan approved | City News</title></head>
<body>
  <nav><a href="/">Home</a><a href="/about">About</a></nav>
  <article>
    <h1>Transit plan approved</h1>
    <p>{PARAGRAPH}</p>
    <p>{PARAGRAPH}</p>
    <p>{PARAGRAPH}</p>
  </article>
  <footer>Copyright City News</footer>
</body>
</html>"""

EMPTY_HTML = "<html><head><title>Login</title></head><body><form><input name='u'></form></body></html>"


class TestExtractFromHtml:
    """Tests for local reader-mode extraction."""

    def test_extracts_article_text(self):
        extractor = ContentExtractor()
        result = extractor.extract_from_html("https://news.example.com/transit", ARTICLE_HTML)

        assert "transit plan" in result.content
        assert result.title

    def test_beautifulsoup_fallback_strips_boilerplate(self):
        extractor = ContentExtractor()
        with patch.object(extractor, "_extract_with_trafilatura", return_value=None):
            result = extractor.extract_from_html("https://news.example.com/transit", ARTICLE_HTML)

        assert result.extractor_used == "beautifulsoup"
        assert result.title == "Transit plan approved"
        assert "Home" not in result.content
        assert "three bus lines" in result.content

    def test_unreadable_page_raises(self):
        extractor = ContentExtractor()
        with pytest.raises(ExtractionError, match="not machine-readable"):
            extractor.extract_from_html("https://news.example.com/login", EMPTY_HTML)


class TestExtractionService:
    """Tests for the remote extraction service envelope."""

    def test_parses_envelope(self):
        extractor = ContentExtractor(service_url="https://reader.example.com/")
        payload = {"data": {"title": "Headline", "content": PARAGRAPH * 3}}

        result = extractor.parse_service_payload("https://news.example.com/a", payload)

        assert result.title == "Headline"
        assert result.extractor_used == "service"

    @pytest.mark.parametrize("payload", [{}, {"data": None}, [], "oops"])
    def test_missing_data_raises(self, payload):
        extractor = ContentExtractor(service_url="https://reader.example.com")
        with pytest.raises(ExtractionError):
            extractor.parse_service_payload("https://news.example.com/a", payload)

    def test_short_content_raises(self):
        extractor = ContentExtractor(service_url="https://reader.example.com")
        with pytest.raises(ExtractionError):
            extractor.parse_service_payload(
                "https://news.example.com/a", {"data": {"title": "x", "content": "too short"}}
            )

    @pytest.mark.asyncio
    async def test_uses_service_when_configured(self):
        extractor = ContentExtractor(service_url="https://reader.example.com")
        fake = AsyncMock(return_value=extractor.parse_service_payload(
            "https://news.example.com/a", {"data": {"title": "T", "content": PARAGRAPH * 3}}
        ))
        with patch.object(extractor, "_extract_with_service", fake), \
                patch.object(extractor, "_fetch_html", AsyncMock()) as fetch_html:
            result = await extractor.extract("https://news.example.com/a")

        assert result.title == "T"
        fake.assert_awaited_once_with("https://news.example.com/a")
        fetch_html.assert_not_awaited()


class TestSafeExtract:
    """Tests for the result-returning boundary."""

    @pytest.mark.asyncio
    async def test_network_failure_is_err_with_fetch_step(self):
        extractor = ContentExtractor()
        error = ExtractionError("Timed out after 10s", step="fetch", url="https://news.example.com/a")
        with patch.object(extractor, "_fetch_html", AsyncMock(side_effect=error)):
            result = await extractor.safe_extract("https://news.example.com/a")

        assert isinstance(result, Err)
        assert result.error.step == "fetch"

    @pytest.mark.asyncio
    async def test_ok(self):
        extractor = ContentExtractor()
        with patch.object(extractor, "_fetch_html", AsyncMock(return_value=ARTICLE_HTML)):
            result = await extractor.safe_extract("https://news.example.com/transit")

        assert isinstance(result, Ok)
        assert result.ok

    @pytest.mark.asyncio
    async def test_bad_bytes_under_declared_charset(self, serve_bytes):
        body = ARTICLE_HTML.replace("<h1>", "<h1>\xe9 ").encode("latin-1") + b"\xff\xfe"
        session = serve_bytes(body, charset="utf-8")
        extractor = ContentExtractor()
        result = await extractor.safe_extract("https://news.example.com/transit")

        assert session.requested == ["https://news.example.com/transit"]
        assert isinstance(result, Ok)
        assert "transit plan" in result.value.content

    @pytest.mark.asyncio
    async def test_private_address_rejected(self):
        extractor = ContentExtractor()
        result = await extractor.safe_extract("http://169.254.169.254/latest/meta-data")

        assert isinstance(result, Err)
        assert result.error.step == "validate"
