"""
Content Extractor - Readable article text from a URL.

Handles:
- Delegating to an external extraction service (reader API returning
  ``{"data": {"title", "content"}}``) when one is configured
- Local reader-mode extraction using trafilatura
- Fallback to BeautifulSoup boilerplate stripping for edge cases
- Rejecting pages that are not machine-readable
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from urllib.parse import quote

import aiohttp
import trafilatura
from bs4 import BeautifulSoup

from .exceptions import ExtractionError
from .results import Ok, Err
from .url_validator import validate_url, UnsafeURLError

logger = logging.getLogger(__name__)


@dataclass
class ExtractedContent:
    """Readable main content of an article."""
    url: str
    title: str
    content: str
    extractor_used: str = "trafilatura"


class ContentExtractor:
    """Fetches article pages and extracts their readable text."""

    # Elements that never hold article text
    BOILERPLATE_TAGS = [
        "script", "style", "nav", "header", "footer", "aside",
        "noscript", "iframe", "form", "button", "input",
    ]

    BOILERPLATE_SELECTORS = [
        "[class*='ad-']", "[class*='advertisement']",
        "[class*='social']", "[class*='share']",
        "[class*='related']", "[class*='newsletter']",
        "[class*='subscribe']", "[class*='comment']",
    ]

    def __init__(
        self,
        timeout: float = 10.0,
        user_agent: str | None = None,
        service_url: str | None = None,
        min_content_length: int = 200,
    ):
        self.timeout = timeout
        self.user_agent = user_agent or "RSSBriefBot/1.0"
        self.service_url = service_url.rstrip("/") if service_url else None
        self.min_content_length = min_content_length

    async def extract(self, url: str) -> ExtractedContent:
        """
        Extract readable content from an article URL.

        Raises:
            ExtractionError: page unreachable or not machine-readable
        """
        try:
            validate_url(url)
        except UnsafeURLError as e:
            raise ExtractionError(str(e), step="validate", url=url)

        if self.service_url:
            return await self._extract_with_service(url)

        html = await self._fetch_html(url)
        return self.extract_from_html(url, html)

    async def safe_extract(self, url: str) -> Ok[ExtractedContent] | Err[ExtractionError]:
        """Extract content, returning Err instead of raising."""
        try:
            return Ok(await self.extract(url))
        except ExtractionError as e:
            return Err(e)

    async def _fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }
        try:
            async with aiohttp.ClientSession(headers=headers) as session:
                async with session.get(
                    url,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                    allow_redirects=True,
                ) as resp:
                    if resp.status >= 300:
                        raise ExtractionError(f"HTTP {resp.status}", step="fetch", url=url)
                    return await resp.text(errors="replace")
        except asyncio.TimeoutError:
            raise ExtractionError(f"Timed out after {self.timeout}s", step="fetch", url=url)
        except aiohttp.ClientError as e:
            raise ExtractionError(f"Failed to fetch URL: {e}", step="fetch", url=url)
        except LookupError as e:
            # Unknown charset name in Content-Type
            raise ExtractionError(f"Unsupported page encoding: {e}", step="fetch", url=url)

    async def _extract_with_service(self, url: str) -> ExtractedContent:
        """Ask the configured reader service for the article."""
        endpoint = f"{self.service_url}/{quote(url, safe='')}"
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        try:
            async with aiohttp.ClientSession(headers=headers) as session:
                async with session.get(
                    endpoint,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as resp:
                    if resp.status >= 300:
                        raise ExtractionError(
                            f"Extraction service returned HTTP {resp.status}",
                            step="content-extraction",
                            url=url,
                        )
                    payload = await resp.json(content_type=None)
        except asyncio.TimeoutError:
            raise ExtractionError(
                f"Timed out after {self.timeout}s", step="content-extraction", url=url
            )
        except (aiohttp.ClientError, ValueError) as e:
            raise ExtractionError(
                f"Content extraction failed: {e}", step="content-extraction", url=url
            )

        return self.parse_service_payload(url, payload)

    def parse_service_payload(self, url: str, payload) -> ExtractedContent:
        """Validate the ``{"data": {"title", "content"}}`` envelope."""
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ExtractionError(
                "Extraction service response missing 'data'", step="content-extraction", url=url
            )

        content = (data.get("content") or "").strip()
        if not self.has_sufficient_content(content):
            raise ExtractionError(
                "Content is not machine-readable", step="content-extraction", url=url
            )

        return ExtractedContent(
            url=url,
            title=(data.get("title") or "").strip() or "Untitled",
            content=content,
            extractor_used="service",
        )

    def extract_from_html(self, url: str, html: str) -> ExtractedContent:
        """Extract article text from HTML: trafilatura first, BeautifulSoup second."""
        result = self._extract_with_trafilatura(url, html)
        if result and self.has_sufficient_content(result.content):
            return result

        result = self._extract_with_beautifulsoup(url, html)
        if self.has_sufficient_content(result.content):
            return result

        raise ExtractionError("Content is not machine-readable", step="html-parse", url=url)

    def _extract_with_trafilatura(self, url: str, html: str) -> ExtractedContent | None:
        try:
            content = trafilatura.extract(
                html,
                url=url,
                output_format="txt",
                include_links=False,
                include_images=False,
                include_tables=False,
                favor_recall=True,
            )
        except Exception as e:
            logger.debug(f"trafilatura failed for {url}: {e}")
            return None

        if not content:
            return None

        title = None
        metadata = trafilatura.extract_metadata(html, default_url=url)
        if metadata and metadata.title:
            title = metadata.title
        if not title:
            title = self._title_from_soup(BeautifulSoup(html, "html.parser"))

        return ExtractedContent(
            url=url,
            title=title or "Untitled",
            content=content.strip(),
            extractor_used="trafilatura",
        )

    def _extract_with_beautifulsoup(self, url: str, html: str) -> ExtractedContent:
        soup = BeautifulSoup(html, "html.parser")
        title = self._title_from_soup(soup)

        for tag in soup.find_all(self.BOILERPLATE_TAGS):
            tag.decompose()
        for selector in self.BOILERPLATE_SELECTORS:
            for element in soup.select(selector):
                element.decompose()

        article = (
            soup.find("article")
            or soup.find(attrs={"role": "main"})
            or soup.find("main")
            or soup.find(class_=re.compile(r"^(post|entry|story)[-_]?(content|body)?$", re.I))
            or soup.body
        )

        content = ""
        if article:
            paragraphs = [
                elem.get_text(" ", strip=True)
                for elem in article.find_all(["p", "h2", "h3", "li", "blockquote", "pre"])
            ]
            content = "\n\n".join(p for p in paragraphs if p)

        return ExtractedContent(
            url=url,
            title=title or "Untitled",
            content=content.strip(),
            extractor_used="beautifulsoup",
        )

    def _title_from_soup(self, soup: BeautifulSoup) -> str:
        title = ""
        if og_title := soup.find("meta", property="og:title"):
            title = og_title.get("content", "")
        if not title and (title_tag := soup.find("title")):
            title = title_tag.get_text(strip=True)
            # Drop " | Site Name" suffixes
            title = re.sub(r"\s*[|\-–—]\s*[^|\-–—]+$", "", title)
        if not title and (h1 := soup.find("h1")):
            title = h1.get_text(strip=True)
        return title.strip()

    def has_sufficient_content(self, content: str) -> bool:
        """Check if extracted content meets minimum threshold."""
        return len(content) >= self.min_content_length
