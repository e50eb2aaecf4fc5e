"""
Summarizer - LLM-powered article summarization.

Features:
- Multi-provider support (Anthropic, OpenAI, Google)
- Style-specific prompts: concise (essentials only) or detailed (with context)
- Optional translation of the summary into a target language
- Fixed output ceiling and explicit timeout on every model call
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from .exceptions import GenerationError
from .providers import LLMProvider
from .results import Ok, Err

logger = logging.getLogger(__name__)


class SummaryStyle(Enum):
    """Summary verbosity, also drives digest truncation."""
    CONCISE = "concise"
    DETAILED = "detailed"


@dataclass
class Summary:
    """Generated summary (and translation, when requested)."""
    text: str
    style: SummaryStyle
    model: str
    translation: str | None = None
    language: str | None = None


class Summarizer:
    """Summarizes article text with the configured LLM provider."""

    # Output ceiling for every completion
    MAX_TOKENS = 500

    # Maximum article characters sent to the model
    MAX_CONTENT_LENGTH = 12000

    SYSTEM_PROMPT = """You write summaries for a personal news digest. Readers skim these in an email, so:
- Use clear, plain language in active voice
- State facts directly; never write 'This article explains...' or 'The author discusses...'
- Do not invent details that are not in the article
- Reply with the summary text only, no headings or preamble"""

    STYLE_PROMPTS = {
        SummaryStyle.CONCISE: (
            "Provide a concise 2-sentence summary of this article. "
            "Keep only the essential facts: what happened and why it matters."
        ),
        SummaryStyle.DETAILED: (
            "Provide a detailed summary of this article in one paragraph of 4 to 6 sentences. "
            "Cover the main development, the relevant context and background, "
            "key numbers or quotes, and what comes next."
        ),
    }

    TRANSLATION_PROMPT = "Translate to {language}, maintaining tone and meaning:\n\n{text}"

    def __init__(
        self,
        provider: LLMProvider,
        timeout: float = 60.0,
        model: str | None = None,
    ):
        """
        Args:
            provider: LLM provider instance (Anthropic, OpenAI, or Google)
            timeout: Seconds to wait for each completion
            model: Optional model override for the provider
        """
        self.provider = provider
        self.timeout = timeout
        self.model = model

    def build_prompt(self, content: str, style: SummaryStyle, title: str = "") -> str:
        """Compose the style-specific instruction followed by the article."""
        content = content.strip()
        if len(content) > self.MAX_CONTENT_LENGTH:
            content = content[:self.MAX_CONTENT_LENGTH] + "..."

        parts = [self.STYLE_PROMPTS[style], ""]
        if title:
            parts.append(f"Title: {title}")
        parts.append(content)
        return "\n".join(parts)

    async def summarize(
        self,
        content: str,
        style: SummaryStyle | str = SummaryStyle.CONCISE,
        language: str | None = None,
        title: str = "",
        url: str | None = None,
    ) -> Summary:
        """
        Generate a summary for article content.

        Args:
            content: The article text to summarize
            style: concise or detailed
            language: If set, also translate the summary into this language
            title: Optional article title for context
            url: Used only for error context

        Raises:
            GenerationError: API failure, timeout, or empty output
        """
        style = SummaryStyle(style)
        if not content or not content.strip():
            raise GenerationError("Nothing to summarize", url=url)

        text = await self._generate(self.build_prompt(content, style, title), url)

        translation = None
        if language:
            translation = await self._generate(
                self.TRANSLATION_PROMPT.format(language=language, text=text), url
            )

        return Summary(
            text=text,
            style=style,
            model=self.model or self.provider.default_model,
            translation=translation,
            language=language,
        )

    async def safe_summarize(
        self,
        content: str,
        style: SummaryStyle | str = SummaryStyle.CONCISE,
        language: str | None = None,
        title: str = "",
        url: str | None = None,
    ) -> Ok[Summary] | Err[GenerationError]:
        """Summarize, returning Err instead of raising."""
        try:
            return Ok(await self.summarize(content, style, language, title, url))
        except GenerationError as e:
            return Err(e)

    async def _generate(self, prompt: str, url: str | None) -> str:
        try:
            response = await asyncio.wait_for(
                self.provider.complete_async(
                    user_prompt=prompt,
                    system_prompt=self.SYSTEM_PROMPT,
                    model=self.model,
                    max_tokens=self.MAX_TOKENS,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise GenerationError(f"AI generation timed out after {self.timeout}s", url=url)
        except Exception as e:
            # Vendor SDKs raise their own hierarchies; all of them mean "skip this item".
            raise GenerationError(f"AI generation failed: {e}", url=url) from e

        text = (response.text or "").strip()
        if not text:
            raise GenerationError("AI generation returned no text", url=url)
        return text
