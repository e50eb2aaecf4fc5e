"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .database import Database
    from .feeds import FeedParser
    from .extractors import ContentExtractor
    from .summarizer import Summarizer
    from .delivery import DeliveryAdapter
    from .providers import LLMProvider
    from .scheduler import JobScheduler

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


class Config:
    """Application configuration from environment."""
    # LLM Provider configuration
    # Set one of these API keys based on your preferred provider
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")

    # Preferred provider: "anthropic", "openai", or "google"
    # If not set, uses the first available key in order: Anthropic > OpenAI > Google
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "")

    # Optional: override the default model for the selected provider
    LLM_MODEL: str = os.getenv("LLM_MODEL", "")
    LLM_TIMEOUT: float = float(os.getenv("LLM_TIMEOUT", "60"))

    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/rssbrief.db"))
    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    # Requests per minute per IP; 0 disables
    RATE_LIMIT_PER_MINUTE: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

    # Fetching
    USER_AGENT: str = os.getenv("USER_AGENT", "RSSBriefBot/1.0")
    FEED_TIMEOUT: float = float(os.getenv("FEED_TIMEOUT", "2"))
    EXTRACTION_TIMEOUT: float = float(os.getenv("EXTRACTION_TIMEOUT", "10"))
    # e.g. "https://r.jina.ai" - when empty, pages are extracted locally
    EXTRACTION_SERVICE_URL: str = os.getenv("EXTRACTION_SERVICE_URL", "")

    # Concurrency limits per batch
    REFRESH_CONCURRENCY: int = int(os.getenv("REFRESH_CONCURRENCY", "5"))
    BRIEF_CONCURRENCY: int = int(os.getenv("BRIEF_CONCURRENCY", "5"))
    DIGEST_CONCURRENCY: int = int(os.getenv("DIGEST_CONCURRENCY", "3"))

    # Periodic jobs (minutes)
    ENABLE_SCHEDULER: bool = _parse_bool(os.getenv("ENABLE_SCHEDULER"), default=True)
    REFRESH_INTERVAL_MINUTES: int = int(os.getenv("REFRESH_INTERVAL_MINUTES", "60"))
    BRIEF_INTERVAL_MINUTES: int = int(os.getenv("BRIEF_INTERVAL_MINUTES", "180"))
    DIGEST_INTERVAL_MINUTES: int = int(os.getenv("DIGEST_INTERVAL_MINUTES", "60"))

    # Email delivery
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = _parse_bool(os.getenv("SMTP_USE_TLS"), default=True)
    SMTP_TIMEOUT: float = float(os.getenv("SMTP_TIMEOUT", "30"))
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "RSSBrief <brief@localhost>")

    @classmethod
    def has_llm_key(cls) -> bool:
        """Check if any LLM API key is configured."""
        return bool(cls.ANTHROPIC_API_KEY or cls.OPENAI_API_KEY or cls.GOOGLE_API_KEY)

    @classmethod
    def has_smtp(cls) -> bool:
        """Check if outgoing mail is configured."""
        return bool(cls.SMTP_HOST)


config = Config()


class AppState:
    """Shared application state."""
    db: "Database | None" = None
    provider: "LLMProvider | None" = None  # LLM provider instance
    feed_parser: "FeedParser | None" = None
    extractor: "ContentExtractor | None" = None
    summarizer: "Summarizer | None" = None
    delivery: "DeliveryAdapter | None" = None
    scheduler: "JobScheduler | None" = None


state = AppState()


def get_db() -> "Database":
    """Dependency to get database instance."""
    if not state.db:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return state.db
