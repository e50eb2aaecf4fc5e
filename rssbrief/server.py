"""
RSS Brief API Server

FastAPI application that wires the pipeline together and exposes:
- Job triggers (feed refresh, brief compilation, digest dispatch)
- Per-user briefs, schedule, topics and onboarding
- Health check

The periodic jobs run inside the server process via ``JobScheduler``.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .config import config, state
from .database import Database
from .delivery import SMTPDeliveryAdapter
from .extractors import ContentExtractor
from .feeds import FeedParser
from .providers import get_provider_from_env
from .rate_limit import setup_rate_limiting
from .routes import jobs_router, misc_router, users_router
from .scheduler import JobScheduler
from .summarizer import Summarizer
from .tasks import register_jobs

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    # Startup - skip if already initialized (e.g., by tests)
    if state.db is None:
        configure_logging()
        state.db = Database(config.DB_PATH)
        state.feed_parser = FeedParser(timeout=config.FEED_TIMEOUT, user_agent=config.USER_AGENT)
        state.extractor = ContentExtractor(
            timeout=config.EXTRACTION_TIMEOUT,
            user_agent=config.USER_AGENT,
            service_url=config.EXTRACTION_SERVICE_URL or None,
        )

        # Initialize LLM provider (supports Anthropic, OpenAI, Google)
        state.provider = get_provider_from_env(
            anthropic_key=config.ANTHROPIC_API_KEY or None,
            openai_key=config.OPENAI_API_KEY or None,
            google_key=config.GOOGLE_API_KEY or None,
            preferred_provider=config.LLM_PROVIDER or None,
            default_model=config.LLM_MODEL or None,
        )

        if state.provider:
            state.summarizer = Summarizer(provider=state.provider, timeout=config.LLM_TIMEOUT)
            logger.info(f"LLM provider initialized: {state.provider.name}")
        else:
            logger.warning(
                "No LLM API key configured. Set ANTHROPIC_API_KEY, OPENAI_API_KEY, "
                "or GOOGLE_API_KEY. Brief compilation disabled."
            )

        if config.has_smtp():
            state.delivery = SMTPDeliveryAdapter(
                host=config.SMTP_HOST,
                port=config.SMTP_PORT,
                username=config.SMTP_USER,
                password=config.SMTP_PASSWORD,
                use_tls=config.SMTP_USE_TLS,
                timeout=config.SMTP_TIMEOUT,
            )
        else:
            logger.warning("SMTP_HOST not set. Digest delivery disabled.")

        state.scheduler = JobScheduler()
        register_jobs(state.scheduler)
        if config.ENABLE_SCHEDULER:
            await state.scheduler.start()

    yield

    # Shutdown
    if state.scheduler:
        await state.scheduler.stop()


app = FastAPI(
    title="RSS Brief API",
    version=__version__,
    lifespan=lifespan
)

setup_rate_limiting(app)

# Include routers
app.include_router(misc_router)
app.include_router(jobs_router)
app.include_router(users_router)


def main():
    import uvicorn
    uvicorn.run("rssbrief.server:app", host="127.0.0.1", port=config.PORT)


if __name__ == "__main__":
    main()
