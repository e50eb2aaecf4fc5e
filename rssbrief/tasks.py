"""
Batch jobs for the periodic scheduler and the /jobs routes.

Each job builds its engine from the shared application state and runs one
batch to completion. A job whose dependencies are not configured (no LLM
key, no SMTP server) logs and does nothing.
"""

import logging

from .briefs import BriefCompiler, CompileReport
from .config import config, state
from .digest import DigestScheduler, DispatchReport
from .refresh import FeedRefreshEngine, RefreshReport
from .scheduler import JobScheduler
from .services.onboarding_service import FirstBriefResult, OnboardingService

logger = logging.getLogger(__name__)

REFRESH_JOB = "refresh"
BRIEF_JOB = "briefs"
DIGEST_JOB = "digests"


def build_refresh_engine() -> FeedRefreshEngine | None:
    if not state.db or not state.feed_parser:
        return None
    return FeedRefreshEngine(state.db, state.feed_parser, concurrency=config.REFRESH_CONCURRENCY)


def build_compiler() -> BriefCompiler | None:
    if not state.db or not state.extractor or not state.summarizer:
        return None
    return BriefCompiler(
        state.db, state.extractor, state.summarizer, concurrency=config.BRIEF_CONCURRENCY
    )


def build_digest_scheduler() -> DigestScheduler | None:
    if not state.db or not state.delivery:
        return None
    return DigestScheduler(
        state.db, state.delivery, from_addr=config.EMAIL_FROM, concurrency=config.DIGEST_CONCURRENCY
    )


def build_onboarding_service() -> OnboardingService:
    return OnboardingService(
        state.db,
        refresh_engine=build_refresh_engine(),
        compiler=build_compiler(),
        delivery=state.delivery,
        from_addr=config.EMAIL_FROM,
    )


async def refresh_feeds_job() -> RefreshReport | None:
    """Refresh every followed feed."""
    engine = build_refresh_engine()
    if not engine:
        logger.warning("Feed refresh skipped: database or feed parser not initialized")
        return None
    return await engine.refresh_all()


async def compile_briefs_job() -> CompileReport | None:
    """Compile briefs for every onboarded user."""
    compiler = build_compiler()
    if not compiler:
        logger.warning("Brief compilation skipped: no LLM provider configured")
        return None
    return await compiler.compile_all()


async def dispatch_digests_job() -> DispatchReport | None:
    """Send every digest due this hour."""
    scheduler = build_digest_scheduler()
    if not scheduler:
        logger.warning("Digest dispatch skipped: no delivery adapter configured")
        return None
    return await scheduler.dispatch()


async def first_brief_task(user_id: int) -> FirstBriefResult:
    """Background task run after onboarding."""
    return await build_onboarding_service().run_first_brief(user_id)


def register_jobs(scheduler: JobScheduler):
    """Register the three batch jobs at their configured intervals."""
    scheduler.register(REFRESH_JOB, refresh_feeds_job, config.REFRESH_INTERVAL_MINUTES)
    scheduler.register(BRIEF_JOB, compile_briefs_job, config.BRIEF_INTERVAL_MINUTES)
    scheduler.register(DIGEST_JOB, dispatch_digests_job, config.DIGEST_INTERVAL_MINUTES)
