"""
Job routes: run a batch job once on demand.

Runs go through the job scheduler when it exists, so an on-demand run and
a periodic run of the same job never overlap.
"""

from typing import Any, Awaitable, Callable

from fastapi import APIRouter, HTTPException

from ..config import state
from ..scheduler import JobAlreadyRunning
from ..schemas import CompileReportResponse, DispatchReportResponse, RefreshReportResponse
from ..tasks import (
    BRIEF_JOB,
    DIGEST_JOB,
    REFRESH_JOB,
    compile_briefs_job,
    dispatch_digests_job,
    refresh_feeds_job,
)

router = APIRouter(prefix="/jobs", tags=["jobs"])


async def _run(name: str, func: Callable[[], Awaitable[Any]]) -> Any:
    if state.scheduler and state.scheduler.get_job(name):
        try:
            result = await state.scheduler.run_now(name)
        except JobAlreadyRunning as e:
            raise HTTPException(status_code=409, detail=str(e))
    else:
        result = await func()

    if result is None:
        raise HTTPException(status_code=503, detail=f"Job '{name}' is not configured")
    return result


@router.post("/refresh")
async def run_refresh() -> RefreshReportResponse:
    """Refresh every followed feed now."""
    return RefreshReportResponse.from_report(await _run(REFRESH_JOB, refresh_feeds_job))


@router.post("/briefs")
async def run_briefs() -> CompileReportResponse:
    """Compile briefs for every onboarded user now."""
    return CompileReportResponse.from_report(await _run(BRIEF_JOB, compile_briefs_job))


@router.post("/digests")
async def run_digests() -> DispatchReportResponse:
    """Send every digest due this hour now."""
    return DispatchReportResponse.from_report(await _run(DIGEST_JOB, dispatch_digests_job))
