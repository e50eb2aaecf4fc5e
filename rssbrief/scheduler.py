"""
Periodic job scheduler.

Runs the refresh, brief and digest jobs as independent background loops.
Each job carries a "running" flag: a trigger that fires while the previous
run of the same job is still in progress is skipped.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class Job:
    name: str
    func: JobFunc
    interval_minutes: float
    running: bool = False
    last_run_at: datetime | None = None
    last_error: str | None = None
    task: asyncio.Task | None = field(default=None, repr=False)


class JobAlreadyRunning(Exception):
    """A run of this job is already in progress."""
    pass


class JobScheduler:
    """
    Background scheduler for the periodic batch jobs.

    Jobs are registered before ``start()``; ``run_now()`` triggers a job
    immediately (e.g. from an HTTP route) under the same overlap guard.
    """

    def __init__(
        self,
        initial_delay: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._jobs: dict[str, Job] = {}
        self._initial_delay = initial_delay
        self._clock = clock
        self._sleep = sleep
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def register(self, name: str, func: JobFunc, interval_minutes: float):
        """Register a job to run every ``interval_minutes``."""
        self._jobs[name] = Job(name=name, func=func, interval_minutes=interval_minutes)

    def get_job(self, name: str) -> Job | None:
        return self._jobs.get(name)

    async def start(self):
        """Start one loop per registered job."""
        if self._running:
            return
        self._running = True
        for job in self._jobs.values():
            job.task = asyncio.create_task(self._loop(job))
            logger.info(f"Scheduled job '{job.name}' every {job.interval_minutes} minutes")

    async def stop(self):
        """Cancel every job loop."""
        self._running = False
        for job in self._jobs.values():
            if job.task:
                job.task.cancel()
                try:
                    await job.task
                except asyncio.CancelledError:
                    pass
                job.task = None
        logger.info("Job scheduler stopped")

    async def run_now(self, name: str) -> Any:
        """
        Run a job once and return its result.

        Raises:
            KeyError: unknown job
            JobAlreadyRunning: the job is mid-run
        """
        job = self._jobs[name]
        if job.running:
            raise JobAlreadyRunning(f"Job '{name}' is already running")

        job.running = True
        try:
            result = await job.func()
            job.last_error = None
            return result
        except Exception as e:
            job.last_error = str(e)
            raise
        finally:
            job.running = False
            job.last_run_at = datetime.now()

    async def _loop(self, job: Job):
        """
        Main loop for one job, at a fixed rate.

        Ticks are ``interval`` apart from the first run regardless of how
        long each run takes, so an hourly job hits every hour. A run that
        overruns its interval is followed immediately by the next one.
        """
        interval = job.interval_minutes * 60
        next_run = self._clock() + self._initial_delay

        while self._running:
            await self._sleep(max(0.0, next_run - self._clock()))
            if not self._running:
                break
            try:
                await self.run_now(job.name)
            except asyncio.CancelledError:
                break
            except JobAlreadyRunning:
                logger.info(f"Skipping '{job.name}': previous run still in progress")
            except Exception as e:
                logger.exception(f"Error in job '{job.name}': {e}")

            next_run += interval
            now = self._clock()
            if next_run < now:
                logger.warning(f"Job '{job.name}' overran its {job.interval_minutes} minute interval")
                next_run = now
