"""Background ticker that starts pending jobs at their planned minute."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from courtbot.domain.jobs import JobService, StoreError
from courtbot.domain.runs import RunExecutor

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def make_clock(timezone: Optional[str] = None) -> Clock:
    if timezone:
        zone = ZoneInfo(timezone)
        return lambda: datetime.now(zone)
    return datetime.now


class SchedulerTicker:
    """Periodically promotes due ``pending`` jobs to runs.

    Each tick lists the jobs, keeps those still ``pending`` whose ``planTime``
    equals the current ``HH:MM`` and executes them one after another. Ticks run
    as separate tasks, so a booking that takes minutes does not hold back the
    next tick. A job is claimed for the minute before its run starts, which
    keeps overlapping ticks from triggering it twice before the ``started``
    status is written.

    Scheduled runs use synthetic run ids and are not registered for
    cancellation: only runs triggered through the API can be cancelled.
    """

    def __init__(
        self,
        jobs: JobService,
        executor: RunExecutor,
        *,
        interval: float = 5.0,
        clock: Optional[Clock] = None,
    ) -> None:
        self.jobs = jobs
        self.executor = executor
        self.interval = interval
        self._clock = clock or datetime.now
        self._loop_task: Optional[asyncio.Task] = None
        self._ticks: set[asyncio.Task] = set()
        self._claimed: set[tuple[str, str]] = set()

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.is_running:
            logger.warning("Scheduler already running")
            return
        logger.info("Starting scheduler, ticker will run every %.1f seconds", self.interval)
        self._loop_task = asyncio.create_task(self._run(), name="scheduler-ticker")

    async def stop(self) -> None:
        tasks = [task for task in (self._loop_task, *self._ticks) if task is not None and not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._ticks.clear()
        logger.info("Scheduler stopped")

    async def tick(self, now: Optional[datetime] = None) -> list[str]:
        """Evaluate the jobs once and return the run ids that were triggered."""
        now = now or self._clock()
        minute = now.strftime("%H:%M")
        minute_key = now.strftime("%Y-%m-%d %H:%M")
        self._claimed = {claim for claim in self._claimed if claim[1] == minute_key}

        logger.debug("Scheduler ticker running at %s", minute)
        try:
            jobs = await self.jobs.list_jobs()
        except StoreError as exc:
            logger.error("Scheduler could not read reservations: %s", exc)
            return []

        due = [job for job in jobs if job.is_due(minute) and (job.id, minute_key) not in self._claimed]
        if not due:
            return []
        for job in due:
            self._claimed.add((job.id, minute_key))

        triggered: list[str] = []
        for job in due:
            run_id = f"scheduled-{job.id}-{uuid.uuid4().hex[:8]}"
            triggered.append(run_id)
            logger.info(
                "Triggering reservation %s for %s at %s:00 (run %s)",
                job.id,
                job.location,
                job.hour,
                run_id,
            )
            try:
                result = await self.executor.execute(
                    run_id,
                    job.to_worker_payload(),
                    job_id=job.id,
                    cancellable=False,
                )
            except asyncio.CancelledError:
                raise
            except Exception:  # pylint: disable=broad-except
                logger.exception("Critical error executing reservation %s", job.id)
                continue
            logger.info(
                "Reservation %s finished with status: %s",
                job.id,
                "ok" if result.success else "failed",
            )
        return triggered

    async def _run(self) -> None:
        while True:
            task = asyncio.create_task(self.tick(), name="scheduler-tick")
            self._ticks.add(task)
            task.add_done_callback(self._tick_done)
            await asyncio.sleep(self.interval)

    def _tick_done(self, task: asyncio.Task) -> None:
        self._ticks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Scheduler tick failed: %r", task.exception())
