"""Simple dependency container for wiring core services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from courtbot.core.config import Settings, get_settings
from courtbot.domain.jobs import JobService
from courtbot.domain.runs import LogBroadcaster, RunExecutor, RunRegistry
from courtbot.domain.runs.worker import WorkerLauncher
from courtbot.infrastructure.worker import SubprocessWorkerLauncher
from courtbot.services import SchedulerTicker, make_clock

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    jobs: JobService
    launcher: WorkerLauncher
    registry: RunRegistry
    broadcaster: LogBroadcaster
    executor: RunExecutor
    scheduler: SchedulerTicker

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        launcher: WorkerLauncher | None = None,
    ) -> "ApplicationContainer":
        jobs = JobService.with_path(settings.store_path)
        launcher = launcher or SubprocessWorkerLauncher.from_settings(settings.worker)
        registry = RunRegistry()
        broadcaster = LogBroadcaster()
        executor = RunExecutor(
            jobs,
            launcher,
            registry,
            broadcaster,
            success_marker=settings.success_marker,
            drain_timeout=settings.worker.drain_timeout,
        )
        scheduler = SchedulerTicker(
            jobs,
            executor,
            interval=settings.tick_interval,
            clock=make_clock(settings.timezone),
        )
        return cls(
            settings=settings,
            jobs=jobs,
            launcher=launcher,
            registry=registry,
            broadcaster=broadcaster,
            executor=executor,
            scheduler=scheduler,
        )

    async def startup(self) -> None:
        """Start background services (the scheduler ticker)."""
        if self.settings.scheduler.enabled:
            self.scheduler.start()
        else:
            logger.info("Scheduler disabled by configuration")

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        cancelled = self.registry.cancel_all()
        if cancelled:
            logger.info("Terminated %d in-flight run(s)", cancelled)
        await self.executor.shutdown()
        self.broadcaster.close_all()


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer.from_settings(get_settings())


__all__ = ["ApplicationContainer", "get_container"]
