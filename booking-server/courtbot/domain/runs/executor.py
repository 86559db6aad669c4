"""Run orchestration: one booking worker execution from launch to outcome."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from collections import deque
from typing import Any, Deque, Dict, Mapping, Optional

from courtbot.domain.jobs.exceptions import JobError, StoreError
from courtbot.domain.jobs.models import JobStatus
from courtbot.domain.jobs.service import JobService

from .broadcaster import LogBroadcaster
from .exceptions import LaunchError, RunConflictError, RunNotFoundError
from .models import RunEvent, RunResult, RunState
from .registry import RunRegistry
from .worker import WorkerHandle, WorkerLauncher

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_MARKER = "RESERVATION SUCCESS"
STDERR_TAIL_LINES = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunExecutor:
    """Executes booking runs and keeps run-scoped state consistent.

    A run is a success only when the worker exits with code 0 *and* printed
    the success marker on stdout at least once. A clean exit without the
    marker (dry run, no free slot) is a failure.

    Every run ends with exactly one ``result`` event followed by one ``end``
    event, and leaves no registry entry behind, whatever happens in between.
    """

    def __init__(
        self,
        jobs: JobService,
        launcher: WorkerLauncher,
        registry: RunRegistry,
        broadcaster: LogBroadcaster,
        *,
        success_marker: str = DEFAULT_SUCCESS_MARKER,
        drain_timeout: float = 5.0,
    ) -> None:
        self.jobs = jobs
        self.launcher = launcher
        self.registry = registry
        self.broadcaster = broadcaster
        self.success_marker = success_marker
        self.drain_timeout = drain_timeout
        self._tasks: Dict[str, asyncio.Task] = {}

    def is_running(self, run_id: str) -> bool:
        task = self._tasks.get(run_id)
        return (task is not None and not task.done()) or run_id in self.registry

    def start(
        self,
        run_id: str,
        parameters: Mapping[str, Any],
        *,
        job_id: Optional[str] = None,
    ) -> asyncio.Task:
        """Schedule a cancellable run in the background and return at once.

        The run id is reserved before returning, so the run can be cancelled
        even while its worker is still being launched.
        """
        if self.is_running(run_id):
            raise RunConflictError(f"run {run_id} is already in flight")
        self.registry.reserve(run_id)
        task = asyncio.create_task(
            self._execute(run_id, parameters, job_id=job_id, cancellable=True, reserved=True),
            name=f"run-{run_id}",
        )
        self._tasks[run_id] = task
        task.add_done_callback(lambda done: self._forget(run_id, done))
        return task

    async def shutdown(self) -> None:
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    def cancel(self, run_id: str) -> None:
        """Request cancellation of an in-flight API-triggered run."""
        if not self.registry.cancel(run_id):
            raise RunNotFoundError(f"no active run found for {run_id}")
        self.broadcaster.publish(run_id, RunEvent.notice("Cancellation requested"))

    async def execute(
        self,
        run_id: str,
        parameters: Mapping[str, Any],
        *,
        job_id: Optional[str] = None,
        cancellable: bool = True,
    ) -> RunResult:
        return await self._execute(run_id, parameters, job_id=job_id, cancellable=cancellable, reserved=False)

    async def _execute(
        self,
        run_id: str,
        parameters: Mapping[str, Any],
        *,
        job_id: Optional[str],
        cancellable: bool,
        reserved: bool,
    ) -> RunResult:
        if cancellable and not reserved:
            self.registry.reserve(run_id)

        started_at = _utcnow()
        state = RunState.STARTING
        handle: Optional[WorkerHandle] = None
        exit_code: Optional[int] = None
        observed = False
        error: Optional[str] = None

        logger.info("Run %s starting (job %s)", run_id, job_id or "-")
        try:
            await self._persist(job_id, JobStatus.STARTED)
            self.broadcaster.publish(run_id, RunEvent.notice("Run started"))

            if cancellable and self.registry.is_cancelled(run_id):
                state = RunState.CANCELLED
                error = "run cancelled before the worker started"
                logger.info("Run %s cancelled before launch", run_id)
            else:
                try:
                    handle = await self.launcher.launch(parameters, run_id)
                except LaunchError as exc:
                    state = RunState.FAILED
                    error = str(exc)
                    logger.error("Run %s could not launch worker: %s", run_id, exc)
                    self.broadcaster.publish(run_id, RunEvent.notice(f"Worker launch failed: {exc}"))
                else:
                    if cancellable and not self.registry.attach(run_id, handle):
                        logger.info("Run %s was cancelled while its worker was starting", run_id)
                        handle.terminate()
                    state = RunState.RUNNING
                    self.broadcaster.publish(run_id, RunEvent.notice(f"Worker started (pid {handle.pid})"))

                    observed, stderr_text, exit_code = await self._supervise(run_id, handle)
                    if handle.cancel_requested:
                        state = RunState.CANCELLED
                        error = "run cancelled"
                    elif exit_code == 0 and observed:
                        state = RunState.SUCCEEDED
                    else:
                        state = RunState.FAILED
                        error = stderr_text or _describe_failure(exit_code, observed)
        except asyncio.CancelledError:
            if handle is not None:
                handle.terminate()
            state = RunState.CANCELLED
            error = "run aborted"
            raise
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Run %s failed unexpectedly", run_id)
            if handle is not None:
                handle.terminate()
            state = RunState.FAILED
            error = f"internal error: {exc}"
        finally:
            if cancellable:
                self.registry.unregister(run_id, handle)
            result = RunResult(
                run_id=run_id,
                job_id=job_id,
                state=state if state.is_terminal else RunState.FAILED,
                exit_code=exit_code,
                success_observed=observed,
                error=error,
                started_at=started_at,
                finished_at=_utcnow(),
            )
            await self._finish(result, handle)

        return result

    async def _supervise(self, run_id: str, handle: WorkerHandle) -> tuple[bool, str, int]:
        observed = False
        stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        async def pump_stdout() -> None:
            nonlocal observed
            async for line in handle.stdout_lines():
                self.broadcaster.publish(run_id, RunEvent.log(line, stream="stdout"))
                if not observed and self.success_marker in line:
                    observed = True
                    logger.info("Run %s reported success marker", run_id)

        async def pump_stderr() -> None:
            async for line in handle.stderr_lines():
                stderr_tail.append(line)
                self.broadcaster.publish(run_id, RunEvent.log(line, stream="stderr"))

        readers = [
            asyncio.create_task(pump_stdout(), name=f"run-{run_id}-stdout"),
            asyncio.create_task(pump_stderr(), name=f"run-{run_id}-stderr"),
        ]
        try:
            exit_code = await handle.wait()
            done, pending = await asyncio.wait(readers, timeout=self.drain_timeout)
            if pending:
                logger.warning("Run %s output still open %.1fs after exit, dropping the rest", run_id, self.drain_timeout)
            for task in done:
                task.result()
        finally:
            for task in readers:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)

        logger.info("Run %s worker exited with code %s", run_id, exit_code)
        return observed, "\n".join(stderr_tail), exit_code

    async def _finish(self, result: RunResult, handle: Optional[WorkerHandle]) -> None:
        final_status = JobStatus.OK if result.success else JobStatus.FAILED
        try:
            await self._persist(result.job_id, final_status)
            self.broadcaster.publish(
                result.run_id,
                RunEvent.result(
                    success=result.success,
                    exit_code=result.exit_code,
                    cancelled=result.cancelled,
                    message=_summary(result),
                ),
            )
            self.broadcaster.publish(result.run_id, RunEvent.end())
        finally:
            self.broadcaster.unsubscribe(result.run_id)
            if handle is not None:
                try:
                    await handle.cleanup()
                except OSError as exc:
                    logger.warning("Run %s cleanup failed: %s", result.run_id, exc)
        logger.info(
            "Run %s finished: %s (exit code %s)",
            result.run_id,
            result.state.value,
            result.exit_code,
        )

    async def _persist(self, job_id: Optional[str], status: JobStatus) -> None:
        if job_id is None:
            return
        try:
            await self.jobs.transition(job_id, status)
        except (JobError, StoreError) as exc:
            logger.warning("Run could not mark job %s as %s: %s", job_id, status.value, exc)

    def _forget(self, run_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(run_id) is task:
            del self._tasks[run_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Run task %s raised: %r", run_id, task.exception())


def _describe_failure(exit_code: Optional[int], observed: bool) -> str:
    if exit_code == 0 and not observed:
        return "worker exited cleanly without reporting a reservation"
    return f"worker exited with code {exit_code}"


def _summary(result: RunResult) -> str:
    if result.success:
        return "Reservation succeeded"
    if result.cancelled:
        return "Run cancelled"
    return result.error or "Reservation failed"
