"""Booking worker processes started with asyncio.subprocess."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Any, AsyncIterator, Mapping, Optional, Sequence

from courtbot.core.config import WorkerSettings
from courtbot.domain.runs.exceptions import LaunchError

logger = logging.getLogger(__name__)

STREAM_LIMIT = 1024 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class ProcessWorkerHandle:
    """Live reference to one worker process.

    Output streams are exposed as async line iterators; each may only be
    consumed once.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        *,
        config_path: Optional[Path] = None,
        kill_timeout: float = 5.0,
    ) -> None:
        self._process = process
        self._config_path = config_path
        self._kill_timeout = kill_timeout
        self._cancel_requested = False
        self._kill_task: Optional[asyncio.Task] = None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    def stdout_lines(self) -> AsyncIterator[str]:
        return _read_lines(self._process.stdout, self.pid)

    def stderr_lines(self) -> AsyncIterator[str]:
        return _read_lines(self._process.stderr, self.pid)

    def terminate(self) -> None:
        if self._process.returncode is not None:
            return
        self._cancel_requested = True
        try:
            self._process.terminate()
        except ProcessLookupError:
            return
        logger.info("Sent SIGTERM to worker pid %s", self.pid)
        if self._kill_task is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._kill_task = loop.create_task(self._kill_after_timeout())

    async def wait(self) -> int:
        code = await self._process.wait()
        if self._kill_task is not None and not self._kill_task.done():
            self._kill_task.cancel()
        return code

    async def cleanup(self) -> None:
        if self._kill_task is not None and not self._kill_task.done():
            self._kill_task.cancel()
        if self._config_path is not None:
            await asyncio.to_thread(self._config_path.unlink, missing_ok=True)
            self._config_path = None

    async def _kill_after_timeout(self) -> None:
        try:
            await asyncio.wait_for(asyncio.shield(self._process.wait()), timeout=self._kill_timeout)
        except asyncio.TimeoutError:
            logger.warning("Worker pid %s ignored SIGTERM for %.1fs, killing", self.pid, self._kill_timeout)
            try:
                self._process.kill()
            except ProcessLookupError:
                pass


async def _read_lines(stream: Optional[asyncio.StreamReader], pid: Optional[int]) -> AsyncIterator[str]:
    if stream is None:
        return
    while True:
        try:
            raw = await stream.readline()
        except ValueError:
            logger.warning("Worker pid %s wrote a line longer than %d bytes, skipped", pid, STREAM_LIMIT)
            continue
        if not raw:
            break
        yield raw.decode("utf-8", errors="replace").rstrip("\r\n")


class SubprocessWorkerLauncher:
    """Starts the configured worker command for a run payload.

    The payload is written to a per-run JSON file whose path is passed with
    ``--config`` and in ``BOOKING_CONFIG_PATH``.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        runs_dir: str | Path,
        workdir: str | Path | None = None,
        kill_timeout: float = 5.0,
        dry_run: bool = False,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.command = list(command)
        self.runs_dir = Path(runs_dir)
        self.workdir = Path(workdir) if workdir else None
        self.kill_timeout = kill_timeout
        self.dry_run = dry_run
        self.env = dict(env or {})

    @classmethod
    def from_settings(cls, settings: WorkerSettings) -> "SubprocessWorkerLauncher":
        return cls(
            settings.command,
            runs_dir=settings.runs_dir,
            workdir=settings.workdir,
            kill_timeout=settings.kill_timeout,
            dry_run=settings.dry_run,
        )

    async def launch(self, parameters: Mapping[str, Any], run_id: str) -> ProcessWorkerHandle:
        if not self.command:
            raise LaunchError("worker command is not configured")

        try:
            config_path = await asyncio.to_thread(self._write_config, parameters, run_id)
        except (OSError, TypeError, ValueError) as exc:
            raise LaunchError(f"failed to write worker config for run {run_id}: {exc}") from exc

        argv = [*self.command, "--config", str(config_path)]
        if self.dry_run or parameters.get("dryRun"):
            argv.append("--dry-run")
        env = {
            **os.environ,
            **self.env,
            "BOOKING_CONFIG_PATH": str(config_path),
            "BOOKING_RUN_ID": run_id,
        }

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.workdir) if self.workdir else None,
                env=env,
                limit=STREAM_LIMIT,
            )
        except (OSError, ValueError) as exc:
            await asyncio.to_thread(config_path.unlink, missing_ok=True)
            raise LaunchError(f"failed to start worker {argv[0]!r}: {exc}") from exc

        logger.info("Worker for run %s started (pid %s)", run_id, process.pid)
        return ProcessWorkerHandle(process, config_path=config_path, kill_timeout=self.kill_timeout)

    def _write_config(self, parameters: Mapping[str, Any], run_id: str) -> Path:
        text = json.dumps(dict(parameters), indent=2, ensure_ascii=False)
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        safe_id = _UNSAFE_CHARS.sub("_", run_id) or "run"
        path = (self.runs_dir / f"{safe_id}-{uuid.uuid4().hex[:8]}.json").resolve()
        path.write_text(text, encoding="utf-8")
        return path
