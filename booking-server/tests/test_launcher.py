"""Tests for SubprocessWorkerLauncher using the fake worker script."""

import json
import sys
from pathlib import Path

import pytest

from courtbot.core.config import WorkerSettings
from courtbot.domain.runs import LaunchError, LogBroadcaster, RunExecutor, RunRegistry, RunState
from courtbot.infrastructure.worker import SubprocessWorkerLauncher

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")


@pytest.fixture
def runs_dir(tmp_path):
    return tmp_path / "runs"


@pytest.fixture
def subprocess_launcher(worker_command, runs_dir):
    return SubprocessWorkerLauncher(worker_command, runs_dir=runs_dir, kill_timeout=2.0)


async def read_all(handle):
    stdout = [line async for line in handle.stdout_lines()]
    stderr = [line async for line in handle.stderr_lines()]
    return stdout, stderr, await handle.wait()


class TestLaunch:
    async def test_worker_reads_payload_from_config_file(self, subprocess_launcher, runs_dir):
        payload = {"reservationId": "r1", "script": {"stdout": ["Step 1", "RESERVATION SUCCESS"], "printEnv": True}}

        handle = await subprocess_launcher.launch(payload, "r1")
        stdout, stderr, code = await read_all(handle)

        assert code == 0
        assert stderr == []
        assert stdout[0] == "run=r1"
        config_path = stdout[1].split("=", 1)[1]
        assert json.loads(Path(config_path).read_text(encoding="utf-8")) == payload
        assert stdout[2:] == ["Step 1", "RESERVATION SUCCESS"]

        await handle.cleanup()
        assert list(runs_dir.iterdir()) == []

    async def test_exit_code_and_stderr(self, subprocess_launcher):
        handle = await subprocess_launcher.launch({"script": {"stderr": ["bad input"], "exitCode": 3}}, "r1")

        _, stderr, code = await read_all(handle)

        assert code == 3
        assert stderr == ["bad input"]
        await handle.cleanup()

    async def test_dry_run_flag(self, worker_command, runs_dir):
        launcher = SubprocessWorkerLauncher(worker_command, runs_dir=runs_dir, dry_run=True)

        handle = await launcher.launch({}, "r1")
        stdout, _, _ = await read_all(handle)

        assert stdout == ["DRY RUN"]
        await handle.cleanup()

    async def test_dry_run_requested_by_payload(self, subprocess_launcher):
        handle = await subprocess_launcher.launch({"dryRun": True}, "r1")
        stdout, _, _ = await read_all(handle)
        assert stdout == ["DRY RUN"]
        await handle.cleanup()

    async def test_run_id_is_sanitised_in_file_name(self, subprocess_launcher, runs_dir):
        handle = await subprocess_launcher.launch({"script": {"sleep": 5}}, "../../etc/passwd")

        names = [path.name for path in runs_dir.iterdir()]

        assert len(names) == 1
        assert names[0].startswith(".._.._etc_passwd-")
        handle.terminate()
        await handle.wait()
        await handle.cleanup()

    async def test_missing_executable_raises_launch_error(self, runs_dir):
        launcher = SubprocessWorkerLauncher(["/nonexistent/booking-worker"], runs_dir=runs_dir)

        with pytest.raises(LaunchError):
            await launcher.launch({}, "r1")
        assert list(runs_dir.iterdir()) == []

    async def test_unserializable_payload_leaves_no_config(self, subprocess_launcher, runs_dir):
        runs_dir.mkdir(parents=True)

        with pytest.raises(LaunchError, match="worker config"):
            await subprocess_launcher.launch({"when": object()}, "r1")
        assert list(runs_dir.iterdir()) == []

    async def test_empty_command_raises_launch_error(self, runs_dir):
        with pytest.raises(LaunchError):
            await SubprocessWorkerLauncher([], runs_dir=runs_dir).launch({}, "r1")

    def test_from_settings(self, runs_dir):
        launcher = SubprocessWorkerLauncher.from_settings(
            WorkerSettings(command=["node", "index.js"], runs_dir=runs_dir, dry_run=True)
        )
        assert launcher.command == ["node", "index.js"]
        assert launcher.dry_run is True


class TestTerminate:
    async def test_terminate_stops_worker(self, subprocess_launcher):
        handle = await subprocess_launcher.launch({"script": {"sleep": 30}}, "r1")

        handle.terminate()
        code = await handle.wait()

        assert handle.cancel_requested
        assert code == -15
        await handle.cleanup()

    async def test_terminate_after_exit_is_noop(self, subprocess_launcher):
        handle = await subprocess_launcher.launch({}, "r1")
        await read_all(handle)

        handle.terminate()

        assert not handle.cancel_requested
        await handle.cleanup()


class TestWithExecutor:
    async def test_real_worker_success(self, subprocess_launcher, job_service):
        executor = RunExecutor(job_service, subprocess_launcher, RunRegistry(), LogBroadcaster(), drain_timeout=2.0)

        result = await executor.execute("r1", {"script": {"stdout": ["RESERVATION SUCCESS"]}})

        assert result.state == RunState.SUCCEEDED

    async def test_real_worker_without_marker_fails(self, subprocess_launcher, job_service):
        executor = RunExecutor(job_service, subprocess_launcher, RunRegistry(), LogBroadcaster(), drain_timeout=2.0)

        result = await executor.execute("r1", {"script": {"stdout": ["No court left"]}})

        assert result.state == RunState.FAILED
        assert result.exit_code == 0
