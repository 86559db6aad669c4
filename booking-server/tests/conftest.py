"""
Shared pytest fixtures for the booking server tests.

Orchestration tests run against ``FakeLauncher``; launcher tests and a few
end-to-end API tests start ``fixtures/fake_worker.py`` with the current
interpreter instead of the real booking worker.
"""

import sys
from pathlib import Path

import pytest

from courtbot.core.config import (
    SchedulerSettings,
    Settings,
    StoreSettings,
    WorkerSettings,
)
from courtbot.core.container import ApplicationContainer
from courtbot.domain.jobs import JobService
from courtbot.domain.runs import LogBroadcaster, RunExecutor, RunRegistry
from courtbot.main import create_app

from tests.fakes import FakeLauncher

FAKE_WORKER = Path(__file__).parent / "fixtures" / "fake_worker.py"


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "reservations.json"


@pytest.fixture
def job_service(store_path: Path) -> JobService:
    return JobService.with_path(store_path)


@pytest.fixture
def job_payload() -> dict:
    return {
        "date": "2026-10-24",
        "hour": "09",
        "location": "Alain Mimoun",
        "priceType": "Tarif plein",
        "courtType": "Découvert",
        "players": [{"firstName": "Louis", "lastName": "Gallais"}],
        "account": {"email": "player@example.com", "password": "secret"},
    }


@pytest.fixture
def registry() -> RunRegistry:
    return RunRegistry()


@pytest.fixture
def broadcaster() -> LogBroadcaster:
    return LogBroadcaster()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def executor(job_service, launcher, registry, broadcaster) -> RunExecutor:
    return RunExecutor(job_service, launcher, registry, broadcaster, drain_timeout=1.0)


@pytest.fixture
def worker_command() -> list[str]:
    return [sys.executable, str(FAKE_WORKER)]


@pytest.fixture
def settings(tmp_path: Path, store_path: Path, worker_command: list[str]) -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        store=StoreSettings(path=store_path),
        worker=WorkerSettings(
            command=worker_command,
            runs_dir=tmp_path / "runs",
            kill_timeout=2.0,
            drain_timeout=2.0,
        ),
        scheduler=SchedulerSettings(enabled=False),
        static_dir=tmp_path / "static",
    )


@pytest.fixture
def container(settings: Settings, launcher: FakeLauncher) -> ApplicationContainer:
    return ApplicationContainer.from_settings(settings, launcher=launcher)


@pytest.fixture
def app(container: ApplicationContainer):
    return create_app(container)
