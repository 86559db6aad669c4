"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3001
    reload: bool = False


class StoreSettings(BaseModel):
    path: Path = Field(default=Path("data/reservations.json"))


class WorkerSettings(BaseModel):
    command: list[str] = Field(default_factory=lambda: ["node", "index.js", "--no-close"])
    workdir: Optional[Path] = None
    runs_dir: Path = Field(default=Path("data/runs"))
    success_marker: str = Field(default="RESERVATION SUCCESS", min_length=1)
    kill_timeout: float = 5.0
    drain_timeout: float = 5.0
    dry_run: bool = False


class SchedulerSettings(BaseModel):
    enabled: bool = True
    interval_seconds: float = Field(default=5.0, gt=0)


class StreamSettings(BaseModel):
    keepalive_seconds: float = Field(default=15.0, gt=0)


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    log_level: str = "INFO"
    project_name: str = "Court Booking Server"
    api_prefix: str = ""
    timezone: Optional[str] = None

    server: ServerSettings = ServerSettings()
    store: StoreSettings = StoreSettings()
    worker: WorkerSettings = WorkerSettings()
    scheduler: SchedulerSettings = SchedulerSettings()
    stream: StreamSettings = StreamSettings()

    static_dir: Path = Path("static")

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def store_path(self) -> Path:
        return self.store.path

    @property
    def success_marker(self) -> str:
        return self.worker.success_marker

    @property
    def tick_interval(self) -> float:
        return self.scheduler.interval_seconds


@lru_cache()
def get_settings() -> Settings:
    return Settings()
