"""Run events and outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

EventType = Literal["log", "event", "result", "end"]
StreamName = Literal["stdout", "stderr"]


class RunState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.SUCCEEDED, RunState.FAILED, RunState.CANCELLED)


class RunEvent(BaseModel):
    """A single line-oriented message pushed to a run subscriber."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: EventType
    message: Optional[str] = None
    stream: Optional[StreamName] = None
    success: Optional[bool] = None
    exit_code: Optional[int] = Field(default=None, alias="exitCode")
    cancelled: Optional[bool] = None

    @classmethod
    def log(cls, message: str, stream: StreamName = "stdout") -> "RunEvent":
        return cls(type="log", message=message, stream=stream)

    @classmethod
    def notice(cls, message: str) -> "RunEvent":
        return cls(type="event", message=message)

    @classmethod
    def result(
        cls,
        *,
        success: bool,
        exit_code: Optional[int],
        cancelled: bool = False,
        message: Optional[str] = None,
    ) -> "RunEvent":
        return cls(type="result", message=message, success=success, exit_code=exit_code, cancelled=cancelled)

    @classmethod
    def end(cls) -> "RunEvent":
        return cls(type="end")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(slots=True)
class RunResult:
    run_id: str
    job_id: Optional[str]
    state: RunState
    exit_code: Optional[int]
    success_observed: bool
    error: Optional[str]
    started_at: datetime
    finished_at: datetime

    @property
    def success(self) -> bool:
        return self.state == RunState.SUCCEEDED

    @property
    def cancelled(self) -> bool:
        return self.state == RunState.CANCELLED
