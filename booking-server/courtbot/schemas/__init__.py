"""Pydantic schemas used across the project."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RunAccepted(_ApiModel):
    run_id: str = Field(..., alias="runId")
    status: str = "accepted"


class RunCancelled(_ApiModel):
    run_id: str = Field(..., alias="runId")
    message: str = "Cancellation requested."


class ActiveRunsResponse(BaseModel):
    runs: list[str] = Field(default_factory=list)


class PlayerDefaults(_ApiModel):
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")


class FormDefaultsResponse(_ApiModel):
    date: str
    hour: str
    location: str
    price_type: list[str] = Field(..., alias="priceType")
    court_type: list[str] = Field(..., alias="courtType")
    plan_time: str = Field(..., alias="planTime")
    players: list[PlayerDefaults] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)


class HealthResponse(_ApiModel):
    status: str = "ok"
    version: str
    scheduler_running: bool = Field(..., alias="schedulerRunning")
    active_runs: int = Field(..., alias="activeRuns")
    environment: Optional[str] = None
