"""Domain representations for booking jobs."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PLAN_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class JobStatus(str, Enum):
    PENDING = "pending"
    STARTED = "started"
    OK = "ok"
    FAILED = "failed"

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in _TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]


_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.STARTED}),
    JobStatus.STARTED: frozenset({JobStatus.OK, JobStatus.FAILED}),
    JobStatus.OK: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Player(_CamelModel):
    first_name: str
    last_name: str


class Account(_CamelModel):
    email: str
    password: str


class BookingParameters(_CamelModel):
    """Payload forwarded verbatim to the booking worker.

    Unknown keys are preserved so the worker can grow new options without a
    server change. Player entries are only checked against ``Player`` when a
    job is created, so hand-edited records stay loadable.
    """

    account: Optional[Account] = None
    date: str = Field(..., min_length=1)
    hour: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    price_type: Union[str, list[str]]
    court_type: Union[str, list[str]]
    players: list[Any]

    @field_validator("hour", mode="before")
    @classmethod
    def _coerce_hour(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return f"{value:02d}"
        return value


class Job(BookingParameters):
    """A persisted booking intent."""

    id: str
    status: JobStatus = JobStatus.PENDING
    plan_time: Optional[str] = None

    @field_validator("plan_time")
    @classmethod
    def _check_plan_time(cls, value: Optional[str]) -> Optional[str]:
        if value in (None, ""):
            return None
        if not PLAN_TIME_PATTERN.match(value):
            raise ValueError("planTime must use the HH:MM format")
        return value

    def is_due(self, minute: str) -> bool:
        return self.status == JobStatus.PENDING and self.plan_time == minute

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_worker_payload(self) -> dict[str, Any]:
        """Worker config shape used for scheduled runs."""
        payload: dict[str, Any] = {
            "reservationId": self.id,
            "locations": [self.location],
            "date": self.date,
            "hours": [self.hour],
            "priceType": _as_list(self.price_type),
            "courtType": _as_list(self.court_type),
            "players": list(self.players),
        }
        if self.account is not None:
            payload["account"] = self.account.model_dump(by_alias=True)
        return payload


def _as_list(value: Union[str, list[str]]) -> list[str]:
    return [value] if isinstance(value, str) else list(value)
