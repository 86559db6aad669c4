"""Domain service for booking job management."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from .exceptions import InvalidTransitionError, JobNotFoundError, JobValidationError
from .models import Job, JobStatus, Player
from .repository import JobRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("date", "hour", "location", "priceType", "courtType", "players")


def generate_job_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True)
class JobService:
    repository: JobRepository

    @classmethod
    def with_path(cls, path: str | Path) -> "JobService":
        from courtbot.infrastructure.store import JsonJobRepository

        return cls(JsonJobRepository(path))

    async def list_jobs(self) -> list[Job]:
        jobs: list[Job] = []
        for record in await self.repository.list():
            job = self._to_domain(record)
            if job is not None:
                jobs.append(job)
        return jobs

    async def get_job(self, job_id: str) -> Job | None:
        record = await self.repository.get(job_id)
        return self._to_domain(record) if record else None

    async def list_records(self) -> list[dict[str, Any]]:
        """Stored documents as they are on disk, including ones ``Job`` rejects."""
        return await self.repository.list()

    async def get_record(self, job_id: str) -> dict[str, Any] | None:
        return await self.repository.get(job_id)

    async def create_job(self, payload: Mapping[str, Any]) -> Job:
        missing = [name for name in REQUIRED_FIELDS[:-1] if payload.get(name) in (None, "", [])]
        if not isinstance(payload.get("players"), list):
            missing.append("players")
        if missing:
            raise JobValidationError(f"Missing required reservation fields: {', '.join(missing)}")
        try:
            for player in payload["players"]:
                Player.model_validate(player)
        except ValidationError as exc:
            raise JobValidationError(f"Invalid player: {_describe(exc)}") from exc

        data = {key: value for key, value in payload.items() if key != "id"}
        data["id"] = generate_job_id()
        data["status"] = data.get("status") or JobStatus.PENDING.value
        job = self._validate(data)
        await self.repository.insert(job.to_document())
        logger.info(
            "Reservation created: id=%s, date=%s, hour=%s, location=%s",
            job.id,
            job.date,
            job.hour,
            job.location,
        )
        return job

    async def update_job(self, job_id: str, changes: Mapping[str, Any]) -> Job:
        current = await self.repository.get(job_id)
        if current is None:
            raise JobNotFoundError(job_id)

        normalized = {_document_key(key): value for key, value in changes.items() if key != "id"}
        merged = self._validate({**current, **normalized, "id": current["id"]})
        document = merged.to_document()
        stored = await self.repository.update(
            job_id,
            {key: document.get(key) for key in normalized},
        )
        logger.info("Reservation updated: id=%s", job_id)
        return self._validate(stored)

    async def delete_job(self, job_id: str) -> dict[str, Any]:
        record = await self.repository.delete(job_id)
        logger.info("Reservation deleted: id=%s", job_id)
        return record

    async def transition(self, job_id: str, target: JobStatus) -> Job:
        """Apply a run-driven status change if the state machine allows it."""

        def guard(record: Mapping[str, Any]) -> None:
            try:
                current = JobStatus(record.get("status", JobStatus.PENDING.value))
            except ValueError as exc:
                raise InvalidTransitionError(
                    f"job {job_id} has unknown status {record.get('status')!r}"
                ) from exc
            if not current.can_transition_to(target):
                raise InvalidTransitionError(
                    f"job {job_id} cannot move from {current.value} to {target.value}"
                )

        stored = await self.repository.update(job_id, {"status": target.value}, guard=guard)
        logger.info("Reservation %s status -> %s", job_id, target.value)
        return self._validate(stored)

    @staticmethod
    def _validate(data: Mapping[str, Any]) -> Job:
        try:
            return Job.model_validate(dict(data))
        except ValidationError as exc:
            raise JobValidationError(_describe(exc)) from exc

    @staticmethod
    def _to_domain(record: Mapping[str, Any]) -> Job | None:
        try:
            return Job.model_validate(dict(record))
        except ValidationError as exc:
            logger.warning("Skipping malformed job record %s: %s", record.get("id"), _describe(exc))
            return None


def _document_key(key: str) -> str:
    return to_camel(key) if key in Job.model_fields else key


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts)
