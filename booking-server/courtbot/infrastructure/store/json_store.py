"""Whole-document JSON implementation of JobRepository"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from courtbot.domain.jobs.exceptions import JobNotFoundError, StoreError
from courtbot.domain.jobs.repository import RecordGuard

logger = logging.getLogger(__name__)


class JsonJobRepository:
    """Job records kept as one JSON array on disk.

    Every operation reads the full document, applies its change and writes the
    document back. Operations are serialised inside this process only; two
    writers touching the same job still resolve as last-writer-wins.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def list(self) -> list[dict[str, Any]]:
        return await self._load()

    async def get(self, job_id: str) -> dict[str, Any] | None:
        for record in await self._load():
            if record.get("id") == job_id:
                return record
        return None

    async def insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        async with self._lock:
            records = await self._load()
            if any(existing.get("id") == record.get("id") for existing in records):
                raise StoreError(f"duplicate job id {record.get('id')!r}")
            stored = dict(record)
            records.append(stored)
            await self._save(records)
        return stored

    async def update(
        self,
        job_id: str,
        changes: Mapping[str, Any],
        *,
        guard: Optional[RecordGuard] = None,
    ) -> dict[str, Any]:
        async with self._lock:
            records = await self._load()
            index = _find(records, job_id)
            if guard is not None:
                guard(records[index])
            merged = {**records[index], **changes, "id": records[index]["id"]}
            records[index] = merged
            await self._save(records)
        return merged

    async def delete(self, job_id: str) -> dict[str, Any]:
        async with self._lock:
            records = await self._load()
            deleted = records.pop(_find(records, job_id))
            await self._save(records)
        return deleted

    async def _load(self) -> list[dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    async def _save(self, records: list[dict[str, Any]]) -> None:
        await asyncio.to_thread(self._write, records)

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                raw = handle.read()
        except OSError as exc:
            raise StoreError(f"failed to read {self.path}: {exc}") from exc
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise StoreError(f"{self.path} must contain a JSON array of objects")
        return data

    def _write(self, records: list[dict[str, Any]]) -> None:
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(records, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"failed to write {self.path}: {exc}") from exc
        logger.debug("Wrote %d job records to %s", len(records), self.path)


def _find(records: list[dict[str, Any]], job_id: str) -> int:
    for index, record in enumerate(records):
        if record.get("id") == job_id:
            return index
    raise JobNotFoundError(job_id)
