"""Protocol for job persistence"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

RecordGuard = Callable[[Mapping[str, Any]], None]


class JobRepository(Protocol):
    async def list(self) -> Sequence[dict[str, Any]]:
        ...

    async def get(self, job_id: str) -> dict[str, Any] | None:
        ...

    async def insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        ...

    async def update(
        self,
        job_id: str,
        changes: Mapping[str, Any],
        *,
        guard: Optional[RecordGuard] = None,
    ) -> dict[str, Any]:
        ...

    async def delete(self, job_id: str) -> dict[str, Any]:
        ...
