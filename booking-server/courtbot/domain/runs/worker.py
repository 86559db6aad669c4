"""Protocols for booking worker processes"""

from __future__ import annotations

from typing import Any, AsyncIterator, Mapping, Optional, Protocol


class WorkerHandle(Protocol):
    @property
    def pid(self) -> Optional[int]:
        ...

    @property
    def cancel_requested(self) -> bool:
        ...

    def stdout_lines(self) -> AsyncIterator[str]:
        ...

    def stderr_lines(self) -> AsyncIterator[str]:
        ...

    def terminate(self) -> None:
        ...

    async def wait(self) -> int:
        ...

    async def cleanup(self) -> None:
        ...


class WorkerLauncher(Protocol):
    async def launch(self, parameters: Mapping[str, Any], run_id: str) -> WorkerHandle:
        ...
