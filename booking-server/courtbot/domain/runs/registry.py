"""In-flight run handles, keyed by run id."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from .exceptions import RunConflictError
from .worker import WorkerHandle

logger = logging.getLogger(__name__)


class _RunSlot:
    __slots__ = ("handle", "cancel_requested")

    def __init__(self, handle: Optional[WorkerHandle] = None) -> None:
        self.handle = handle
        self.cancel_requested = False


class RunRegistry:
    """Tracks cancellable runs.

    A run id is reserved before its worker is launched and the handle is
    attached once the launch returns. Cancelling a reserved run records the
    request; the executor sees it when it tries to attach and stops the
    worker. Cancelling an attached run pops the entry under the same lock, so
    a run can be cancelled at most once and a run that has already ended is
    never signalled.

    Only the executor reserves, attaches and unregisters.
    """

    def __init__(self) -> None:
        self._runs: Dict[str, _RunSlot] = {}
        self._lock = threading.Lock()

    def reserve(self, run_id: str) -> None:
        with self._lock:
            if run_id in self._runs:
                raise RunConflictError(f"run {run_id} is already in flight")
            self._runs[run_id] = _RunSlot()
        logger.debug("Run %s reserved", run_id)

    def attach(self, run_id: str, handle: WorkerHandle) -> bool:
        """Bind a launched worker to its reservation.

        Returns False when the run was cancelled while the worker was starting;
        the caller then owns stopping the worker.
        """
        with self._lock:
            slot = self._runs.get(run_id)
            if slot is None or slot.cancel_requested:
                return False
            slot.handle = handle
        logger.info("Run %s registered (pid %s)", run_id, handle.pid)
        return True

    def register(self, run_id: str, handle: WorkerHandle) -> None:
        """Reserve and attach in one step, for a worker that is already running."""
        self.reserve(run_id)
        self.attach(run_id, handle)

    def lookup(self, run_id: str) -> Optional[WorkerHandle]:
        with self._lock:
            slot = self._runs.get(run_id)
            return slot.handle if slot is not None else None

    def is_cancelled(self, run_id: str) -> bool:
        """True when the reservation is gone or carries a cancel request."""
        with self._lock:
            slot = self._runs.get(run_id)
            return slot is None or slot.cancel_requested

    def unregister(self, run_id: str, handle: Optional[WorkerHandle] = None) -> bool:
        with self._lock:
            slot = self._runs.get(run_id)
            if slot is None:
                return False
            if handle is not None and slot.handle is not None and slot.handle is not handle:
                return False
            del self._runs[run_id]
        logger.debug("Run %s unregistered", run_id)
        return True

    def cancel(self, run_id: str) -> bool:
        with self._lock:
            slot = self._runs.get(run_id)
            if slot is None or slot.cancel_requested:
                handle = None
                found = False
            elif slot.handle is None:
                slot.cancel_requested = True
                handle = None
                found = True
            else:
                del self._runs[run_id]
                handle = slot.handle
                found = True
        if not found:
            logger.info("Cancel requested for run %s but no active run was found", run_id)
            return False
        if handle is None:
            logger.info("Cancelling run %s before its worker started", run_id)
            return True
        logger.info("Cancelling run %s (pid %s)", run_id, handle.pid)
        handle.terminate()
        return True

    def cancel_all(self) -> int:
        with self._lock:
            slots = list(self._runs.items())
            self._runs.clear()
        for run_id, slot in slots:
            logger.info("Cancelling run %s on shutdown", run_id)
            if slot.handle is not None:
                slot.handle.terminate()
        return len(slots)

    def active_runs(self) -> list[str]:
        with self._lock:
            return sorted(run_id for run_id, slot in self._runs.items() if not slot.cancel_requested)

    def __contains__(self, run_id: object) -> bool:
        with self._lock:
            return run_id in self._runs

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)
