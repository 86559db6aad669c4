"""Exports for run orchestration domain"""

from .broadcaster import LogBroadcaster, Subscription
from .exceptions import LaunchError, RunConflictError, RunError, RunNotFoundError
from .executor import RunExecutor
from .models import RunEvent, RunResult, RunState
from .registry import RunRegistry

__all__ = [
    "LaunchError",
    "LogBroadcaster",
    "RunConflictError",
    "RunError",
    "RunEvent",
    "RunExecutor",
    "RunNotFoundError",
    "RunRegistry",
    "RunResult",
    "RunState",
    "Subscription",
]
