"""Run domain specific exceptions."""


class RunError(Exception):
    """Base class for run orchestration errors."""


class LaunchError(RunError):
    """Raised when the booking worker process could not be started."""


class RunNotFoundError(RunError):
    """Raised when no in-flight run matches the requested id."""


class RunConflictError(RunError):
    """Raised when a run id is already in flight."""
