"""Job domain specific exceptions."""


class JobError(Exception):
    """Base class for job related domain errors."""


class JobValidationError(JobError):
    """Raised when a job creation or update payload is malformed."""


class JobNotFoundError(JobError):
    """Raised when the requested job could not be found."""


class InvalidTransitionError(JobError):
    """Raised when a status change is not allowed by the job state machine."""


class StoreError(Exception):
    """Raised when the reservation document cannot be read or written."""
