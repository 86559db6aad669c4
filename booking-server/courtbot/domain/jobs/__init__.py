"""Exports for booking job domain"""

from .exceptions import (
    InvalidTransitionError,
    JobError,
    JobNotFoundError,
    JobValidationError,
    StoreError,
)
from .models import Job, JobStatus
from .service import JobService

__all__ = [
    "InvalidTransitionError",
    "Job",
    "JobError",
    "JobNotFoundError",
    "JobService",
    "JobStatus",
    "JobValidationError",
    "StoreError",
]
