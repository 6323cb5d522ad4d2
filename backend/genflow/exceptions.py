"""Error taxonomy for the generation job layer."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from genflow.schemas.jobs import JobStatusSnapshot

__all__ = [
    "GenerationError",
    "ApiError",
    "RequestTimeoutError",
    "JobTimeoutError",
    "GenerationCancelledError",
    "JobFailedError",
    "MissingResultError",
    "is_cancellation",
]


class GenerationError(Exception):
    """Base class for generation job errors."""


class ApiError(GenerationError):
    """Raised when the generation API answers with a non-success status."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        payload: Any = None,
    ) -> None:
        self.status_code = status_code
        self.message = message or f"Request failed with {status_code}"
        self.payload = payload
        super().__init__(self.message)


class RequestTimeoutError(GenerationError):
    """Raised when a single request exceeds its timeout."""


class JobTimeoutError(GenerationError):
    """Raised when a job does not reach a terminal status in time."""


class GenerationCancelledError(GenerationError):
    """Raised when the caller cancels a generation.

    Callers filter this out of user-facing error reporting: a cancelled
    generation is not a failure.
    """

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or "Generation cancelled")


class JobFailedError(GenerationError):
    """Raised when a job reaches the ``failed`` terminal status."""

    def __init__(
        self,
        message: str,
        *,
        job_id: str | None = None,
        snapshot: JobStatusSnapshot | None = None,
    ) -> None:
        self.job_id = job_id
        self.snapshot = snapshot
        super().__init__(message)


class MissingResultError(GenerationError):
    """Raised when a response does not carry a usable result."""


def is_cancellation(exc: BaseException) -> bool:
    """Return True for both our cancellation error and asyncio's."""
    return isinstance(exc, (GenerationCancelledError, asyncio.CancelledError))
