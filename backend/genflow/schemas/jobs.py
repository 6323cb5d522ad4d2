from __future__ import annotations
"""Job lifecycle schemas shared by submission, polling and orchestration."""

import enum
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

R = TypeVar("R")


class NormalizedStatus(str, enum.Enum):
    """Provider-agnostic job statuses."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (NormalizedStatus.COMPLETED, NormalizedStatus.FAILED)


class MediaType(str, enum.Enum):
    """Media families served by ``POST /api/{mediaType}/{provider}``."""

    IMAGE = "image"
    VIDEO = "video"


class JobStatusPayload(BaseModel):
    """Raw status document returned by ``GET /api/jobs/{jobId}``.

    Owned by the remote service; fields are deliberately loose because
    providers disagree on types (progress may be ``"12%"``, error may be
    an object). Unknown keys are kept.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    id: Any = None
    status: Any = None
    progress: Any = None
    error: Any = None
    result_url: Any = Field(default=None, alias="resultUrl")
    metadata: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> "JobStatusPayload":
        """Build from an untyped JSON value; non-objects become empty."""
        return cls.model_validate(raw if isinstance(raw, dict) else {})

    def to_raw(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class JobStatusSnapshot:
    """One normalized view of a job, produced per poll."""

    job: JobStatusPayload
    status: NormalizedStatus
    progress: float | None = None
    stage: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class ProviderJobResponse:
    """Submission response. ``job_id`` is None when the result is immediate."""

    status: NormalizedStatus
    payload: dict[str, Any] = field(default_factory=dict)
    job_id: str | None = None
    raw_status: str | None = None

    @property
    def is_immediate(self) -> bool:
        return self.job_id is None


@dataclass
class GenerationJobResult(Generic[R]):
    """What ``run_generation_job`` hands back to callers."""

    result: R
    response: ProviderJobResponse
    job_id: str | None = None
    snapshot: JobStatusSnapshot | None = None
    model: str | None = None
    fallback_used: bool = False
