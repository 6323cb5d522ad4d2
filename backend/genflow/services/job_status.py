"""Provider-agnostic status normalization and snapshot building."""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import JobStatusPayload, JobStatusSnapshot, NormalizedStatus
from genflow.services.extraction import PROGRESS_STRATEGIES, STAGE_STRATEGIES, first_match

_QUEUED = frozenset({"PENDING", "QUEUED", "SCHEDULED", "SUBMITTED"})
_PROCESSING = frozenset({"PROCESSING", "PROCESS", "RUNNING", "IN_PROGRESS", "STARTED", "EXECUTING"})
_COMPLETED = frozenset({"COMPLETED", "SUCCEEDED", "DONE", "FINISHED", "SUCCESS"})


def normalize_job_status(raw_status: Any = None) -> NormalizedStatus:
    """Map any provider status string onto the four normalized states.

    Absent or blank input means the job has not reported yet (queued).
    A present but unrecognised status maps to failed so an unknown
    provider state cannot keep a job "running" forever.
    """
    if raw_status is None:
        return NormalizedStatus.QUEUED

    normalized = str(raw_status).strip().upper()
    if not normalized:
        return NormalizedStatus.QUEUED
    if normalized in _QUEUED:
        return NormalizedStatus.QUEUED
    if normalized in _PROCESSING:
        return NormalizedStatus.PROCESSING
    if normalized in _COMPLETED:
        return NormalizedStatus.COMPLETED
    return NormalizedStatus.FAILED


def build_snapshot(raw_job: Any) -> JobStatusSnapshot:
    """Turn one raw status document into an immutable snapshot."""
    job = JobStatusPayload.from_raw(raw_job)
    record = raw_job if isinstance(raw_job, dict) else {}
    return JobStatusSnapshot(
        job=job,
        status=normalize_job_status(job.status),
        progress=first_match(PROGRESS_STRATEGIES, record),
        stage=first_match(STAGE_STRATEGIES, record),
    )
