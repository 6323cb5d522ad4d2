"""Job lifecycle trackers.

A tracker receives ``enqueue`` once per job, ``update`` per snapshot and
``finalize`` once at the end, on success and failure alike. The
orchestrator guarantees that ordering; trackers only record it.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import redis

from genflow.config import get_settings
from genflow.schemas.jobs import JobStatusSnapshot, NormalizedStatus

logger = logging.getLogger(__name__)


@runtime_checkable
class GenerationJobTracker(Protocol):
    def enqueue(self, job_id: str, prompt: str, model: str) -> None: ...

    def update(self, job_id: str, snapshot: JobStatusSnapshot) -> None: ...

    def finalize(self, job_id: str) -> None: ...


def clamp_progress(value: float | None) -> float | None:
    if value is None:
        return None
    return max(0.0, min(100.0, value))


def snapshot_message(job_id: str, snapshot: JobStatusSnapshot) -> dict[str, Any]:
    """JSON-ready view of a snapshot."""
    return {
        "type": "job_update",
        "job_id": job_id,
        "status": snapshot.status.value,
        "progress": clamp_progress(snapshot.progress),
        "stage": snapshot.stage,
        "job": snapshot.job.to_raw(),
    }


# ──────── In-memory tracker ────────

@dataclass
class ActiveJob:
    """A job currently shown in a job list."""

    job_id: str
    prompt: str
    model: str
    status: NormalizedStatus = NormalizedStatus.QUEUED
    progress: float = 1.0
    backend_progress: float = 0.0
    stage: str | None = None
    started_at: float = field(default_factory=time.time)
    backend_progress_updated_at: float = field(default_factory=time.time)


class InMemoryJobTracker:
    """Keeps active jobs in a dict and records every lifecycle event."""

    def __init__(self) -> None:
        self.active_jobs: dict[str, ActiveJob] = {}
        self.history: list[tuple[str, str]] = []

    def enqueue(self, job_id: str, prompt: str, model: str) -> None:
        self.history.append(("enqueue", job_id))
        self.active_jobs[job_id] = ActiveJob(job_id=job_id, prompt=prompt, model=model)

    def update(self, job_id: str, snapshot: JobStatusSnapshot) -> None:
        self.history.append(("update", job_id))
        job = self.active_jobs.get(job_id)
        if job is None:
            logger.debug("Update for unknown job %s ignored", job_id)
            return
        job.status = snapshot.status
        job.stage = snapshot.stage or job.stage
        progress = clamp_progress(snapshot.progress)
        if progress is not None:
            job.progress = max(job.progress, progress)
            job.backend_progress = progress
            job.backend_progress_updated_at = time.time()

    def finalize(self, job_id: str) -> None:
        self.history.append(("finalize", job_id))
        self.active_jobs.pop(job_id, None)


# ──────── Redis Pub/Sub tracker ────────

_sync_pool: redis.ConnectionPool | None = None


def _get_sync_pool() -> redis.ConnectionPool:
    """Lazy-init a module-level Redis ConnectionPool.

    Publishes run on the event loop, so connects and reads are bounded by
    short socket timeouts instead of the OS defaults.
    """
    global _sync_pool
    if _sync_pool is None:
        settings = get_settings()
        _sync_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        )
    return _sync_pool


class RedisJobTracker:
    """Publishes lifecycle events so another process can relay them to clients.

    Publishing is best-effort: a Redis outage must not fail a generation.
    """

    def __init__(self, channel: str = "all", client: redis.Redis | None = None) -> None:
        self.channel = f"{get_settings().TRACKER_CHANNEL_PREFIX}{channel}"
        self._client = client

    def _redis(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis(connection_pool=_get_sync_pool())
        return self._client

    def enqueue(self, job_id: str, prompt: str, model: str) -> None:
        self._publish({
            "type": "job_enqueued",
            "job_id": job_id,
            "prompt": prompt,
            "model": model,
        })

    def update(self, job_id: str, snapshot: JobStatusSnapshot) -> None:
        self._publish(snapshot_message(job_id, snapshot))

    def finalize(self, job_id: str) -> None:
        self._publish({"type": "job_finalized", "job_id": job_id})

    def _publish(self, message: dict[str, Any]) -> None:
        try:
            self._redis().publish(self.channel, json.dumps(message, default=str))
        except redis.RedisError:
            logger.warning(
                "Failed to publish %s for job %s",
                message.get("type"), message.get("job_id"), exc_info=True,
            )
