"""Polling engine: ``GET /api/jobs/{jobId}`` until the job is terminal."""

from __future__ import annotations

import logging
import time
from typing import Callable

from genflow.config import get_settings
from genflow.exceptions import JobTimeoutError
from genflow.schemas.jobs import JobStatusSnapshot
from genflow.services.api_client import ApiClient, get_api_client
from genflow.services.cancellation import CancellationToken, pause
from genflow.services.job_status import build_snapshot

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[JobStatusSnapshot], None]


def job_status_path(job_id: str) -> str:
    return f"/api/jobs/{job_id}"


async def fetch_job_snapshot(
    job_id: str,
    *,
    request_timeout: float | None = None,
    cancel_token: CancellationToken | None = None,
    client: ApiClient | None = None,
) -> JobStatusSnapshot:
    """Query the job once and normalize the answer."""
    api = client or get_api_client()
    raw = await api.request_json(
        "GET",
        job_status_path(job_id),
        timeout=request_timeout,
        cancel_token=cancel_token,
    )
    return build_snapshot(raw)


async def poll_job_status(
    job_id: str,
    *,
    interval: float | None = None,
    cancel_token: CancellationToken | None = None,
    timeout: float | None = None,
    request_timeout: float | None = None,
    on_update: SnapshotCallback | None = None,
    client: ApiClient | None = None,
) -> JobStatusSnapshot:
    """Poll until completed or failed and return the terminal snapshot.

    ``on_update`` sees every snapshot, terminal or not. The inter-poll
    sleep is interruptible by ``cancel_token``. ``timeout`` bounds the whole
    loop; ``request_timeout`` bounds each query.
    """
    settings = get_settings()
    interval = settings.POLL_INTERVAL if interval is None else interval
    timeout = settings.POLL_TIMEOUT if timeout is None else timeout
    request_timeout = settings.REQUEST_TIMEOUT if request_timeout is None else request_timeout

    started = time.monotonic()
    attempt = 0
    while True:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        elapsed = time.monotonic() - started
        if elapsed > timeout:
            logger.warning("Job %s polling timed out after %.1fs", job_id, elapsed)
            raise JobTimeoutError("Job polling timeout")

        attempt += 1
        snapshot = await fetch_job_snapshot(
            job_id,
            request_timeout=request_timeout,
            cancel_token=cancel_token,
            client=client,
        )
        logger.debug(
            "Job %s poll #%d: status=%s progress=%s stage=%s",
            job_id, attempt, snapshot.status.value, snapshot.progress, snapshot.stage,
        )

        if on_update is not None:
            on_update(snapshot)

        if snapshot.is_terminal:
            logger.info("Job %s finished: %s after %d polls", job_id, snapshot.status.value, attempt)
            return snapshot

        await pause(interval, cancel_token)
