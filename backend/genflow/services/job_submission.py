"""Submission adapter: ``POST /api/{mediaType}/{provider}``."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from genflow.schemas.jobs import MediaType, ProviderJobResponse
from genflow.services.api_client import ApiClient, get_api_client
from genflow.services.cancellation import CancellationToken
from genflow.services.extraction import JOB_ID_STRATEGIES, STATUS_STRATEGIES, first_match
from genflow.services.job_status import normalize_job_status

logger = logging.getLogger(__name__)


def provider_endpoint(media_type: MediaType | str, provider: str) -> str:
    media = media_type.value if isinstance(media_type, MediaType) else str(media_type)
    return f"/api/{media}/{provider}"


def parse_provider_response(payload: Mapping[str, Any]) -> ProviderJobResponse:
    """Extract job id and status from a loosely shaped submission body."""
    raw_status = first_match(STATUS_STRATEGIES, payload)
    return ProviderJobResponse(
        job_id=first_match(JOB_ID_STRATEGIES, payload),
        raw_status=raw_status,
        status=normalize_job_status(raw_status),
        payload=dict(payload),
    )


async def post_provider_job(
    *,
    provider: str,
    media_type: MediaType | str,
    body: Mapping[str, Any],
    cancel_token: CancellationToken | None = None,
    timeout: float | None = None,
    client: ApiClient | None = None,
) -> ProviderJobResponse:
    """Submit one generation request.

    Returns the response verbatim in ``payload`` so callers can read
    provider-specific fields. A non-success response raises ``ApiError``.
    """
    api = client or get_api_client()
    path = provider_endpoint(media_type, provider)

    logger.info("Submitting %s (model=%s)", path, body.get("model"))
    payload = await api.request_json(
        "POST",
        path,
        json=dict(body),
        timeout=timeout,
        cancel_token=cancel_token,
    )

    response = parse_provider_response(payload)
    if response.job_id:
        logger.info("Job created: %s (%s, status=%s)", response.job_id, path, response.status.value)
    else:
        logger.info("%s answered without a job id (immediate result)", path)
    return response
