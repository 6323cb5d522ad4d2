"""Luma Dream Machine video provider (Ray 2).

Luma reports its own generation id next to the job id; both end up on
the result, together with the provider-side ``state`` the clip finished in.
"""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedVideo
from genflow.services.extraction import first_match, from_key, from_metadata, pick_string
from genflow.services.providers.base import (
    VIDEO_IMMEDIATE_URL_STRATEGIES,
    VIDEO_JOB_URL_STRATEGIES,
    GenerationRequest,
    ProviderVariant,
    collect_options,
    immediate_result,
    job_result,
    payload_url_strategies,
    run_variant,
)
from genflow.services.trackers import GenerationJobTracker

NAME = "luma"
DEFAULT_MODEL = "luma-ray-2"
MODELS = ("luma-ray-2", "luma-ray-flash-2")

PAYLOAD_URL_STRATEGIES = payload_url_strategies(("resultUrl", "videoUrl", "dataUrl"))

GENERATION_ID_KEYS = ("generationId", "generation_id", "id")
METADATA_GENERATION_ID_STRATEGIES = tuple(from_metadata(key) for key in GENERATION_ID_KEYS)
PAYLOAD_GENERATION_ID_STRATEGIES = tuple(from_key(key) for key in GENERATION_ID_KEYS)

PAYLOAD_STATE_STRATEGIES = (from_key("state"), from_key("status"))


def generation_id(snapshot: JobStatusSnapshot | None, response: ProviderJobResponse) -> str | None:
    """Luma's generation id: job metadata, then the submission payload, then the job id."""
    if snapshot is not None:
        found = first_match(METADATA_GENERATION_ID_STRATEGIES, snapshot.job.to_raw())
        if found:
            return found
    found = first_match(PAYLOAD_GENERATION_ID_STRATEGIES, response.payload)
    if found or snapshot is None:
        return found
    return pick_string(snapshot.job.id)


def parse_job_result(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedVideo:
    video = job_result(
        MediaType.VIDEO, NAME, snapshot, response, request,
        VIDEO_JOB_URL_STRATEGIES, PAYLOAD_URL_STRATEGIES,
    )
    return video.model_copy(update={
        "generation_id": generation_id(snapshot, response),
        "state": pick_string(snapshot.job.status) or snapshot.status.value.upper(),
    })


def parse_immediate_result(
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedVideo | None:
    video = immediate_result(MediaType.VIDEO, NAME, response, request, VIDEO_IMMEDIATE_URL_STRATEGIES)
    if video is None:
        return None
    return video.model_copy(update={
        "generation_id": generation_id(None, response),
        "state": first_match(PAYLOAD_STATE_STRATEGIES, response.payload) or "COMPLETED",
    })


VARIANT = ProviderVariant(
    name=NAME,
    media_type=MediaType.VIDEO,
    default_model=DEFAULT_MODEL,
    parse_job_result=parse_job_result,
    parse_immediate_result=parse_immediate_result,
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    resolution: str | None = None,
    duration_seconds: int | None = None,
    loop: bool | None = None,
    keyframes: dict[str, Any] | None = None,
    concepts: list[Any] | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedVideo]:
    """Generate one Luma clip.

    Args:
        model: ``luma-ray-2`` or ``luma-ray-flash-2``.
        keyframes: Luma keyframe map (``frame0``/``frame1``), passed through.
    """
    model = model or DEFAULT_MODEL
    if model not in MODELS:
        raise ValueError(f"Luma does not support model={model}")
    request = GenerationRequest(
        prompt=prompt,
        model=model,
        provider_options=collect_options(
            resolution=resolution or None,
            duration_seconds=duration_seconds,
            loop=loop,
            keyframes=keyframes or None,
            concepts=concepts or None,
        ),
        owner_id=owner_id,
        duration_seconds=duration_seconds,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
