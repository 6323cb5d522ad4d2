"""OpenAI Sora video provider."""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedVideo
from genflow.services.providers.base import (
    VIDEO_IMMEDIATE_URL_STRATEGIES,
    VIDEO_JOB_URL_STRATEGIES,
    VIDEO_PAYLOAD_URL_STRATEGIES,
    GenerationRequest,
    ProviderVariant,
    collect_options,
    immediate_result,
    job_result,
    run_variant,
)
from genflow.services.trackers import GenerationJobTracker

NAME = "sora"
DEFAULT_MODEL = "sora-2"
ASPECT_RATIOS = ("16:9", "9:16")


def parse_job_result(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedVideo:
    return job_result(
        MediaType.VIDEO, NAME, snapshot, response, request,
        VIDEO_JOB_URL_STRATEGIES, VIDEO_PAYLOAD_URL_STRATEGIES,
    )


def parse_immediate_result(
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedVideo | None:
    return immediate_result(MediaType.VIDEO, NAME, response, request, VIDEO_IMMEDIATE_URL_STRATEGIES)


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
    aspect_ratio: str = "16:9",
    duration_seconds: int | None = None,
    format: str | None = None,
    with_sound: bool | None = None,
    seed: int | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedVideo]:
    """Generate one Sora clip.

    Args:
        aspect_ratio: ``16:9`` or ``9:16``.
        format: ``mp4`` or ``gif``.
    """
    if aspect_ratio not in ASPECT_RATIOS:
        raise ValueError(f"Sora does not support aspect_ratio={aspect_ratio}")
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(
            aspectRatio=aspect_ratio,
            durationSeconds=duration_seconds,
            format=format,
            withSound=with_sound,
            seed=seed,
        ),
        owner_id=owner_id,
        aspect_ratio=aspect_ratio,
        duration_seconds=duration_seconds,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
