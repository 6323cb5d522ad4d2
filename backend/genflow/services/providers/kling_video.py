"""Kuaishou Kling video provider."""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedVideo
from genflow.services.extraction import job_result_url_strategies
from genflow.services.providers.base import (
    GenerationRequest,
    ProviderVariant,
    collect_options,
    job_result,
    run_variant,
)
from genflow.services.trackers import GenerationJobTracker

NAME = "kling"
DEFAULT_MODEL = "kling-v2.1-master"
ASPECT_RATIOS = ("16:9", "9:16", "1:1")
DURATIONS = (5, 10)

# Kling lists finished clips as ``metadata.videos[].url``.
JOB_URL_STRATEGIES = job_result_url_strategies(
    ("videoUrl", "url"),
    list_keys=("videos", "results"),
    item_keys=("url", "videoUrl"),
)


def parse_job_result(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedVideo:
    return job_result(MediaType.VIDEO, NAME, snapshot, response, request, JOB_URL_STRATEGIES)


VARIANT = ProviderVariant(
    name=NAME,
    media_type=MediaType.VIDEO,
    default_model=DEFAULT_MODEL,
    parse_job_result=parse_job_result,
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    aspect_ratio: str = "16:9",
    duration: int = 5,
    negative_prompt: str | None = None,
    cfg_scale: float | None = None,
    image_base64: str | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedVideo]:
    if aspect_ratio not in ASPECT_RATIOS:
        raise ValueError(f"Kling does not support aspect_ratio={aspect_ratio}")
    if duration not in DURATIONS:
        raise ValueError(f"Kling does not support duration={duration}")

    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(
            aspectRatio=aspect_ratio,
            duration=duration,
            negativePrompt=negative_prompt,
            cfgScale=cfg_scale,
            imageBase64=image_base64,
        ),
        owner_id=owner_id,
        aspect_ratio=aspect_ratio,
        duration_seconds=duration,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
