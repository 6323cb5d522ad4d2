"""Google Veo video provider.

Veo runs as a long operation; the job document reports the stored clip
under ``metadata.videoUrl`` once the operation is done.
"""

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

NAME = "veo"
DEFAULT_MODEL = "veo-3.0-generate-001"
ASPECT_RATIOS = ("16:9", "9:16")

JOB_URL_STRATEGIES = job_result_url_strategies(
    ("videoUrl", "fileUrl", "url"),
    list_keys=("results", "videos"),
    item_keys=("url", "videoUrl", "uri"),
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
    negative_prompt: str | None = None,
    seed: int | None = None,
    image_base64: str | None = None,
    image_mime_type: str | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedVideo]:
    if aspect_ratio not in ASPECT_RATIOS:
        raise ValueError(f"Veo does not support aspect_ratio={aspect_ratio}")
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(
            aspectRatio=aspect_ratio,
            negativePrompt=negative_prompt,
            seed=seed,
            imageBase64=image_base64,
            imageMimeType=image_mime_type,
        ),
        owner_id=owner_id,
        aspect_ratio=aspect_ratio,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
