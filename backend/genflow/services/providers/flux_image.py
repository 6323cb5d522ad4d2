"""Flux image provider (Black Forest Labs).

Flux always answers with a job id. Completed jobs carry the stored file
either at the top-level ``resultUrl`` or under ``metadata``; R2-backed
results also report ``r2FileId``.
"""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedImage
from genflow.services.extraction import job_result_url_strategies
from genflow.services.providers.base import (
    GenerationRequest,
    ProviderVariant,
    collect_options,
    job_result,
    run_variant,
)
from genflow.services.trackers import GenerationJobTracker

NAME = "flux"
DEFAULT_MODEL = "flux-2-pro"

JOB_URL_STRATEGIES = job_result_url_strategies(("fileUrl", "r2FileUrl", "url"))


def parse_job_result(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedImage:
    return job_result(MediaType.IMAGE, NAME, snapshot, response, request, JOB_URL_STRATEGIES)


VARIANT = ProviderVariant(
    name=NAME,
    media_type=MediaType.IMAGE,
    default_model=DEFAULT_MODEL,
    parse_job_result=parse_job_result,
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    width: int | None = None,
    height: int | None = None,
    aspect_ratio: str | None = None,
    seed: int | None = None,
    output_format: str | None = None,
    prompt_upsampling: bool | None = None,
    safety_tolerance: int | None = None,
    input_image: str | None = None,
    references: list[str] | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedImage]:
    """Generate one Flux image.

    Sizing and sampling knobs travel in ``providerOptions`` using the
    names the Flux API expects.
    """
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(
            width=width,
            height=height,
            aspect_ratio=aspect_ratio,
            seed=seed,
            output_format=output_format,
            prompt_upsampling=prompt_upsampling,
            safety_tolerance=safety_tolerance,
            input_image=input_image,
        ),
        references=references,
        owner_id=owner_id,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
