"""xAI Grok image provider.

Grok may answer synchronously (``dataUrls`` / ``dataUrl``) or with a job.
Dated model aliases are sometimes rejected with a 400; the stable
``grok-2-image`` name is tried once in that case.
"""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedImage
from genflow.services.extraction import (
    IMMEDIATE_URL_STRATEGIES as GENERIC_IMMEDIATE,
    from_list,
    job_result_url_strategies,
)
from genflow.services.providers.base import (
    GenerationRequest,
    ProviderVariant,
    collect_options,
    immediate_result,
    job_result,
    run_variant,
)
from genflow.services.trackers import GenerationJobTracker

NAME = "grok"
DEFAULT_MODEL = "grok-2-image"

FALLBACK_MODELS = {
    "grok-2-image-latest": DEFAULT_MODEL,
    "grok-2-image-1212": DEFAULT_MODEL,
}

JOB_URL_STRATEGIES = job_result_url_strategies(("fileUrl", "r2FileUrl", "url", "imageUrl"))

IMMEDIATE_URL_STRATEGIES = (from_list("dataUrls"), *GENERIC_IMMEDIATE)


def parse_job_result(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedImage:
    return job_result(MediaType.IMAGE, NAME, snapshot, response, request, JOB_URL_STRATEGIES)


def parse_immediate_result(
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedImage | None:
    return immediate_result(MediaType.IMAGE, NAME, response, request, IMMEDIATE_URL_STRATEGIES)


VARIANT = ProviderVariant(
    name=NAME,
    media_type=MediaType.IMAGE,
    default_model=DEFAULT_MODEL,
    parse_job_result=parse_job_result,
    parse_immediate_result=parse_immediate_result,
    fallback_models=FALLBACK_MODELS,
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    n: int | None = None,
    response_format: str | None = None,
    references: list[str] | None = None,
    avatar_id: str | None = None,
    avatar_image_id: str | None = None,
    product_id: str | None = None,
    style_id: str | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedImage]:
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(n=n, response_format=response_format),
        references=references,
        avatar_id=avatar_id,
        avatar_image_id=avatar_image_id,
        product_id=product_id,
        style_id=style_id,
        owner_id=owner_id,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
