"""Runway image provider (gen4_image / gen4_image_turbo)."""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedImage
from genflow.services.extraction import from_key, from_list, job_result_url_strategies
from genflow.services.providers.base import (
    GenerationRequest,
    ProviderVariant,
    collect_options,
    immediate_result,
    job_result,
    run_variant,
)
from genflow.services.trackers import GenerationJobTracker

NAME = "runway"
DEFAULT_MODEL = "gen4_image"

JOB_URL_STRATEGIES = job_result_url_strategies(
    ("resultUrl", "result_url", "url", "imageUrl", "image_url"),
    list_keys=("results", "images"),
    item_keys=("url", "imageUrl", "resultUrl"),
)

# Some Runway jobs finish with the image only on the submission payload.
PAYLOAD_URL_STRATEGIES = (
    from_list("dataUrls"),
    from_key("dataUrl"),
    from_key("url"),
    from_key("image"),
)


def parse_job_result(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedImage:
    return job_result(
        MediaType.IMAGE, NAME, snapshot, response, request,
        JOB_URL_STRATEGIES, PAYLOAD_URL_STRATEGIES,
    )


def parse_immediate_result(
    response: ProviderJobResponse,
    request: GenerationRequest,
) -> GeneratedImage | None:
    return immediate_result(MediaType.IMAGE, NAME, response, request)


VARIANT = ProviderVariant(
    name=NAME,
    media_type=MediaType.IMAGE,
    default_model=DEFAULT_MODEL,
    parse_job_result=parse_job_result,
    parse_immediate_result=parse_immediate_result,
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    ratio: str | None = None,
    seed: int | None = None,
    references: list[str] | None = None,
    avatar_id: str | None = None,
    product_id: str | None = None,
    style_id: str | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedImage]:
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(ratio=ratio, seed=seed),
        references=references,
        avatar_id=avatar_id,
        product_id=product_id,
        style_id=style_id,
        owner_id=owner_id,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
