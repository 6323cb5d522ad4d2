"""Google Gemini image provider.

Gemini returns the image inline as ``imageBase64`` plus ``mimeType``;
the parser turns that into a ``data:`` URL. A hosted ``url`` wins when
the backend already stored the file.
"""

from __future__ import annotations

from typing import Any

from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedImage
from genflow.services.extraction import (
    IMMEDIATE_URL_STRATEGIES as GENERIC_IMMEDIATE,
    from_key,
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

NAME = "gemini"
DEFAULT_MODEL = "gemini-2.5-flash-image"

JOB_URL_STRATEGIES = job_result_url_strategies(("fileUrl", "r2FileUrl", "url"))

IMMEDIATE_URL_STRATEGIES = (from_key("url"), *GENERIC_IMMEDIATE)


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
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    image_data: str | None = None,
    temperature: float | None = None,
    output_length: int | None = None,
    top_p: float | None = None,
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
        provider_options=collect_options(
            imageData=image_data,
            temperature=temperature,
            maxOutputTokens=output_length,
            topP=top_p,
        ),
        references=references,
        avatar_id=avatar_id,
        avatar_image_id=avatar_image_id,
        product_id=product_id,
        style_id=style_id,
        owner_id=owner_id,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
