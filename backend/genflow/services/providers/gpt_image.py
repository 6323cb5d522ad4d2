"""OpenAI gpt-image provider (tag ``chatgpt``).

Usually synchronous: the endpoint answers with ``dataUrls`` (one per
requested image) or a single ``dataUrl``. Only the first image is
returned. Long renders fall back to a job whose ``resultUrl`` holds the
file.
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

NAME = "chatgpt"
DEFAULT_MODEL = "gpt-image-1.5"

JOB_URL_STRATEGIES = job_result_url_strategies(("fileUrl", "url"))
# Several images come back as ``dataUrls``; the first one wins.
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
)


async def generate(
    prompt: str,
    *,
    tracker: GenerationJobTracker,
    model: str | None = None,
    size: str | None = None,
    quality: str | None = None,
    background: str | None = None,
    n: int | None = None,
    references: list[str] | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedImage]:
    if n is not None and not 1 <= n <= 8:
        raise ValueError(f"n must be between 1 and 8, got {n}")
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(size=size, quality=quality, background=background, n=n),
        references=references,
        owner_id=owner_id,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
