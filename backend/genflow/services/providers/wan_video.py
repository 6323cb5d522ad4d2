"""Alibaba Wan (DashScope) video provider."""

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

NAME = "wan"
DEFAULT_MODEL = "wan2.2-t2v-plus"


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
    size: str | None = None,
    negative_prompt: str | None = None,
    prompt_extend: bool | None = None,
    seed: int | None = None,
    watermark: bool | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedVideo]:
    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(
            size=size,
            negativePrompt=negative_prompt,
            promptExtend=prompt_extend,
            seed=seed,
            watermark=watermark,
        ),
        owner_id=owner_id,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
