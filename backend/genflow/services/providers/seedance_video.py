"""ByteDance Seedance video provider.

Modes: ``t2v`` (text only), ``i2v-first`` (first frame) and
``i2v-first-last`` (first and last frame).
"""

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

NAME = "seedance"
DEFAULT_MODEL = "seedance-1.0-pro"
MODES = ("t2v", "i2v-first", "i2v-first-last")


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
    mode: str = "t2v",
    ratio: str | None = None,
    duration: int | None = None,
    resolution: str | None = None,
    fps: int | None = None,
    camerafixed: bool | None = None,
    seed: int | str | None = None,
    first_frame_base64: str | None = None,
    last_frame_base64: str | None = None,
    owner_id: str | None = None,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedVideo]:
    if mode not in MODES:
        raise ValueError(f"Unknown Seedance mode: {mode}")
    if mode != "t2v" and not first_frame_base64:
        raise ValueError(f"Seedance mode {mode} requires a first frame")
    if mode == "i2v-first-last" and not last_frame_base64:
        raise ValueError("Seedance mode i2v-first-last requires a last frame")

    request = GenerationRequest(
        prompt=prompt,
        model=model or DEFAULT_MODEL,
        provider_options=collect_options(
            mode=mode,
            ratio=ratio,
            duration=duration,
            resolution=resolution,
            fps=fps,
            camerafixed=camerafixed,
            seed=seed,
            imageBase64=first_frame_base64,
            lastFrameBase64=last_frame_base64,
        ),
        owner_id=owner_id,
        aspect_ratio=ratio,
        duration_seconds=duration,
    )
    return await run_variant(VARIANT, request, tracker=tracker, **job_kwargs)
