"""Shared plumbing for provider variants.

A provider variant is data plus two parsers: which media type it serves,
its default model, where its result URL hides in a job document, and how
(if at all) it answers immediately. ``run_variant`` wires a variant into
``run_generation_job``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from genflow.exceptions import MissingResultError
from genflow.schemas.jobs import GenerationJobResult, JobStatusSnapshot, MediaType, ProviderJobResponse
from genflow.schemas.results import GeneratedImage, GeneratedVideo
from genflow.services.extraction import (
    IMMEDIATE_URL_STRATEGIES,
    JOB_ID_STRATEGIES,
    Strategy,
    as_record,
    first_match,
    from_key,
    from_list,
    from_metadata,
    job_result_url_strategies,
    pick_string,
)
from genflow.services.generation_job import run_generation_job
from genflow.services.trackers import GenerationJobTracker

logger = logging.getLogger(__name__)

NO_RESULT_URL = "Job completed but no result URL was provided."

GeneratedMedia = Union[GeneratedImage, GeneratedVideo]
JobParser = Callable[[JobStatusSnapshot, ProviderJobResponse, "GenerationRequest"], GeneratedMedia]
ImmediateParser = Callable[[ProviderJobResponse, "GenerationRequest"], Optional[GeneratedMedia]]

R2_FILE_ID_STRATEGIES: tuple[Strategy[str], ...] = (
    from_metadata("r2FileId"),
    from_key("r2FileId"),
)


@dataclass
class GenerationRequest:
    """Request options plus owner context for one generation."""

    prompt: str
    model: str
    provider_options: dict[str, Any] = field(default_factory=dict)
    references: list[str] | None = None
    avatar_id: str | None = None
    avatar_image_id: str | None = None
    product_id: str | None = None
    style_id: str | None = None
    owner_id: str | None = None
    aspect_ratio: str | None = None
    duration_seconds: float | None = None

    def envelope(self) -> dict[str, Any]:
        """JSON body for ``POST /api/{mediaType}/{provider}``."""
        body: dict[str, Any] = {"prompt": self.prompt, "model": self.model}
        if self.provider_options:
            body["providerOptions"] = dict(self.provider_options)
        optional = {
            "references": self.references or None,
            "avatarId": self.avatar_id,
            "avatarImageId": self.avatar_image_id,
            "productId": self.product_id,
            "styleId": self.style_id,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        return body


def record_keys(record: Any) -> list[str]:
    found = as_record(record)
    return sorted(found) if found else []


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def resolve_job_id(snapshot: JobStatusSnapshot | None, response: ProviderJobResponse) -> str | None:
    if response.job_id:
        return response.job_id
    if snapshot is not None:
        return pick_string(snapshot.job.id)
    return first_match(JOB_ID_STRATEGIES, response.payload)


def resolve_job_url(
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    strategies: Sequence[Strategy[str]],
    payload_strategies: Sequence[Strategy[str]] = (),
) -> str:
    """Result URL of a completed job, else ``MissingResultError``.

    The job document is searched first; ``payload_strategies`` then look at
    the original submission body.
    """
    url = first_match(strategies, snapshot.job.to_raw())
    if url is None and payload_strategies:
        url = first_match(payload_strategies, response.payload)
    if url is None:
        logger.warning(
            "Completed job %s has no result URL (metadata keys: %s)",
            snapshot.job.id, record_keys(snapshot.job.metadata),
        )
        raise MissingResultError(NO_RESULT_URL)
    return url


def build_result(
    media_type: MediaType,
    url: str,
    request: GenerationRequest,
    *,
    provider: str,
    job_id: str | None = None,
    r2_file_id: str | None = None,
) -> GeneratedMedia:
    common: dict[str, Any] = dict(
        url=url,
        prompt=request.prompt,
        model=request.model,
        provider=provider,
        timestamp=timestamp(),
        job_id=job_id,
        owner_id=request.owner_id,
        references=request.references,
        avatar_id=request.avatar_id,
        avatar_image_id=request.avatar_image_id,
        product_id=request.product_id,
        style_id=request.style_id,
        r2_file_id=r2_file_id,
    )
    if media_type is MediaType.VIDEO:
        return GeneratedVideo(
            aspect_ratio=request.aspect_ratio,
            duration_seconds=request.duration_seconds,
            **common,
        )
    return GeneratedImage(**common)


def job_result(
    media_type: MediaType,
    provider: str,
    snapshot: JobStatusSnapshot,
    response: ProviderJobResponse,
    request: GenerationRequest,
    strategies: Sequence[Strategy[str]],
    payload_strategies: Sequence[Strategy[str]] = (),
) -> GeneratedMedia:
    """Common body of every ``parse_job_result``."""
    url = resolve_job_url(snapshot, response, strategies, payload_strategies)
    r2_file_id = first_match(R2_FILE_ID_STRATEGIES, snapshot.job.to_raw()) or first_match(
        R2_FILE_ID_STRATEGIES, response.payload
    )
    return build_result(
        media_type,
        url,
        request,
        provider=provider,
        job_id=resolve_job_id(snapshot, response),
        r2_file_id=r2_file_id,
    )


def immediate_result(
    media_type: MediaType,
    provider: str,
    response: ProviderJobResponse,
    request: GenerationRequest,
    strategies: Sequence[Strategy[str]] = IMMEDIATE_URL_STRATEGIES,
) -> GeneratedMedia | None:
    """Common body of every ``parse_immediate_result``; None when no URL."""
    url = first_match(strategies, response.payload)
    if url is None:
        return None
    return build_result(
        media_type,
        url,
        request,
        provider=provider,
        job_id=resolve_job_id(None, response),
        r2_file_id=first_match(R2_FILE_ID_STRATEGIES, response.payload),
    )


def payload_url_strategies(keys: Sequence[str], list_key: str = "dataUrls") -> tuple[Strategy[str], ...]:
    return (*(from_key(key) for key in keys), from_list(list_key))


def collect_options(**options: Any) -> dict[str, Any]:
    """Drop unset provider options."""
    return {key: value for key, value in options.items() if value is not None}


@dataclass(frozen=True)
class ProviderVariant:
    """Everything the orchestrator needs to know about one provider tag."""

    name: str
    media_type: MediaType
    default_model: str
    parse_job_result: JobParser
    parse_immediate_result: ImmediateParser | None = None
    fallback_models: Mapping[str, str] = field(default_factory=dict)

    def fallback_for(self, model: str) -> str | None:
        return self.fallback_models.get(model)


async def run_variant(
    variant: ProviderVariant,
    request: GenerationRequest,
    *,
    tracker: GenerationJobTracker,
    **job_kwargs: Any,
) -> GenerationJobResult[GeneratedMedia]:
    """Run ``request`` through ``run_generation_job`` for ``variant``.

    ``job_kwargs`` are passed through (progress, cancellation, timeouts,
    client). When the model fallback is taken the result reports the
    model that actually produced it.
    """
    immediate = variant.parse_immediate_result

    outcome = await run_generation_job(
        provider=variant.name,
        media_type=variant.media_type,
        body=request.envelope(),
        tracker=tracker,
        prompt=request.prompt,
        model=request.model,
        parse_job_result=lambda snapshot, response: variant.parse_job_result(
            snapshot, response, request
        ),
        parse_immediate_result=(
            (lambda response: immediate(response, request)) if immediate is not None else None
        ),
        fallback_model=variant.fallback_for(request.model),
        **job_kwargs,
    )
    if outcome.fallback_used and outcome.model:
        logger.info("%s result produced by fallback model %s", variant.name, outcome.model)
        outcome.result = outcome.result.model_copy(update={"model": outcome.model})
    return outcome


# Video providers share one result layout: ``resultUrl`` or a metadata
# URL field, a ``results`` array, and finally the submission payload.
VIDEO_JOB_URL_STRATEGIES = job_result_url_strategies(
    ("resultUrl", "result_url", "url", "videoUrl"),
    item_keys=("url", "resultUrl", "videoUrl"),
)

VIDEO_PAYLOAD_URL_STRATEGIES = payload_url_strategies(("videoUrl", "resultUrl", "dataUrl"))

VIDEO_IMMEDIATE_URL_STRATEGIES = (
    from_key("videoUrl"),
    from_key("resultUrl"),
    from_key("dataUrl"),
)
