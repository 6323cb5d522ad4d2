"""Generation job orchestrator.

Unifies the two response shapes a provider endpoint can produce:

  immediate result  → parse the submission payload, done (no tracker calls)
  job id            → tracker.enqueue → poll (tracker.update per snapshot)
                      → tracker.finalize → classify → parse the job result

Errors from submission, polling or parsing always propagate; the only
guarantee added here is tracker and progress cleanup.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, TypeVar

from genflow.exceptions import ApiError, JobFailedError, MissingResultError, is_cancellation
from genflow.schemas.jobs import (
    GenerationJobResult,
    JobStatusPayload,
    JobStatusSnapshot,
    MediaType,
    NormalizedStatus,
    ProviderJobResponse,
)
from genflow.services.api_client import ApiClient
from genflow.services.cancellation import CancellationToken
from genflow.services.extraction import JOB_ERROR_STRATEGIES, as_record, first_match, pick_string
from genflow.services.job_polling import SnapshotCallback, poll_job_status
from genflow.services.job_submission import post_provider_job
from genflow.services.progress import ProgressController, ProgressSlot, ProgressUpdate
from genflow.services.trackers import GenerationJobTracker

logger = logging.getLogger(__name__)

R = TypeVar("R")

JobResultParser = Callable[[JobStatusSnapshot, ProviderJobResponse], R]
ImmediateResultParser = Callable[[ProviderJobResponse], Optional[R]]

MODEL_REJECTED_STATUS = 400

_FAILED_SNAPSHOT = JobStatusSnapshot(
    job=JobStatusPayload(status="FAILED"),
    status=NormalizedStatus.FAILED,
)


def failure_message(snapshot: JobStatusSnapshot) -> str:
    """Error text for a failed job: ``job.error`` when usable."""
    record = as_record(snapshot.job.error)
    if record:
        nested = pick_string(record.get("message"))
        if nested:
            return nested
    message = first_match(JOB_ERROR_STRATEGIES, snapshot.job.to_raw())
    return message or "Generation failed"


async def submit_with_model_fallback(
    *,
    provider: str,
    media_type: MediaType | str,
    body: Mapping[str, Any],
    fallback_model: str | None = None,
    cancel_token: CancellationToken | None = None,
    timeout: float | None = None,
    client: ApiClient | None = None,
) -> tuple[ProviderJobResponse, str | None, bool]:
    """Submit; on a model rejection (400) retry exactly once with ``fallback_model``.

    Returns the response, the model actually used, and whether the
    fallback was taken.
    """
    requested = body.get("model")
    try:
        response = await post_provider_job(
            provider=provider,
            media_type=media_type,
            body=body,
            cancel_token=cancel_token,
            timeout=timeout,
            client=client,
        )
        return response, requested, False
    except ApiError as exc:
        if (
            exc.status_code != MODEL_REJECTED_STATUS
            or not fallback_model
            or fallback_model == requested
        ):
            raise
        logger.warning(
            "%s rejected model %s (%s); retrying once with %s",
            provider, requested, exc.message, fallback_model,
        )

    response = await post_provider_job(
        provider=provider,
        media_type=media_type,
        body={**body, "model": fallback_model},
        cancel_token=cancel_token,
        timeout=timeout,
        client=client,
    )
    return response, fallback_model, True


async def run_generation_job(
    *,
    provider: str,
    media_type: MediaType | str,
    body: Mapping[str, Any],
    tracker: GenerationJobTracker,
    prompt: str,
    model: str,
    parse_job_result: JobResultParser[R],
    parse_immediate_result: ImmediateResultParser | None = None,
    on_update: SnapshotCallback | None = None,
    on_progress: Callable[[ProgressUpdate], None] | None = None,
    progress_slot: ProgressSlot | None = None,
    cancel_token: CancellationToken | None = None,
    timeout: float | None = None,
    poll_interval: float | None = None,
    poll_timeout: float | None = None,
    request_timeout: float | None = None,
    fallback_model: str | None = None,
    client: ApiClient | None = None,
) -> GenerationJobResult[R]:
    """Run one generation end to end.

    Args:
        timeout: Submission request timeout (seconds).
        poll_interval / poll_timeout / request_timeout: Polling engine knobs.
        on_update: Receives every poll snapshot after the tracker does.
        on_progress: When given, a smoothed progress stream is published
            through a ``ProgressController`` started in ``progress_slot``.
        fallback_model: Model to retry with once if the provider rejects
            the requested one with a 400.
    """
    slot = progress_slot or ProgressSlot()
    controller = slot.start(on_progress) if on_progress is not None else None

    try:
        response, used_model, fallback_used = await submit_with_model_fallback(
            provider=provider,
            media_type=media_type,
            body=body,
            fallback_model=fallback_model,
            cancel_token=cancel_token,
            timeout=timeout,
            client=client,
        )
        effective_model = used_model or model

        if response.is_immediate:
            result = _parse_immediate(response, parse_immediate_result)
            _stop_progress(slot, controller, status=NormalizedStatus.COMPLETED, progress=100)
            return GenerationJobResult(
                result=result,
                response=response,
                model=effective_model,
                fallback_used=fallback_used,
            )

        job_id = response.job_id
        if controller is not None:
            controller.update_with_backend(status=response.status, job_id=job_id)

        snapshot = await _track_job(
            job_id,
            tracker=tracker,
            prompt=prompt,
            model=effective_model,
            controller=controller,
            on_update=on_update,
            cancel_token=cancel_token,
            poll_interval=poll_interval,
            poll_timeout=poll_timeout,
            request_timeout=request_timeout,
            client=client,
        )

        if snapshot.status is not NormalizedStatus.COMPLETED:
            raise JobFailedError(failure_message(snapshot), job_id=job_id, snapshot=snapshot)

        result = parse_job_result(snapshot, response)
        _stop_progress(slot, controller, status=NormalizedStatus.COMPLETED, progress=100)
        return GenerationJobResult(
            result=result,
            response=response,
            job_id=job_id,
            snapshot=snapshot,
            model=effective_model,
            fallback_used=fallback_used,
        )
    except BaseException as exc:
        if is_cancellation(exc):
            _stop_progress(slot, controller)
        else:
            _stop_progress(slot, controller, status=NormalizedStatus.FAILED)
        raise


async def _track_job(
    job_id: str,
    *,
    tracker: GenerationJobTracker,
    prompt: str,
    model: str,
    controller: ProgressController | None,
    on_update: SnapshotCallback | None,
    cancel_token: CancellationToken | None,
    poll_interval: float | None,
    poll_timeout: float | None,
    request_timeout: float | None,
    client: ApiClient | None,
) -> JobStatusSnapshot:
    """Poll with tracker bookkeeping; finalize runs exactly once."""
    tracker.enqueue(job_id, prompt, model)
    last_status: NormalizedStatus | None = None

    def handle_update(snapshot: JobStatusSnapshot) -> None:
        nonlocal last_status
        tracker.update(job_id, snapshot)
        last_status = snapshot.status
        if controller is not None:
            controller.update_with_backend(
                progress=snapshot.progress,
                status=snapshot.status,
                stage=snapshot.stage,
                job_id=job_id,
            )
        if on_update is not None:
            on_update(snapshot)

    try:
        return await poll_job_status(
            job_id,
            interval=poll_interval,
            cancel_token=cancel_token,
            timeout=poll_timeout,
            request_timeout=request_timeout,
            on_update=handle_update,
            client=client,
        )
    except BaseException:
        if last_status is None or not last_status.is_terminal:
            tracker.update(job_id, _FAILED_SNAPSHOT)
        raise
    finally:
        tracker.finalize(job_id)


def _parse_immediate(
    response: ProviderJobResponse,
    parser: ImmediateResultParser | None,
) -> Any:
    if parser is None:
        raise MissingResultError(
            "Generation did not return a job id and no immediate result parser is configured."
        )
    result = parser(response)
    if result is None:
        raise MissingResultError("Generation response did not include a usable result.")
    return result


def _stop_progress(
    slot: ProgressSlot,
    controller: ProgressController | None,
    **final: Any,
) -> None:
    if controller is not None:
        slot.stop(controller, **final)
