import pytest

from genflow.exceptions import MissingResultError
from genflow.schemas.jobs import JobStatusPayload, JobStatusSnapshot, MediaType, NormalizedStatus
from genflow.schemas.results import GeneratedImage, GeneratedVideo
from genflow.services.job_submission import parse_provider_response
from genflow.services.providers import (
    PROVIDERS,
    GenerationRequest,
    get_provider,
    get_provider_module,
)
from genflow.services.providers import (
    flux_image,
    gemini_image,
    gpt_image,
    grok_image,
    kling_video,
    luma_video,
    runway_image,
    sora_video,
)
from genflow.services.trackers import InMemoryJobTracker

from conftest import ScriptedApi


def _completed(**job):
    job.setdefault("status", "COMPLETED")
    return JobStatusSnapshot(job=JobStatusPayload.model_validate(job), status=NormalizedStatus.COMPLETED)


def _request(model="m-1", **kwargs):
    return GenerationRequest(prompt="a lighthouse", model=model, **kwargs)


def test_registry_covers_all_tags():
    assert set(PROVIDERS) == {
        "flux", "grok", "runway", "chatgpt", "gemini",
        "sora", "veo", "seedance", "kling", "wan", "luma",
    }
    assert get_provider("sora").media_type is MediaType.VIDEO
    assert get_provider("gemini").media_type is MediaType.IMAGE
    assert get_provider_module("kling") is kling_video


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider: midjourney"):
        get_provider("midjourney")


def test_envelope_drops_unset_fields():
    request = GenerationRequest(
        prompt="p",
        model="m",
        provider_options={"seed": 3},
        references=[],
        avatar_id="av-1",
        owner_id="user-1",
    )

    assert request.envelope() == {
        "prompt": "p",
        "model": "m",
        "providerOptions": {"seed": 3},
        "avatarId": "av-1",
    }


def test_flux_reads_r2_metadata():
    snapshot = _completed(id="job-1", metadata={"r2FileUrl": "https://r2/x.png", "r2FileId": "file-9"})
    response = parse_provider_response({"jobId": "job-1"})

    image = flux_image.parse_job_result(snapshot, response, _request(owner_id="user-1"))

    assert isinstance(image, GeneratedImage)
    assert image.url == "https://r2/x.png"
    assert image.job_id == "job-1"
    assert image.r2_file_id == "file-9"
    assert image.provider == "flux"
    assert image.owner_id == "user-1"
    dumped = image.model_dump(by_alias=True, exclude_none=True)
    assert dumped["jobId"] == "job-1"
    assert dumped["r2FileId"] == "file-9"
    assert dumped["type"] == "image"


def test_flux_prefers_top_level_result_url():
    snapshot = _completed(resultUrl="https://top", metadata={"fileUrl": "https://meta"})
    image = flux_image.parse_job_result(snapshot, parse_provider_response({"jobId": "j"}), _request())
    assert image.url == "https://top"


def test_flux_without_url_raises():
    snapshot = _completed(metadata={"note": "nothing here"})
    with pytest.raises(MissingResultError, match="no result URL"):
        flux_image.parse_job_result(snapshot, parse_provider_response({"jobId": "j"}), _request())


def test_flux_has_no_immediate_parser():
    assert flux_image.VARIANT.parse_immediate_result is None


def test_grok_immediate_uses_first_data_url():
    response = parse_provider_response({"dataUrls": ["data:image/png;base64,A", "data:b"]})
    image = grok_image.parse_immediate_result(response, _request())
    assert image.url == "data:image/png;base64,A"


def test_grok_immediate_without_image_is_none():
    assert grok_image.parse_immediate_result(parse_provider_response({"ok": True}), _request()) is None


def test_grok_fallback_models():
    variant = grok_image.VARIANT
    assert variant.fallback_for("grok-2-image-latest") == "grok-2-image"
    assert variant.fallback_for("grok-2-image-1212") == "grok-2-image"
    assert variant.fallback_for("grok-2-image") is None


def test_runway_reads_metadata_images():
    snapshot = _completed(metadata={"images": [{"imageUrl": "https://rw/1.png"}]})
    image = runway_image.parse_job_result(snapshot, parse_provider_response({"jobId": "j"}), _request())
    assert image.url == "https://rw/1.png"


def test_runway_falls_back_to_submission_payload():
    snapshot = _completed(metadata={})
    response = parse_provider_response({"jobId": "j", "dataUrl": "data:image/png;base64,Q"})
    image = runway_image.parse_job_result(snapshot, response, _request())
    assert image.url == "data:image/png;base64,Q"


def test_gemini_inline_base64():
    response = parse_provider_response({"imageBase64": "QUJD", "mimeType": "image/webp"})
    image = gemini_image.parse_immediate_result(response, _request())
    assert image.url == "data:image/webp;base64,QUJD"


def test_gemini_prefers_hosted_url():
    response = parse_provider_response({"url": "https://r2/g.png", "imageBase64": "QUJD"})
    image = gemini_image.parse_immediate_result(response, _request())
    assert image.url == "https://r2/g.png"


def test_chatgpt_immediate_reads_shared_fields():
    parse = gpt_image.parse_immediate_result

    both = parse_provider_response({"dataUrls": ["data:first"], "dataUrl": "data:single"})
    assert parse(both, _request()).url == "data:first"
    assert parse(parse_provider_response({"image": "https://cdn/c.png"}), _request()).url == "https://cdn/c.png"
    assert parse(parse_provider_response({"resultUrl": "https://cdn/r.png"}), _request()).url == "https://cdn/r.png"


def test_runway_immediate_uses_shared_fields():
    response = parse_provider_response({"imageBase64": "QUJD"})
    image = runway_image.parse_immediate_result(response, _request())
    assert image.url == "data:image/png;base64,QUJD"


def test_sora_video_result_carries_aspect_ratio():
    snapshot = _completed(id="job-v", metadata={"results": [{"videoUrl": "https://v/1.mp4"}]})
    request = _request(aspect_ratio="9:16", duration_seconds=8)

    video = sora_video.parse_job_result(snapshot, parse_provider_response({"jobId": "job-v"}), request)

    assert isinstance(video, GeneratedVideo)
    assert video.url == "https://v/1.mp4"
    assert video.aspect_ratio == "9:16"
    assert video.duration_seconds == 8
    assert video.type == "video"


def test_sora_falls_back_to_payload_video_url():
    snapshot = _completed(metadata={})
    response = parse_provider_response({"jobId": "j", "videoUrl": "https://v/p.mp4"})
    video = sora_video.parse_job_result(snapshot, response, _request())
    assert video.url == "https://v/p.mp4"


def test_kling_reads_video_list():
    snapshot = _completed(metadata={"videos": [{"url": "https://k/1.mp4"}]})
    video = kling_video.parse_job_result(snapshot, parse_provider_response({"jobId": "j"}), _request())
    assert video.url == "https://k/1.mp4"


@pytest.mark.asyncio
async def test_kling_rejects_unsupported_duration():
    with pytest.raises(ValueError, match="duration=7"):
        await kling_video.generate("p", tracker=InMemoryJobTracker(), duration=7)


def test_luma_reads_generation_id_from_metadata():
    snapshot = _completed(
        id="job-l",
        metadata={"videoUrl": "https://luma/v.mp4", "generationId": "gen-1"},
    )
    response = parse_provider_response({"jobId": "job-l", "generationId": "gen-payload"})

    video = luma_video.parse_job_result(snapshot, response, _request(model="luma-ray-2"))

    assert video.url == "https://luma/v.mp4"
    assert video.generation_id == "gen-1"
    assert video.job_id == "job-l"
    assert video.state == "COMPLETED"
    dumped = video.model_dump(by_alias=True, exclude_none=True)
    assert dumped["generationId"] == "gen-1"
    assert dumped["provider"] == "luma"


def test_luma_falls_back_to_submission_payload():
    snapshot = _completed(id="job-p", status="SUCCEEDED", metadata={})
    response = parse_provider_response({
        "jobId": "job-p",
        "resultUrl": "https://luma/result.mp4",
        "videoUrl": "https://luma/video.mp4",
        "generation_id": "gen-2",
    })

    video = luma_video.parse_job_result(snapshot, response, _request())

    assert video.url == "https://luma/result.mp4"
    assert video.generation_id == "gen-2"
    assert video.state == "SUCCEEDED"


def test_luma_generation_id_defaults_to_job_id():
    snapshot = _completed(id="job-3", resultUrl="https://luma/3.mp4")
    video = luma_video.parse_job_result(snapshot, parse_provider_response({"jobId": "job-3"}), _request())
    assert video.generation_id == "job-3"


def test_luma_immediate_result_keeps_state():
    response = parse_provider_response({
        "videoUrl": "https://luma/now.mp4",
        "generationId": "gen-4",
        "state": "completed",
    })

    video = luma_video.parse_immediate_result(response, _request())

    assert video.url == "https://luma/now.mp4"
    assert video.generation_id == "gen-4"
    assert video.state == "completed"
    assert luma_video.parse_immediate_result(parse_provider_response({"state": "dreaming"}), _request()) is None


@pytest.mark.asyncio
async def test_luma_rejects_unknown_model():
    with pytest.raises(ValueError, match="model=ray-1"):
        await luma_video.generate("p", tracker=InMemoryJobTracker(), model="ray-1")


@pytest.mark.asyncio
async def test_flux_generate_end_to_end():
    api = ScriptedApi(
        submissions=[{"jobId": "job-f", "status": "PENDING"}],
        polls=[
            {"status": "RUNNING", "progress": "35%"},
            {"status": "SUCCEEDED", "metadata": {"fileUrl": "https://cdn/f.png"}},
        ],
    )
    tracker = InMemoryJobTracker()

    outcome = await flux_image.generate(
        "a lighthouse",
        tracker=tracker,
        width=1024,
        height=768,
        poll_interval=0,
        client=api.client(),
    )

    assert outcome.result.url == "https://cdn/f.png"
    assert outcome.result.model == flux_image.DEFAULT_MODEL
    assert api.submitted_bodies == [
        {
            "prompt": "a lighthouse",
            "model": "flux-2-pro",
            "providerOptions": {"width": 1024, "height": 768},
        }
    ]
    assert api.posts[0].url.path == "/api/image/flux"
    assert tracker.history[0] == ("enqueue", "job-f")


@pytest.mark.asyncio
async def test_grok_generate_reports_fallback_model():
    api = ScriptedApi(
        submissions=[
            (400, {"error": "Unknown model"}),
            {"dataUrl": "data:image/png;base64,G"},
        ],
    )

    outcome = await grok_image.generate(
        "a cat",
        tracker=InMemoryJobTracker(),
        model="grok-2-image-latest",
        client=api.client(),
    )

    assert outcome.fallback_used
    assert outcome.result.model == "grok-2-image"
    assert outcome.result.url == "data:image/png;base64,G"


@pytest.mark.asyncio
async def test_sora_generate_posts_to_video_endpoint():
    api = ScriptedApi(submissions=[{"videoUrl": "https://v/now.mp4"}])

    outcome = await sora_video.generate(
        "waves", tracker=InMemoryJobTracker(), aspect_ratio="9:16", client=api.client()
    )

    assert api.posts[0].url.path == "/api/video/sora"
    assert api.submitted_bodies[0]["providerOptions"] == {"aspectRatio": "9:16"}
    assert outcome.result.url == "https://v/now.mp4"
    assert outcome.result.aspect_ratio == "9:16"
