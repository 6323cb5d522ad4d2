import pytest

from genflow.schemas.jobs import NormalizedStatus
from genflow.services.job_status import build_snapshot, normalize_job_status


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("QUEUED", NormalizedStatus.QUEUED),
        ("pending", NormalizedStatus.QUEUED),
        ("Submitted", NormalizedStatus.QUEUED),
        ("scheduled", NormalizedStatus.QUEUED),
        ("running", NormalizedStatus.PROCESSING),
        ("IN_PROGRESS", NormalizedStatus.PROCESSING),
        ("process", NormalizedStatus.PROCESSING),
        ("executing", NormalizedStatus.PROCESSING),
        ("started", NormalizedStatus.PROCESSING),
        ("SUCCEEDED", NormalizedStatus.COMPLETED),
        ("done", NormalizedStatus.COMPLETED),
        ("finished", NormalizedStatus.COMPLETED),
        ("success", NormalizedStatus.COMPLETED),
        ("  completed  ", NormalizedStatus.COMPLETED),
        ("error", NormalizedStatus.FAILED),
        ("CANCELLED", NormalizedStatus.FAILED),
        ("something-new", NormalizedStatus.FAILED),
    ],
)
def test_normalize_known_and_unknown_statuses(raw, expected):
    assert normalize_job_status(raw) is expected


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_absent_status_is_queued(raw):
    assert normalize_job_status(raw) is NormalizedStatus.QUEUED


def test_normalize_without_argument():
    assert normalize_job_status() is NormalizedStatus.QUEUED


def test_terminal_flags():
    assert NormalizedStatus.COMPLETED.is_terminal
    assert NormalizedStatus.FAILED.is_terminal
    assert not NormalizedStatus.QUEUED.is_terminal
    assert not NormalizedStatus.PROCESSING.is_terminal


def test_build_snapshot_reads_progress_and_stage():
    snapshot = build_snapshot(
        {
            "id": "job-1",
            "status": "RUNNING",
            "progress": "42%",
            "metadata": {"stage": "upscaling"},
        }
    )

    assert snapshot.status is NormalizedStatus.PROCESSING
    assert snapshot.progress == 42.0
    assert snapshot.stage == "upscaling"
    assert snapshot.job.id == "job-1"
    assert not snapshot.is_terminal


def test_build_snapshot_falls_back_to_metadata_progress_and_status_stage():
    snapshot = build_snapshot({"status": "queued", "metadata": {"progress": 7}})

    assert snapshot.progress == 7.0
    assert snapshot.stage == "queued"


def test_build_snapshot_keeps_unknown_keys_and_result_url():
    snapshot = build_snapshot({"status": "COMPLETED", "resultUrl": "https://cdn/x.png", "extra": 1})

    assert snapshot.is_terminal
    raw = snapshot.job.to_raw()
    assert raw["resultUrl"] == "https://cdn/x.png"
    assert raw["extra"] == 1


def test_build_snapshot_tolerates_non_object():
    snapshot = build_snapshot(["not", "a", "job"])

    assert snapshot.status is NormalizedStatus.QUEUED
    assert snapshot.progress is None
    assert snapshot.stage is None
