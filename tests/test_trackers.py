import json

import redis

from genflow.schemas.jobs import JobStatusPayload, JobStatusSnapshot, NormalizedStatus
from genflow.services.trackers import (
    GenerationJobTracker,
    InMemoryJobTracker,
    RedisJobTracker,
    clamp_progress,
)


def _snapshot(status, progress=None, stage=None):
    return JobStatusSnapshot(
        job=JobStatusPayload(status=status.value.upper()),
        status=status,
        progress=progress,
        stage=stage,
    )


def test_clamp_progress():
    assert clamp_progress(None) is None
    assert clamp_progress(-5) == 0
    assert clamp_progress(140) == 100


def test_in_memory_tracker_lifecycle():
    tracker = InMemoryJobTracker()
    assert isinstance(tracker, GenerationJobTracker)

    tracker.enqueue("job-1", "a cat", "flux-2-pro")
    tracker.update("job-1", _snapshot(NormalizedStatus.PROCESSING, 40, "rendering"))

    job = tracker.active_jobs["job-1"]
    assert job.status is NormalizedStatus.PROCESSING
    assert job.progress == 40
    assert job.stage == "rendering"

    tracker.update("job-1", _snapshot(NormalizedStatus.PROCESSING, 20))
    assert job.progress == 40
    assert job.backend_progress == 20
    assert job.stage == "rendering"

    tracker.finalize("job-1")
    assert "job-1" not in tracker.active_jobs
    assert tracker.history == [
        ("enqueue", "job-1"),
        ("update", "job-1"),
        ("update", "job-1"),
        ("finalize", "job-1"),
    ]


def test_in_memory_tracker_ignores_unknown_job():
    tracker = InMemoryJobTracker()
    tracker.update("ghost", _snapshot(NormalizedStatus.FAILED))
    tracker.finalize("ghost")
    assert tracker.active_jobs == {}


class _FakeRedis:
    def __init__(self, fail=False):
        self.fail = fail
        self.published = []

    def publish(self, channel, message):
        if self.fail:
            raise redis.ConnectionError("down")
        self.published.append((channel, json.loads(message)))
        return 1


def test_redis_tracker_publishes_lifecycle_events():
    client = _FakeRedis()
    tracker = RedisJobTracker("user-7", client=client)

    tracker.enqueue("job-1", "a cat", "flux-2-pro")
    tracker.update("job-1", _snapshot(NormalizedStatus.PROCESSING, 150.0, "upscaling"))
    tracker.finalize("job-1")

    channels = {channel for channel, _ in client.published}
    assert channels == {"genflow:jobs:user-7"}
    types = [message["type"] for _, message in client.published]
    assert types == ["job_enqueued", "job_update", "job_finalized"]

    update = client.published[1][1]
    assert update["status"] == "processing"
    assert update["progress"] == 100
    assert update["stage"] == "upscaling"
    assert update["job"] == {"status": "PROCESSING"}


def test_redis_tracker_swallows_publish_failures():
    tracker = RedisJobTracker(client=_FakeRedis(fail=True))

    tracker.enqueue("job-1", "a cat", "flux-2-pro")
    tracker.finalize("job-1")


def test_redis_pool_uses_short_socket_timeouts(monkeypatch):
    from genflow.services import trackers

    monkeypatch.setenv("GENFLOW_REDIS_URL", "redis://cache.test:6380/2")
    monkeypatch.setenv("GENFLOW_REDIS_SOCKET_TIMEOUT", "0.25")
    monkeypatch.setattr(trackers, "_sync_pool", None)
    calls = []

    def from_url(url, **kwargs):
        calls.append((url, kwargs))
        return object()

    monkeypatch.setattr(redis.ConnectionPool, "from_url", from_url)

    pool = trackers._get_sync_pool()

    assert trackers._get_sync_pool() is pool
    assert calls == [(
        "redis://cache.test:6380/2",
        {"socket_connect_timeout": 0.5, "socket_timeout": 0.25},
    )]


def test_redis_tracker_swallows_publish_timeouts():
    class _SlowRedis(_FakeRedis):
        def publish(self, channel, message):
            raise redis.TimeoutError("Timeout connecting to server")

    tracker = RedisJobTracker(client=_SlowRedis())

    tracker.update("job-1", _snapshot(NormalizedStatus.PROCESSING, 10))
    tracker.finalize("job-1")
