"""Pytest configuration helpers.

Puts ``backend/`` on ``sys.path`` so tests can import the ``genflow``
package without installing it, and provides a scripted fake of the
generation API built on ``httpx.MockTransport``.
"""
import json
import os
import sys

import httpx
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from genflow.config import get_settings  # noqa: E402
from genflow.services.api_client import ApiClient  # noqa: E402

BASE_URL = "http://api.test"


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    monkeypatch.setenv("GENFLOW_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("GENFLOW_API_TOKEN", "")
    monkeypatch.setenv("GENFLOW_PROGRESS_TICK_INTERVAL", "60")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _as_response(entry):
    if isinstance(entry, httpx.Response):
        return entry
    if isinstance(entry, tuple):
        status, body = entry
        return httpx.Response(status, json=body)
    return httpx.Response(200, json=entry)


class ScriptedApi:
    """Answers submissions and job polls from canned entries.

    Each entry is a JSON body (200), a ``(status, body)`` tuple or a ready
    ``httpx.Response``. The last entry of each script repeats once the
    others are used up.
    """

    def __init__(self, submissions=(), polls=()):
        self.submissions = list(submissions)
        self.polls = list(polls)
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST" and self.submissions:
            entry = self.submissions.pop(0) if len(self.submissions) > 1 else self.submissions[0]
            return _as_response(entry)
        if request.method == "GET" and request.url.path.startswith("/api/jobs/") and self.polls:
            entry = self.polls.pop(0) if len(self.polls) > 1 else self.polls[0]
            return _as_response(entry)
        return httpx.Response(404, json={"error": "not found"})

    def client(self, token: str | None = "test-token") -> ApiClient:
        transport = httpx.MockTransport(self.handler)
        return ApiClient(BASE_URL, token=token, http_client=httpx.AsyncClient(transport=transport))

    @property
    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def polls_made(self) -> int:
        return sum(1 for r in self.requests if r.method == "GET")

    @property
    def submitted_bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.posts]


@pytest.fixture
def scripted_api():
    return ScriptedApi
