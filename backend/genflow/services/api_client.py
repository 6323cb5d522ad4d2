"""HTTP client for the generation API.

Thin wrapper over ``httpx.AsyncClient`` that adds the bearer token, JSON
encoding, per-request timeouts and cancellation, and turns non-success
responses into ``ApiError``.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

import httpx

from genflow.config import get_settings
from genflow.exceptions import ApiError, RequestTimeoutError
from genflow.services.cancellation import CancellationToken, guarded

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]


class ApiClient:
    """JSON client bound to one API base URL.

    ``token_provider`` is awaited before every request so an external auth
    layer can refresh tokens; otherwise the static ``token`` is used.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        token: str | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
        default_timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token if token is not None else (settings.API_TOKEN or None)
        self.token_provider = token_provider
        self.default_timeout = settings.REQUEST_TIMEOUT if default_timeout is None else default_timeout
        self._client = http_client
        self._own_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.default_timeout)
            self._own_client = True
        return self._client

    async def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = await self.token_provider() if self.token_provider else self.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        timeout: float | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the JSON object body.

        Empty or non-object bodies come back as ``{}``.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        url = f"{self.base_url}/{path.lstrip('/')}"
        effective_timeout = self.default_timeout if timeout is None else timeout
        headers = await self._headers()

        try:
            response = await guarded(
                self._get_client().request(
                    method,
                    url,
                    json=json,
                    headers=headers,
                    timeout=effective_timeout,
                ),
                cancel_token,
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"Request to {path} timed out after {effective_timeout:g}s"
            ) from exc

        if response.is_error:
            message = _error_message(response)
            logger.debug("%s %s -> %d: %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message, payload=_safe_json(response))

        body = _safe_json(response)
        return body if isinstance(body, dict) else {}

    async def aclose(self) -> None:
        if self._client is not None and self._own_client:
            await self._client.aclose()
        self._client = None


def _safe_json(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    """Best human-readable message from an error response."""
    body = _safe_json(response)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    text = response.text.strip()
    return text or f"Request failed with {response.status_code}"


# ---------------------------------------------------------------------------
# Shared client (lazy init)
# ---------------------------------------------------------------------------

_default_client: ApiClient | None = None


def get_api_client() -> ApiClient:
    """Return the module-level ApiClient, creating it on first use."""
    global _default_client
    if _default_client is None:
        _default_client = ApiClient()
    return _default_client
