"""User-facing text for generation failures.

Callers show the resolved message to the user; cancellations resolve to
``None`` because a cancelled generation is not a failure.
"""

from __future__ import annotations

import httpx

from genflow.exceptions import ApiError, is_cancellation

NETWORK_RETRY_MESSAGE = "We couldn't reach the server. Check your connection and try again."
PLAN_LIMIT_MESSAGE = "You've hit your plan limit. Upgrade or try a lower-cost model."
SESSION_EXPIRED_MESSAGE = "Your session expired. Log back in to continue."
DEFAULT_GENERATION_MESSAGE = "We couldn't generate that. Try again in a moment."

NETWORK_ERROR_PATTERNS = (
    "failed to fetch",
    "networkerror",
    "network request failed",
    "load failed",
    "network connection was lost",
)

PLAN_LIMIT_PATTERNS = (
    "plan limit",
    "out of credits",
    "insufficient credit",
    "quota",
)

SESSION_EXPIRED_PATTERNS = (
    "session expired",
    "token expired",
    "unauthorized",
    "not authenticated",
)

SESSION_STATUSES = {401}
PLAN_LIMIT_STATUSES = {402, 403, 429}


def _matches(text: str, patterns: tuple[str, ...]) -> bool:
    return any(pattern in text for pattern in patterns)


def resolve_generation_error_message(
    exc: BaseException,
    fallback: str | None = None,
) -> str | None:
    """Map an exception from ``run_generation_job`` to display text."""
    if is_cancellation(exc):
        return None

    if isinstance(exc, httpx.TransportError) and not isinstance(exc, httpx.TimeoutException):
        return NETWORK_RETRY_MESSAGE

    message = str(exc).strip()
    lower = message.lower()

    if _matches(lower, NETWORK_ERROR_PATTERNS):
        return NETWORK_RETRY_MESSAGE

    status = exc.status_code if isinstance(exc, ApiError) else None
    if status in SESSION_STATUSES or _matches(lower, SESSION_EXPIRED_PATTERNS):
        return SESSION_EXPIRED_MESSAGE
    if status in PLAN_LIMIT_STATUSES or _matches(lower, PLAN_LIMIT_PATTERNS):
        return PLAN_LIMIT_MESSAGE

    return message or fallback or DEFAULT_GENERATION_MESSAGE
