"""Ordered extraction strategies for loosely shaped provider documents.

Every field the client reads from an untyped response (job id, status,
stage, progress, result URLs) is resolved by walking a tuple of small pure
strategies; the first strategy that yields a value wins. Supporting a new
provider's field name means adding one entry to the relevant tuple.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")

Strategy = Callable[[Mapping[str, Any]], Optional[T]]


def pick_string(value: Any) -> str | None:
    """Return the stripped string if ``value`` is a non-blank string."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None


def as_record(value: Any) -> dict[str, Any] | None:
    """Return ``value`` if it is a JSON object, else None."""
    return value if isinstance(value, dict) else None


def coerce_progress(value: Any) -> float | None:
    """Coerce numbers and percent strings (``"12"``, ``"12.5%"``) to float."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        cleaned = value.strip().removesuffix("%").strip()
        try:
            parsed = float(cleaned)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def first_match(strategies: Iterable[Strategy[T]], record: Mapping[str, Any] | None) -> T | None:
    """Run ``strategies`` in order against ``record``; first non-None wins."""
    if not record:
        return None
    for strategy in strategies:
        value = strategy(record)
        if value is not None:
            return value
    return None


# ---------------------------------------------------------------------------
# Strategy builders
# ---------------------------------------------------------------------------

def from_key(key: str, coerce: Callable[[Any], T | None] = pick_string) -> Strategy[T]:
    """Read ``record[key]`` through ``coerce``."""

    def strategy(record: Mapping[str, Any]) -> T | None:
        return coerce(record.get(key))

    strategy.__name__ = f"from_key({key})"
    return strategy


def from_metadata(key: str, coerce: Callable[[Any], T | None] = pick_string) -> Strategy[T]:
    """Read ``record["metadata"][key]`` through ``coerce``."""

    def strategy(record: Mapping[str, Any]) -> T | None:
        metadata = as_record(record.get("metadata"))
        return coerce(metadata.get(key)) if metadata else None

    strategy.__name__ = f"from_metadata({key})"
    return strategy


def from_list(
    key: str,
    item_keys: Sequence[str] = ("url",),
    *,
    in_metadata: bool = False,
) -> Strategy[str]:
    """First usable URL inside an array field.

    Entries may be bare strings or objects carrying one of ``item_keys``.
    """

    def strategy(record: Mapping[str, Any]) -> str | None:
        source = as_record(record.get("metadata")) if in_metadata else record
        if not source:
            return None
        entries = source.get(key)
        if not isinstance(entries, list):
            return None
        for entry in entries:
            direct = pick_string(entry)
            if direct:
                return direct
            item = as_record(entry)
            if item:
                for item_key in item_keys:
                    nested = pick_string(item.get(item_key))
                    if nested:
                        return nested
        return None

    strategy.__name__ = f"from_list({key})"
    return strategy


def inline_base64(data_key: str = "imageBase64", mime_key: str = "mimeType") -> Strategy[str]:
    """Build a data URL from an inline base64 payload plus its MIME type."""

    def strategy(record: Mapping[str, Any]) -> str | None:
        data = pick_string(record.get(data_key))
        if not data:
            return None
        if data.startswith("data:"):
            return data
        mime = pick_string(record.get(mime_key)) or "image/png"
        return f"data:{mime};base64,{data}"

    strategy.__name__ = f"inline_base64({data_key})"
    return strategy


# ---------------------------------------------------------------------------
# Field strategies
# ---------------------------------------------------------------------------

JOB_ID_STRATEGIES: tuple[Strategy[str], ...] = (
    from_key("jobId"),
    from_key("job_id"),
    from_key("id"),
)

STATUS_STRATEGIES: tuple[Strategy[str], ...] = (
    from_key("status"),
    from_key("state"),
)

PROGRESS_STRATEGIES: tuple[Strategy[float], ...] = (
    from_key("progress", coerce_progress),
    from_metadata("progress", coerce_progress),
    from_metadata("percentComplete", coerce_progress),
)

STAGE_STRATEGIES: tuple[Strategy[str], ...] = (
    from_metadata("stage"),
    from_metadata("Stage"),
    from_metadata("currentStage"),
    from_key("status"),
    from_key("state"),
)

JOB_ERROR_STRATEGIES: tuple[Strategy[str], ...] = (
    from_key("error"),
    from_metadata("error"),
)

IMMEDIATE_URL_STRATEGIES: tuple[Strategy[str], ...] = (
    from_key("dataUrl"),
    from_list("dataUrls"),
    from_key("image"),
    from_key("resultUrl"),
    from_key("url"),
    inline_base64(),
)


def job_result_url_strategies(
    metadata_keys: Sequence[str],
    list_keys: Sequence[str] = ("results",),
    item_keys: Sequence[str] = ("url", "resultUrl"),
) -> tuple[Strategy[str], ...]:
    """Result URL search order for a completed job document.

    ``resultUrl`` first, then each metadata key, then the metadata arrays.
    """
    return (
        from_key("resultUrl"),
        *(from_metadata(key) for key in metadata_keys),
        *(from_list(key, item_keys, in_metadata=True) for key in list_keys),
    )
