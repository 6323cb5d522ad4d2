"""Pydantic v2 schemas and job lifecycle types."""

from genflow.schemas.jobs import (
    GenerationJobResult,
    JobStatusPayload,
    JobStatusSnapshot,
    MediaType,
    NormalizedStatus,
    ProviderJobResponse,
)
from genflow.schemas.results import GeneratedAsset, GeneratedImage, GeneratedVideo

__all__ = [
    "GeneratedAsset",
    "GeneratedImage",
    "GeneratedVideo",
    "GenerationJobResult",
    "JobStatusPayload",
    "JobStatusSnapshot",
    "MediaType",
    "NormalizedStatus",
    "ProviderJobResponse",
]
