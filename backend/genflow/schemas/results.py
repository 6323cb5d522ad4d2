from __future__ import annotations
"""Typed generation results produced by the provider parsers."""

from typing import Literal

from pydantic import BaseModel, Field


class GeneratedAsset(BaseModel):
    """Provenance shared by every generated asset."""

    url: str
    prompt: str
    model: str
    provider: str
    timestamp: str
    job_id: str | None = Field(default=None, serialization_alias="jobId")
    owner_id: str | None = Field(default=None, serialization_alias="ownerId")
    references: list[str] | None = None
    avatar_id: str | None = Field(default=None, serialization_alias="avatarId")
    avatar_image_id: str | None = Field(default=None, serialization_alias="avatarImageId")
    product_id: str | None = Field(default=None, serialization_alias="productId")
    style_id: str | None = Field(default=None, serialization_alias="styleId")
    r2_file_id: str | None = Field(default=None, serialization_alias="r2FileId")


class GeneratedImage(GeneratedAsset):
    type: Literal["image"] = "image"


class GeneratedVideo(GeneratedAsset):
    type: Literal["video"] = "video"
    aspect_ratio: str | None = Field(default=None, serialization_alias="aspectRatio")
    duration_seconds: float | None = Field(default=None, serialization_alias="durationSeconds")
    generation_id: str | None = Field(default=None, serialization_alias="generationId")
    state: str | None = None
