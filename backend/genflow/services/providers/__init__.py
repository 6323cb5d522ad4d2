"""Provider variants, selected by provider tag.

Each module exposes ``parse_job_result``, ``parse_immediate_result``
(where the provider can answer synchronously), ``generate`` and a
``VARIANT`` describing it to the orchestrator:

  image: flux, grok, runway, chatgpt, gemini
  video: sora, veo, seedance, kling, wan, luma
"""

from __future__ import annotations

from types import ModuleType

from genflow.services.providers import (
    flux_image,
    gemini_image,
    gpt_image,
    grok_image,
    kling_video,
    luma_video,
    runway_image,
    seedance_video,
    sora_video,
    veo_video,
    wan_video,
)
from genflow.services.providers.base import GenerationRequest, ProviderVariant, run_variant

_MODULES: tuple[ModuleType, ...] = (
    flux_image,
    grok_image,
    runway_image,
    gpt_image,
    gemini_image,
    sora_video,
    veo_video,
    seedance_video,
    kling_video,
    wan_video,
    luma_video,
)

PROVIDERS: dict[str, ProviderVariant] = {module.VARIANT.name: module.VARIANT for module in _MODULES}
PROVIDER_MODULES: dict[str, ModuleType] = {module.NAME: module for module in _MODULES}


def get_provider(tag: str) -> ProviderVariant:
    """Look up a provider variant by tag."""
    try:
        return PROVIDERS[tag]
    except KeyError:
        raise ValueError(
            f"Unknown provider: {tag}. Available: {', '.join(sorted(PROVIDERS))}"
        ) from None


def get_provider_module(tag: str) -> ModuleType:
    get_provider(tag)
    return PROVIDER_MODULES[tag]


__all__ = [
    "GenerationRequest",
    "PROVIDERS",
    "ProviderVariant",
    "get_provider",
    "get_provider_module",
    "run_variant",
]
