"""Completion providers for service-gateway.

Providers:
- base: CompletionProvider ABC and model tiers
- openai_compat: OpenAICompatibleProvider (chat-completions over HTTP)
"""

from gateway.providers.base import (
    TIER_DEEP,
    TIER_FAST,
    CompletionProvider,
    ModelTier,
    build_model_tiers,
)
from gateway.providers.openai_compat import OpenAICompatibleProvider


__all__: list[str] = [
    "TIER_DEEP",
    "TIER_FAST",
    "CompletionProvider",
    "ModelTier",
    "OpenAICompatibleProvider",
    "build_model_tiers",
]
