"""Base classes for completion providers.

Defines the CompletionProvider ABC that all concrete providers implement,
and the model-tier table that maps a tier name onto a concrete model
configuration.

Patterns applied:
- ABC with @abstractmethod decorator
- Frozen dataclass for immutable configuration
- MappingProxyType for the read-only tier table
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from gateway.models.requests import Transcript
from gateway.models.responses import CompletionResult


if TYPE_CHECKING:
    from gateway.core.config import Settings


TIER_FAST = "fast"
TIER_DEEP = "deep"


@dataclass(frozen=True)
class ModelTier:
    """Named model configuration.

    Attributes:
        name: Tier name ("fast" or "deep").
        model: Provider model identifier.
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens.
    """

    name: str
    model: str
    temperature: float
    max_tokens: int


def build_model_tiers(settings: Settings) -> Mapping[str, ModelTier]:
    """Build the read-only tier table from settings."""
    return MappingProxyType(
        {
            TIER_FAST: ModelTier(
                name=TIER_FAST,
                model=settings.fast_model,
                temperature=settings.temperature,
                max_tokens=settings.max_output_tokens,
            ),
            TIER_DEEP: ModelTier(
                name=TIER_DEEP,
                model=settings.deep_model,
                temperature=settings.temperature,
                max_tokens=settings.max_output_tokens,
            ),
        }
    )


class CompletionProvider(ABC):
    """Abstract base class for completion providers.

    A provider wraps exactly one call to a text-completion backend. It does
    not retry; retries happen at fallback-tier granularity in the pipeline.

    Example:
        class MyProvider(CompletionProvider):
            @property
            def is_configured(self) -> bool:
                return True

            async def complete(self, transcript, system_directive, model_tier):
                ...
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True if a credential is available."""
        ...

    @abstractmethod
    async def complete(
        self,
        transcript: Transcript,
        system_directive: str,
        model_tier: str,
    ) -> CompletionResult:
        """Generate a completion.

        Args:
            transcript: Conversation so far.
            system_directive: System prompt prepended to the transcript.
            model_tier: Tier name selecting the model configuration.

        Returns:
            CompletionResult with text, finish reason and usage.

        Raises:
            ProviderUnconfiguredError: No credential; raised before any I/O.
            ProviderError: The call failed.
        """
        ...
