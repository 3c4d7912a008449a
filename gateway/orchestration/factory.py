"""Factory for building the orchestration pipeline from settings.

All components are constructed once at startup and share one HTTP client.
"""

from __future__ import annotations

import httpx

from gateway.core.config import Settings
from gateway.core.logging import get_logger
from gateway.orchestration.pipeline import OrchestrationPipeline
from gateway.orchestration.strategies import (
    DirectCompletionStrategy,
    ExternalOrchestratorStrategy,
    OrchestrationMode,
    PrimaryStrategy,
    StaticFallbackStrategy,
)
from gateway.providers.base import TIER_FAST, build_model_tiers
from gateway.providers.openai_compat import OpenAICompatibleProvider
from gateway.services.dispatcher import ServiceDispatcher
from gateway.services.orchestrator_client import ExternalOrchestratorClient
from gateway.services.registry import ServiceRegistry


logger = get_logger(__name__)


def build_pipeline(settings: Settings, client: httpx.AsyncClient) -> OrchestrationPipeline:
    """Wire registry, dispatcher, provider and fallback tiers together.

    Args:
        settings: Application settings.
        client: Shared HTTP client owned by the caller.

    Returns:
        Ready-to-use OrchestrationPipeline.
    """
    registry = ServiceRegistry.from_settings(settings)
    dispatcher = ServiceDispatcher(
        registry,
        client,
        timeout_seconds=settings.service_timeout_seconds,
        service_path=settings.service_path,
    )
    provider = OpenAICompatibleProvider(
        api_key=settings.completion_api_key,
        base_url=settings.completion_base_url,
        model_tiers=build_model_tiers(settings),
        client=client,
        timeout_seconds=settings.completion_timeout_seconds,
    )

    orchestrator = None
    if settings.orchestrator_url:
        orchestrator = ExternalOrchestratorClient(
            settings.orchestrator_url,
            client,
            path=settings.orchestrator_path,
            timeout_seconds=settings.orchestrator_timeout_seconds,
        )

    pipeline = OrchestrationPipeline(
        strategies=[
            PrimaryStrategy(
                provider=provider,
                dispatcher=dispatcher,
                mode=OrchestrationMode(settings.orchestration_mode),
            ),
            ExternalOrchestratorStrategy(client=orchestrator),
            DirectCompletionStrategy(provider=provider, model_tier=TIER_FAST),
        ],
        terminal=StaticFallbackStrategy(message=settings.fallback_message),
        default_model_tier=settings.default_model_tier,
    )

    logger.info(
        "Orchestration pipeline built",
        mode=settings.orchestration_mode,
        services=[identifier.value for identifier in registry],
        completion_configured=provider.is_configured,
        orchestrator_configured=orchestrator is not None,
        tiers=list(pipeline.tiers),
    )
    return pipeline
