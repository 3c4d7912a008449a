"""Fallback strategies tried in order by OrchestrationPipeline.

Tiers:
    1. PrimaryStrategy             - classifier/directive + dispatch + completion
    2. ExternalOrchestratorStrategy - delegate the transcript to an external orchestrator
    3. DirectCompletionStrategy    - completion provider alone, no dispatch
    4. StaticFallbackStrategy      - canned degraded-capability message

Every strategy exposes ``attempt(context) -> StrategyResult`` and converts
its own dependency errors into a failed result, so one tier's failure never
leaks into the next.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from gateway.core.exceptions import GatewayError
from gateway.core.logging import get_logger
from gateway.models.requests import Transcript
from gateway.models.responses import (
    OrchestrationMetadata,
    ProcessingMode,
    SynthesizedReply,
    Usage,
)
from gateway.orchestration.classifier import IntentClassifier
from gateway.orchestration.directive import DirectiveParser
from gateway.orchestration.prompts import (
    BASE_SYSTEM_PROMPT,
    build_post_dispatch_directive,
    build_pre_dispatch_directive,
)
from gateway.orchestration.synthesizer import (
    DirectiveResolution,
    ResponseSynthesizer,
    detect_service_mentions,
    in_priority_order,
)
from gateway.providers.base import TIER_FAST, CompletionProvider
from gateway.services.dispatcher import ServiceDispatcher
from gateway.services.orchestrator_client import ExternalOrchestratorClient


logger = get_logger(__name__)


class OrchestrationMode(str, Enum):
    """Where service dispatch happens relative to the completion call."""

    PRE_DISPATCH = "pre_dispatch"
    POST_DISPATCH = "post_dispatch"


# =============================================================================
# Request Context & Result
# =============================================================================


@dataclass(frozen=True)
class RequestContext:
    """Everything a strategy needs about one chat request."""

    request_id: str
    transcript: Transcript
    model_tier: str
    capabilities: tuple[str, ...] = ()
    user_id: str | None = None
    session_id: str | None = None

    @property
    def query(self) -> str:
        return self.transcript.active_query

    def service_context(self) -> Mapping[str, Any]:
        """Caller context forwarded to backend services."""
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "session_id": self.session_id,
        }


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of one tier attempt: a reply, or the reason there is none."""

    reply: SynthesizedReply | None = None
    reason: str | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.reply is not None

    @classmethod
    def succeeded(cls, reply: SynthesizedReply) -> StrategyResult:
        return cls(reply=reply)

    @classmethod
    def failed(cls, reason: str) -> StrategyResult:
        return cls(reason=reason)

    @classmethod
    def skip(cls, reason: str) -> StrategyResult:
        return cls(reason=reason, skipped=True)


def _describe(error: GatewayError) -> str:
    return f"{error.error_code}: {error.message}"


class FallbackStrategy(ABC):
    """One tier of the fallback ladder."""

    name: ClassVar[str]

    @abstractmethod
    async def attempt(self, context: RequestContext) -> StrategyResult:
        """Try to produce a reply. Must not raise for dependency failures."""
        ...


# =============================================================================
# Tier 1: Primary pipeline
# =============================================================================


@dataclass
class PrimaryStrategy(FallbackStrategy):
    """Full pipeline: route, dispatch, complete, synthesize.

    In PRE_DISPATCH mode the classifier picks services and their data is
    injected into the system directive before the completion call. In
    POST_DISPATCH mode the model may emit a call_service directive, which is
    then dispatched and rendered.
    """

    name: ClassVar[str] = "primary"

    provider: CompletionProvider
    dispatcher: ServiceDispatcher
    mode: OrchestrationMode = OrchestrationMode.PRE_DISPATCH
    classifier: IntentClassifier = field(default_factory=IntentClassifier)
    parser: DirectiveParser = field(default_factory=DirectiveParser)
    synthesizer: ResponseSynthesizer = field(default_factory=ResponseSynthesizer)

    async def attempt(self, context: RequestContext) -> StrategyResult:
        if not self.provider.is_configured:
            return StrategyResult.skip("completion provider not configured")

        try:
            if self.mode is OrchestrationMode.POST_DISPATCH:
                reply = await self._post_dispatch(context)
            else:
                reply = await self._pre_dispatch(context)
        except GatewayError as e:
            return StrategyResult.failed(_describe(e))
        return StrategyResult.succeeded(reply)

    async def _pre_dispatch(self, context: RequestContext) -> SynthesizedReply:
        referenced = self.classifier.classify(context.query)
        results = await self.dispatcher.dispatch(
            referenced, context.query, context.service_context()
        )
        completion = await self.provider.complete(
            context.transcript,
            build_pre_dispatch_directive(results),
            context.model_tier,
        )
        return self.synthesizer.synthesize(
            completion, None, results, referenced, context.query, ProcessingMode.PRE_DISPATCH
        )

    async def _post_dispatch(self, context: RequestContext) -> SynthesizedReply:
        referenced = self.classifier.classify(context.query)
        completion = await self.provider.complete(
            context.transcript,
            build_post_dispatch_directive(self.dispatcher.registry.identifiers),
            context.model_tier,
        )

        resolution = None
        directive = self.parser.parse(completion.text)
        if directive is not None:
            logger.info("Model requested service", service=directive.service.value)
            batch = await self.dispatcher.dispatch(
                [directive.service], directive.query, context.service_context()
            )
            resolution = DirectiveResolution(directive=directive, result=batch[directive.service])

        return self.synthesizer.synthesize(
            completion, resolution, {}, referenced, context.query, ProcessingMode.POST_DISPATCH
        )


# =============================================================================
# Tier 2: External orchestrator
# =============================================================================


@dataclass
class ExternalOrchestratorStrategy(FallbackStrategy):
    """Delegate the whole transcript to an external orchestrator."""

    name: ClassVar[str] = "external_orchestrator"

    client: ExternalOrchestratorClient | None
    classifier: IntentClassifier = field(default_factory=IntentClassifier)

    async def attempt(self, context: RequestContext) -> StrategyResult:
        if self.client is None:
            return StrategyResult.skip("external orchestrator not configured")

        try:
            reply = await self.client.run(
                context.transcript,
                user_id=context.user_id,
                session_id=context.session_id,
                capabilities=context.capabilities,
            )
        except GatewayError as e:
            return StrategyResult.failed(_describe(e))

        referenced = [
            *self.classifier.classify(context.query),
            *detect_service_mentions(f"{context.query}\n{reply.content}"),
        ]
        metadata = OrchestrationMetadata(
            services_referenced=in_priority_order(referenced),
            services_consulted=in_priority_order(reply.services_consulted),
            processing_mode=ProcessingMode.EXTERNAL_ORCHESTRATOR,
            backend_data_included=bool(reply.services_consulted),
        )
        return StrategyResult.succeeded(
            SynthesizedReply(
                content=reply.content,
                finish_reason=reply.finish_reason,
                usage=reply.usage,
                metadata=metadata,
            )
        )


# =============================================================================
# Tier 3: Direct completion
# =============================================================================


@dataclass
class DirectCompletionStrategy(FallbackStrategy):
    """Completion provider alone on the fast tier, without service dispatch."""

    name: ClassVar[str] = "direct_completion"

    provider: CompletionProvider
    model_tier: str = TIER_FAST
    classifier: IntentClassifier = field(default_factory=IntentClassifier)
    synthesizer: ResponseSynthesizer = field(default_factory=ResponseSynthesizer)

    async def attempt(self, context: RequestContext) -> StrategyResult:
        if not self.provider.is_configured:
            return StrategyResult.skip("completion provider not configured")

        try:
            completion = await self.provider.complete(
                context.transcript, BASE_SYSTEM_PROMPT, self.model_tier
            )
        except GatewayError as e:
            return StrategyResult.failed(_describe(e))

        return StrategyResult.succeeded(
            self.synthesizer.synthesize(
                completion,
                None,
                {},
                self.classifier.classify(context.query),
                context.query,
                ProcessingMode.DIRECT_COMPLETION,
            )
        )


# =============================================================================
# Tier 4: Static answer
# =============================================================================


@dataclass
class StaticFallbackStrategy(FallbackStrategy):
    """Canned degraded-capability message. Always succeeds.

    No backend data is included, but the services the question refers to are
    still reported in the metadata.
    """

    name: ClassVar[str] = "static_fallback"

    message: str
    classifier: IntentClassifier = field(default_factory=IntentClassifier)

    def build_reply(self, context: RequestContext) -> SynthesizedReply:
        referenced = [
            *self.classifier.classify(context.query),
            *detect_service_mentions(context.query),
        ]
        return SynthesizedReply(
            content=self.message,
            finish_reason="stop",
            usage=Usage(),
            metadata=OrchestrationMetadata(
                services_referenced=in_priority_order(referenced),
                processing_mode=ProcessingMode.STATIC_FALLBACK,
            ),
        )

    async def attempt(self, context: RequestContext) -> StrategyResult:
        return StrategyResult.succeeded(self.build_reply(context))
