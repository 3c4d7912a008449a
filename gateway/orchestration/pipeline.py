"""Orchestration pipeline: request normalization and the fallback ladder.

Flow:
    raw body → ChatRequest → Transcript → RequestContext
             → tier 1 … tier N (first reply wins) → OrchestrationResponse

A malformed body raises ClientError before any tier runs. Once the ladder
starts, the caller always gets a well-formed response: the static tier at
the bottom cannot fail.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Final

import pydantic

from gateway.core.exceptions import ClientError
from gateway.core.logging import correlation_scope, get_logger
from gateway.models.requests import ChatRequest
from gateway.models.responses import OrchestrationResponse, SynthesizedReply, new_chat_id
from gateway.orchestration.strategies import (
    FallbackStrategy,
    RequestContext,
    StaticFallbackStrategy,
)
from gateway.providers.base import TIER_DEEP, TIER_FAST


logger = get_logger(__name__)

MODEL_TIERS: Final[frozenset[str]] = frozenset({TIER_FAST, TIER_DEEP})
DEEP_CAPABILITIES: Final[frozenset[str]] = frozenset({"deep_reasoning", "reasoning"})


def parse_chat_request(raw_body: Any) -> ChatRequest:
    """Validate a decoded JSON body.

    Raises:
        ClientError: If the body is not an object or fails validation.
    """
    if not isinstance(raw_body, dict):
        raise ClientError("Request body must be a JSON object")
    try:
        return ChatRequest.model_validate(raw_body)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ClientError(
            f"Invalid request body: {location}: {first['msg']}",
            field=location or None,
        ) from e


def select_model_tier(request: ChatRequest, default: str = TIER_FAST) -> str:
    """Pick the model tier from an explicit tier or requested capabilities.

    Raises:
        ClientError: If an explicit tier name is unknown.
    """
    if request.model_tier is not None:
        tier = request.model_tier.strip().lower()
        if tier not in MODEL_TIERS:
            raise ClientError(
                f"Unknown model_tier '{request.model_tier}'", field="model_tier"
            )
        return tier
    capabilities = {c.strip().lower() for c in request.capabilities}
    if capabilities & DEEP_CAPABILITIES:
        return TIER_DEEP
    return default


class OrchestrationPipeline:
    """Runs the fallback ladder for one chat request at a time.

    The pipeline holds no per-request state; concurrent requests share it.

    Example:
        pipeline = OrchestrationPipeline(
            strategies=[primary, external, direct],
            terminal=StaticFallbackStrategy(message="Degraded"),
        )
        response = await pipeline.handle_chat({"message": "hello"})
    """

    def __init__(
        self,
        strategies: Sequence[FallbackStrategy],
        terminal: StaticFallbackStrategy,
        default_model_tier: str = TIER_FAST,
    ) -> None:
        """Initialize the pipeline.

        Args:
            strategies: Tiers tried in order before the terminal tier.
            terminal: Static tier used when every other tier fails.
            default_model_tier: Tier used when the request does not ask for one.
        """
        self._strategies = tuple(strategies)
        self._terminal = terminal
        self._default_model_tier = default_model_tier

    @property
    def tiers(self) -> tuple[str, ...]:
        """Names of the tiers in the order they are tried."""
        return (*(s.name for s in self._strategies), self._terminal.name)

    async def handle_chat(self, raw_body: Any) -> OrchestrationResponse:
        """Answer one chat request.

        Args:
            raw_body: Decoded JSON body of the request.

        Returns:
            OrchestrationResponse, possibly from a degraded tier.

        Raises:
            ClientError: Body is malformed or carries no usable transcript.
        """
        request = parse_chat_request(raw_body)
        transcript = request.to_transcript()
        context = RequestContext(
            request_id=new_chat_id(),
            transcript=transcript,
            model_tier=select_model_tier(request, self._default_model_tier),
            capabilities=tuple(request.capabilities),
            user_id=request.user_id,
            session_id=request.session_id,
        )

        with correlation_scope(context.request_id):
            return await self.run(context)

    async def run(self, context: RequestContext) -> OrchestrationResponse:
        """Try each tier once, in order; the first reply wins."""
        reasons: list[str] = []

        for strategy in self._strategies:
            try:
                result = await strategy.attempt(context)
            except Exception:
                # Dependency errors are converted inside each strategy
                logger.exception("Fallback tier raised", tier=strategy.name)
                reasons.append(f"{strategy.name}: unexpected error")
                continue

            if result.reply is not None:
                return self._finalize(context, result.reply, strategy.name, reasons)

            reasons.append(f"{strategy.name}: {result.reason}")
            log = logger.info if result.skipped else logger.warning
            log("Fallback tier passed over", tier=strategy.name, reason=result.reason)

        return self._finalize(
            context, self._terminal.build_reply(context), self._terminal.name, reasons
        )

    def _finalize(
        self,
        context: RequestContext,
        reply: SynthesizedReply,
        tier: str,
        reasons: list[str],
    ) -> OrchestrationResponse:
        metadata = reply.metadata.model_copy(update={"fallback_reasons": list(reasons)})
        response = OrchestrationResponse.finalize(
            reply.model_copy(update={"metadata": metadata}),
            response_id=context.request_id,
        )
        logger.info(
            "Chat request answered",
            tier=tier,
            processing_mode=response.metadata.processing_mode.value,
            services_consulted=response.metadata.services_consulted,
            total_tokens=response.usage.total_tokens,
        )
        return response
