"""Response models for service-gateway.

Patterns applied:
- Pydantic v2 BaseModel for everything serialized to callers
- computed_field for derived values (total_tokens, choices)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from gateway.models.requests import Message


class Usage(BaseModel):
    """Token usage statistics.

    ``total_tokens`` is always derived from the two counts, never taken from
    an upstream payload.
    """

    model_config = ConfigDict(frozen=True)

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class CompletionResult(BaseModel):
    """Successful output of one completion call."""

    model_config = ConfigDict(frozen=True)

    text: str
    finish_reason: str = "stop"
    usage: Usage = Field(default_factory=Usage)
    model: str | None = None


class ProcessingMode(str, Enum):
    """How the final answer was produced."""

    PRE_DISPATCH = "pre_dispatch"
    POST_DISPATCH = "post_dispatch"
    EXTERNAL_ORCHESTRATOR = "external_orchestrator"
    DIRECT_COMPLETION = "direct_completion"
    STATIC_FALLBACK = "static_fallback"


class OrchestrationMetadata(BaseModel):
    """Machine-readable account of which services shaped the answer.

    Attributes:
        services_referenced: Services routed to or mentioned in the exchange.
        services_consulted: Services that returned data used in the answer.
        processing_mode: Which path produced the answer.
        backend_data_included: True iff services_consulted is non-empty.
        service_outcomes: Outcome per dispatched service (success, timeout, ...).
        fallback_reasons: Why earlier fallback tiers were passed over.
    """

    services_referenced: list[str] = Field(default_factory=list)
    services_consulted: list[str] = Field(default_factory=list)
    processing_mode: ProcessingMode
    backend_data_included: bool = False
    service_outcomes: dict[str, str] = Field(default_factory=dict)
    fallback_reasons: list[str] = Field(default_factory=list)


class SynthesizedReply(BaseModel):
    """Output of ResponseSynthesizer, before an id and timestamp are assigned."""

    model_config = ConfigDict(frozen=True)

    content: str
    finish_reason: str
    usage: Usage
    metadata: OrchestrationMetadata


class OrchestrationResponse(BaseModel):
    """Final reply returned by POST /api/v1/chat."""

    id: str
    object: str = "chat.completion"
    message: Message
    finish_reason: str
    usage: Usage
    metadata: OrchestrationMetadata
    timestamp: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def choices(self) -> list[dict[str, Any]]:
        """Chat-completion style view of the single assistant message."""
        return [
            {
                "index": 0,
                "message": self.message.model_dump(),
                "finish_reason": self.finish_reason,
            }
        ]

    @classmethod
    def finalize(
        cls, reply: SynthesizedReply, response_id: str | None = None
    ) -> OrchestrationResponse:
        """Stamp a synthesized reply with an id and the finalization time."""
        return cls(
            id=response_id or new_chat_id(),
            message=Message(role="assistant", content=reply.content),
            finish_reason=reply.finish_reason,
            usage=reply.usage,
            metadata=reply.metadata,
            timestamp=datetime.now(timezone.utc),
        )


def new_chat_id() -> str:
    """Generate a unique response identifier."""
    return f"chat_{uuid.uuid4().hex[:24]}"
