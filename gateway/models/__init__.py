"""Request and response models for service-gateway."""

from gateway.models.requests import ChatRequest, Message, Transcript
from gateway.models.responses import (
    CompletionResult,
    OrchestrationMetadata,
    OrchestrationResponse,
    ProcessingMode,
    SynthesizedReply,
    Usage,
)


__all__: list[str] = [
    "ChatRequest",
    "CompletionResult",
    "Message",
    "OrchestrationMetadata",
    "OrchestrationResponse",
    "ProcessingMode",
    "SynthesizedReply",
    "Transcript",
    "Usage",
]
