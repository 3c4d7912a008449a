"""Request models for the chat endpoint.

Callers supply a transcript either as a ``messages`` list or as a single
``message`` (plain string or message object). Both forms are normalized to
an immutable Transcript before entering the orchestration pipeline.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from gateway.core.exceptions import ClientError


Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """One role-tagged message of a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


@dataclass(frozen=True)
class Transcript:
    """Ordered, immutable sequence of messages for one request."""

    messages: tuple[Message, ...]

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    @property
    def active_query(self) -> str:
        """Content of the last user-authored message ("" if none)."""
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return ""

    def to_payload(self) -> list[dict[str, str]]:
        """Serialize to the chat-completion ``messages`` wire format."""
        return [{"role": m.role, "content": m.content} for m in self.messages]


class ChatRequest(BaseModel):
    """Body of POST /api/v1/chat.

    Attributes:
        messages: Full transcript (takes precedence over ``message``).
        message: Single-message shorthand, treated as one user turn.
        model_tier: Explicit model tier name ("fast" or "deep").
        capabilities: Requested capability tags, e.g. "deep_reasoning".
        user_id: Caller's user identifier, forwarded to the external orchestrator.
        session_id: Caller's session identifier.
    """

    model_config = ConfigDict(extra="ignore")

    messages: list[Message] | None = None
    message: str | Message | None = None
    model_tier: str | None = None
    capabilities: list[str] = Field(default_factory=list)
    user_id: str | None = None
    session_id: str | None = None

    def to_transcript(self) -> Transcript:
        """Normalize either request form into a Transcript.

        Raises:
            ClientError: If neither form supplies a usable user message.
        """
        if self.messages:
            messages = tuple(self.messages)
        elif isinstance(self.message, Message):
            messages = (self.message,)
        elif isinstance(self.message, str) and self.message.strip():
            messages = (Message(role="user", content=self.message),)
        else:
            raise ClientError(
                "Request must include a non-empty 'messages' array or 'message'",
                field="messages",
            )

        transcript = Transcript(messages=messages)
        if not transcript.active_query.strip():
            raise ClientError(
                "Transcript must contain a non-empty user message",
                field="messages",
            )
        return transcript
