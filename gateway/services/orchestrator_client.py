"""Client for the external orchestrator used as the secondary fallback tier.

The external orchestrator receives the whole transcript and answers on its
own. Its reply is adapted into the gateway's shape; three response layouts
are recognized:

    {"choices": [{"message": {"content": ...}, "finish_reason": ...}], "usage": {...}}
    {"message": {"content": ...}}
    {"response": "..."}
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from gateway.core.constants import DEFAULT_ORCHESTRATOR_PATH, DEFAULT_ORCHESTRATOR_TIMEOUT_SECONDS
from gateway.core.exceptions import (
    DependencyError,
    DependencyTimeoutError,
    DependencyUnavailableError,
)
from gateway.models.requests import Transcript
from gateway.models.responses import Usage
from gateway.observability.tracing import outbound_span
from gateway.services.registry import ServiceIdentifier


SERVICE_LABEL = "orchestrator"


@dataclass(frozen=True)
class OrchestratorReply:
    """Adapted reply of the external orchestrator."""

    content: str
    finish_reason: str = "stop"
    usage: Usage = field(default_factory=Usage)
    services_consulted: tuple[ServiceIdentifier, ...] = ()


class ExternalOrchestratorClient:
    """Delegates a whole conversation to an external orchestrator.

    Example:
        client = ExternalOrchestratorClient("http://orchestrator:8080", http_client)
        reply = await client.run(transcript, user_id="u1")
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient,
        path: str = DEFAULT_ORCHESTRATOR_PATH,
        timeout_seconds: float = DEFAULT_ORCHESTRATOR_TIMEOUT_SECONDS,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
        self._client = client
        self._timeout_seconds = timeout_seconds

    @property
    def url(self) -> str:
        return self._url

    async def run(
        self,
        transcript: Transcript,
        user_id: str | None = None,
        session_id: str | None = None,
        capabilities: Sequence[str] = (),
    ) -> OrchestratorReply:
        """Send the transcript and adapt the reply.

        Raises:
            DependencyTimeoutError: Request exceeded the timeout.
            DependencyUnavailableError: Orchestrator unreachable.
            DependencyError: Non-2xx status or unrecognized body.
        """
        body = {
            "messages": transcript.to_payload(),
            "user_id": user_id,
            "session_id": session_id,
            "capabilities": list(capabilities),
        }
        try:
            with outbound_span("orchestrator.run", {"gateway.service": SERVICE_LABEL}) as (
                span,
                headers,
            ):
                response = await self._client.post(
                    self._url, json=body, headers=headers, timeout=self._timeout_seconds
                )
                span.set_attribute("http.status_code", response.status_code)
        except httpx.TimeoutException as e:
            raise DependencyTimeoutError(
                "External orchestrator timed out",
                service=SERVICE_LABEL,
                timeout_seconds=self._timeout_seconds,
            ) from e
        except httpx.ConnectError as e:
            raise DependencyUnavailableError(
                f"External orchestrator is unreachable: {e}", service=SERVICE_LABEL
            ) from e
        except httpx.HTTPError as e:
            raise DependencyError(
                f"External orchestrator transport error: {e}", service=SERVICE_LABEL
            ) from e

        if not response.is_success:
            raise DependencyError(
                f"External orchestrator returned HTTP {response.status_code}",
                service=SERVICE_LABEL,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DependencyError(
                "External orchestrator returned a non-JSON body", service=SERVICE_LABEL
            ) from e

        return adapt_reply(data)


def adapt_reply(data: Any) -> OrchestratorReply:
    """Adapt one of the recognized orchestrator layouts.

    Usage counts and services_consulted are best-effort: unusable values
    become 0 and an empty tuple.

    Raises:
        DependencyError: If no non-empty content can be found.
    """
    if not isinstance(data, dict):
        raise DependencyError("External orchestrator reply is not an object", service=SERVICE_LABEL)

    content: Any = None
    finish_reason = data.get("finish_reason") or "stop"

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        first = choices[0]
        message = first.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        finish_reason = first.get("finish_reason") or finish_reason
    elif isinstance(data.get("message"), dict):
        content = data["message"].get("content")
    elif isinstance(data.get("message"), str):
        content = data["message"]
    else:
        content = data.get("response")

    if not isinstance(content, str) or not content.strip():
        raise DependencyError("External orchestrator reply has no content", service=SERVICE_LABEL)

    usage_data = data.get("usage") if isinstance(data.get("usage"), dict) else {}
    usage = Usage(
        prompt_tokens=_token_count(usage_data.get("prompt_tokens")),
        completion_tokens=_token_count(usage_data.get("completion_tokens")),
    )

    names = data.get("services_consulted")
    if not isinstance(names, (list, tuple)):
        names = ()
    consulted = tuple(
        identifier
        for identifier in (ServiceIdentifier.parse(name) for name in names)
        if identifier is not None
    )

    return OrchestratorReply(
        content=content,
        finish_reason=str(finish_reason),
        usage=usage,
        services_consulted=tuple(dict.fromkeys(consulted)),
    )


def _token_count(value: Any) -> int:
    """Non-negative integer count, or 0 for anything unusable."""
    if isinstance(value, bool):
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(count, 0)
