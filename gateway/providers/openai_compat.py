"""OpenAI-compatible completion provider.

Speaks the ``POST {base_url}/chat/completions`` protocol, which covers
OpenAI itself and most hosted or self-hosted gateways (vLLM, llama.cpp
server, OpenRouter).

Patterns applied:
- CompletionProvider ABC implementation
- Shared httpx.AsyncClient injected by the application lifespan
- Credential checked synchronously before any network attempt
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from gateway.core.constants import DEFAULT_COMPLETION_TIMEOUT_SECONDS
from gateway.core.exceptions import ConfigurationError, ProviderError, ProviderUnconfiguredError
from gateway.core.logging import get_logger
from gateway.core.text_processing import strip_reasoning_tags
from gateway.models.requests import Transcript
from gateway.models.responses import CompletionResult, Usage
from gateway.observability.tracing import outbound_span
from gateway.providers.base import CompletionProvider, ModelTier


logger = get_logger(__name__)

TRANSPORT_REASON = "transport"
GENERIC_REASON = "Completion request failed"


class OpenAICompatibleProvider(CompletionProvider):
    """Completion provider for OpenAI-compatible chat-completion APIs.

    Args:
        api_key: Bearer credential. None or empty leaves the provider unconfigured.
        base_url: API root, e.g. "https://api.openai.com/v1".
        model_tiers: Tier table built by build_model_tiers().
        client: Shared HTTP client.
        timeout_seconds: Request timeout.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str,
        model_tiers: Mapping[str, ModelTier],
        client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_COMPLETION_TIMEOUT_SECONDS,
    ) -> None:
        self._api_key = api_key or None
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._model_tiers = model_tiers
        self._client = client
        self._timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    @property
    def model_tiers(self) -> Mapping[str, ModelTier]:
        return self._model_tiers

    def _resolve_tier(self, model_tier: str) -> ModelTier:
        try:
            return self._model_tiers[model_tier]
        except KeyError as e:
            raise ConfigurationError(
                f"Unknown model tier '{model_tier}'", setting="model_tier"
            ) from e

    async def complete(
        self,
        transcript: Transcript,
        system_directive: str,
        model_tier: str,
    ) -> CompletionResult:
        """Generate a completion for the transcript.

        Raises:
            ProviderUnconfiguredError: No API key configured.
            ProviderError: Non-2xx response, transport failure or malformed body.
            ConfigurationError: Unknown model tier.
        """
        if not self.is_configured:
            raise ProviderUnconfiguredError()

        tier = self._resolve_tier(model_tier)
        body = {
            "model": tier.model,
            "messages": [{"role": "system", "content": system_directive}, *transcript.to_payload()],
            "temperature": tier.temperature,
            "max_tokens": tier.max_tokens,
        }

        try:
            with outbound_span("completion", {"gateway.model": tier.model}) as (span, headers):
                headers["Authorization"] = f"Bearer {self._api_key}"
                response = await self._client.post(
                    self._url, json=body, headers=headers, timeout=self._timeout_seconds
                )
                span.set_attribute("http.status_code", response.status_code)
        except httpx.HTTPError as e:
            logger.warning("Completion transport failure", model=tier.model, error=str(e))
            raise ProviderError(TRANSPORT_REASON) from e

        if not response.is_success:
            reason = _extract_error_reason(response)
            logger.warning(
                "Completion request rejected",
                model=tier.model,
                status_code=response.status_code,
                reason=reason,
            )
            raise ProviderError(reason, status_code=response.status_code)

        try:
            return _parse_completion(response.json(), tier.model)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(TRANSPORT_REASON) from e


def _extract_error_reason(response: httpx.Response) -> str:
    """Pull ``error.message`` out of a structured error body if present."""
    try:
        data = response.json()
    except ValueError:
        return GENERIC_REASON

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
    return GENERIC_REASON


def _parse_completion(data: dict[str, Any], model: str) -> CompletionResult:
    choice = data["choices"][0]
    content = choice["message"]["content"]
    if not isinstance(content, str):
        raise TypeError("completion content is not text")

    usage_data = data.get("usage") or {}
    return CompletionResult(
        text=strip_reasoning_tags(content),
        finish_reason=choice.get("finish_reason") or "stop",
        usage=Usage(
            prompt_tokens=int(usage_data.get("prompt_tokens") or 0),
            completion_tokens=int(usage_data.get("completion_tokens") or 0),
        ),
        model=data.get("model") or model,
    )
