"""Service dispatcher: bounded-time concurrent fan-out to backend services.

Every call in a batch is scheduled before any is awaited, each call carries
its own timeout, and every failure is converted into a ServiceCallResult at
this boundary. A batch therefore always completes within roughly one
per-call timeout, however many services were requested.

Flow:
    identifiers → dedupe → gather(wait_for(call) per service) → {id: result}
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from gateway.core.constants import DEFAULT_SERVICE_PATH, DEFAULT_SERVICE_TIMEOUT_SECONDS
from gateway.core.exceptions import (
    DependencyError,
    DependencyTimeoutError,
    DependencyUnavailableError,
    GatewayError,
)
from gateway.core.logging import get_logger
from gateway.observability.tracing import outbound_span
from gateway.services.registry import ServiceEndpoint, ServiceIdentifier, ServiceRegistry


logger = get_logger(__name__)

# =============================================================================
# Result Variant
# =============================================================================


class ServiceOutcome(str, Enum):
    """Tag of a ServiceCallResult."""

    SUCCESS = "success"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class ServiceCallResult:
    """Outcome of one backend call.

    Only SUCCESS carries a payload; the other outcomes carry a reason.
    """

    identifier: ServiceIdentifier
    outcome: ServiceOutcome
    payload: Any = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is ServiceOutcome.SUCCESS

    @classmethod
    def success(cls, identifier: ServiceIdentifier, payload: Any) -> ServiceCallResult:
        return cls(identifier, ServiceOutcome.SUCCESS, payload=payload)

    @classmethod
    def unavailable(cls, identifier: ServiceIdentifier, reason: str) -> ServiceCallResult:
        return cls(identifier, ServiceOutcome.UNAVAILABLE, reason=reason)

    @classmethod
    def timeout(cls, identifier: ServiceIdentifier, reason: str) -> ServiceCallResult:
        return cls(identifier, ServiceOutcome.TIMEOUT, reason=reason)

    @classmethod
    def error(cls, identifier: ServiceIdentifier, reason: str) -> ServiceCallResult:
        return cls(identifier, ServiceOutcome.ERROR, reason=reason)

    @classmethod
    def from_error(cls, identifier: ServiceIdentifier, error: GatewayError) -> ServiceCallResult:
        """Map a dependency exception onto the matching outcome."""
        if isinstance(error, DependencyTimeoutError):
            return cls.timeout(identifier, error.message)
        if isinstance(error, DependencyUnavailableError):
            return cls.unavailable(identifier, error.message)
        return cls.error(identifier, error.message)


# =============================================================================
# Dispatcher
# =============================================================================


class ServiceDispatcher:
    """Concurrent, bounded calls against registry endpoints.

    No retries are performed here; a failed call is reported once and the
    pipeline decides what to do with partial results.

    Example:
        dispatcher = ServiceDispatcher(registry, client=httpx.AsyncClient())
        results = await dispatcher.dispatch([ServiceIdentifier.RISK], "site risks?")
    """

    def __init__(
        self,
        registry: ServiceRegistry,
        client: httpx.AsyncClient,
        timeout_seconds: float = DEFAULT_SERVICE_TIMEOUT_SECONDS,
        service_path: str = DEFAULT_SERVICE_PATH,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            registry: Read-only service registry.
            client: Shared HTTP client (owned by the application lifespan).
            timeout_seconds: Per-call bound.
            service_path: Request path appended to each endpoint's base URL.
        """
        self._registry = registry
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._service_path = service_path

    @property
    def registry(self) -> ServiceRegistry:
        return self._registry

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    async def dispatch(
        self,
        identifiers: Iterable[ServiceIdentifier],
        query: str,
        context: Mapping[str, Any] | None = None,
    ) -> dict[ServiceIdentifier, ServiceCallResult]:
        """Call every requested service concurrently.

        Args:
            identifiers: Services to consult. Duplicates are collapsed.
            query: Text forwarded to each service.
            context: Caller context forwarded alongside the query.

        Returns:
            One result per requested identifier, in request order.
        """
        requested = list(dict.fromkeys(identifiers))
        if not requested:
            return {}

        # gather() wraps every coroutine in a task before awaiting any of them
        results = await asyncio.gather(
            *(self._bounded_call(identifier, query, context) for identifier in requested)
        )
        batch = dict(zip(requested, results))

        logger.info(
            "Dispatch batch complete",
            requested=[i.value for i in requested],
            outcomes={i.value: r.outcome.value for i, r in batch.items()},
        )
        return batch

    async def _bounded_call(
        self,
        identifier: ServiceIdentifier,
        query: str,
        context: Mapping[str, Any] | None,
    ) -> ServiceCallResult:
        endpoint = self._registry.get(identifier)
        if endpoint is None:
            return ServiceCallResult.unavailable(
                identifier, f"Service '{identifier.value}' is not registered"
            )

        try:
            payload = await asyncio.wait_for(
                self._call(endpoint, query, context),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError:
            return ServiceCallResult.timeout(
                identifier,
                f"Service '{identifier.value}' did not respond within {self._timeout_seconds}s",
            )
        except GatewayError as e:
            logger.warning(
                "Service call failed",
                service=identifier.value,
                error_code=e.error_code,
                error=e.message,
            )
            return ServiceCallResult.from_error(identifier, e)
        except Exception as e:
            # Anything else (bad URL, closed client) stays inside this call
            logger.exception("Service call raised", service=identifier.value)
            return ServiceCallResult.error(
                identifier, f"Service '{identifier.value}' call failed: {type(e).__name__}"
            )

        return ServiceCallResult.success(identifier, payload)

    async def _call(
        self,
        endpoint: ServiceEndpoint,
        query: str,
        context: Mapping[str, Any] | None,
    ) -> Any:
        """Perform one backend request.

        Raises:
            DependencyTimeoutError: Transport-level timeout.
            DependencyUnavailableError: Endpoint unreachable.
            DependencyError: Non-2xx status, non-JSON body or other transport failure.
        """
        service = endpoint.identifier.value
        body = {"query": query, "context": dict(context or {})}

        with outbound_span(f"service.{service}", {"gateway.service": service}) as (span, headers):
            try:
                response = await self._client.post(
                    endpoint.url_for(self._service_path),
                    json=body,
                    headers=headers,
                )
            except httpx.TimeoutException as e:
                raise DependencyTimeoutError(
                    f"Service '{service}' timed out", service=service
                ) from e
            except httpx.ConnectError as e:
                raise DependencyUnavailableError(
                    f"Service '{service}' is unreachable: {e}", service=service
                ) from e
            except httpx.HTTPError as e:
                raise DependencyError(
                    f"Service '{service}' transport error: {e}", service=service
                ) from e

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                raise DependencyError(
                    f"Service '{service}' returned HTTP {response.status_code}",
                    service=service,
                    status_code=response.status_code,
                )

            try:
                return response.json()
            except ValueError as e:
                raise DependencyError(
                    f"Service '{service}' returned a non-JSON body",
                    service=service,
                    status_code=response.status_code,
                ) from e
