"""Outbound services: registry, concurrent dispatcher, external orchestrator."""

from gateway.services.dispatcher import ServiceCallResult, ServiceDispatcher, ServiceOutcome
from gateway.services.registry import ServiceEndpoint, ServiceIdentifier, ServiceRegistry


__all__: list[str] = [
    "ServiceCallResult",
    "ServiceDispatcher",
    "ServiceEndpoint",
    "ServiceIdentifier",
    "ServiceOutcome",
    "ServiceRegistry",
]
