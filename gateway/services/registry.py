"""Service registry: static mapping from service identifier to endpoint.

The registry is built once at startup from Settings and is read-only for the
process lifetime, so concurrent requests can read it without locking.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from gateway.core.config import Settings


class ServiceIdentifier(str, Enum):
    """Closed set of backend analysis services.

    Member order is the routing priority order.
    """

    COMPLIANCE = "compliance"
    RISK = "risk"
    HSE = "hse"
    QAQC = "qaqc"
    SCHEDULE = "schedule"
    BUDGET = "budget"

    @property
    def display_name(self) -> str:
        """Human-readable label used in synthesized text."""
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: object) -> ServiceIdentifier | None:
        """Return the identifier for ``value``, or None if it is not one."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


_DISPLAY_NAMES: dict[ServiceIdentifier, str] = {
    ServiceIdentifier.COMPLIANCE: "Compliance",
    ServiceIdentifier.RISK: "Risk Assessment",
    ServiceIdentifier.HSE: "Health, Safety & Environment",
    ServiceIdentifier.QAQC: "QA/QC",
    ServiceIdentifier.SCHEDULE: "Schedule",
    ServiceIdentifier.BUDGET: "Budget",
}


@dataclass(frozen=True)
class ServiceEndpoint:
    """Network address of one backend service."""

    identifier: ServiceIdentifier
    base_url: str

    def url_for(self, path: str) -> str:
        """Join the base URL with a request path."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class ServiceRegistry:
    """Read-only registry of configured backend services.

    Example:
        registry = ServiceRegistry.from_settings(get_settings())
        endpoint = registry.get(ServiceIdentifier.RISK)
    """

    def __init__(self, endpoints: Mapping[ServiceIdentifier, str] | None = None) -> None:
        """Initialize the registry.

        Args:
            endpoints: Base URL per identifier. Identifiers left out are
                treated as unavailable.
        """
        built = {
            identifier: ServiceEndpoint(identifier=identifier, base_url=url)
            for identifier, url in (endpoints or {}).items()
        }
        # Keep priority order regardless of input order
        ordered = {i: built[i] for i in ServiceIdentifier if i in built}
        self._endpoints: Mapping[ServiceIdentifier, ServiceEndpoint] = MappingProxyType(ordered)

    @classmethod
    def from_settings(cls, settings: Settings) -> ServiceRegistry:
        """Build the registry from GATEWAY_*_SERVICE_URL settings."""
        endpoints = {
            ServiceIdentifier(name): url
            for name, url in settings.service_urls.items()
            if url
        }
        return cls(endpoints)

    def get(self, identifier: ServiceIdentifier) -> ServiceEndpoint | None:
        return self._endpoints.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._endpoints

    def __iter__(self) -> Iterator[ServiceIdentifier]:
        return iter(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    @property
    def identifiers(self) -> tuple[ServiceIdentifier, ...]:
        """Configured identifiers in priority order."""
        return tuple(self._endpoints)
