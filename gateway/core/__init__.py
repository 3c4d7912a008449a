"""Core configuration, logging, and exceptions for service-gateway."""

__all__: list[str] = []
