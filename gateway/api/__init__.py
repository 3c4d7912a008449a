"""HTTP layer for service-gateway."""

__all__: list[str] = []
