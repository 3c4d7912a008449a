"""API route handlers for service-gateway.

Routes:
- chat: /api/v1/chat
- health: /health, /health/ready
"""

__all__: list[str] = []
