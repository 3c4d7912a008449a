"""service-gateway: AI orchestration gateway.

This package routes conversational requests to backend analysis services,
fans the calls out concurrently, and merges the results with a
language-model narrative behind a tiered fallback chain.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
