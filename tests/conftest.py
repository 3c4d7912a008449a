"""pytest configuration and fixtures for service-gateway tests.

This module provides shared fixtures for unit and end-to-end tests. Every
outbound HTTP call goes through BackendStub, so no test touches the network.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from gateway.api.error_handlers import register_exception_handlers
from gateway.api.routes.chat import router as chat_router
from gateway.api.routes.health import router as health_router
from gateway.core.config import Settings
from gateway.core.logging import reset_logging
from gateway.orchestration.factory import build_pipeline
from gateway.services.registry import ServiceIdentifier
from tests.unit.services.backend_stub import (
    COMPLETION_BASE_URL,
    BackendStub,
    service_url,
)


# =============================================================================
# Constants
# =============================================================================

TEST_API_KEY = "sk-test-key"
CHAT_ENDPOINT = "/api/v1/chat"


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: End-to-end scenarios through the HTTP surface")


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Keep GATEWAY_* variables from the host out of Settings()."""
    cleaned = {k: v for k, v in os.environ.items() if not k.startswith("GATEWAY_")}
    with patch.dict(os.environ, cleaned, clear=True):
        yield


@pytest.fixture(autouse=True)
def fresh_logging() -> Generator[None, None, None]:
    """Reset the structlog singleton between tests."""
    reset_logging()
    yield
    reset_logging()


# =============================================================================
# Settings & Backend Fixtures
# =============================================================================


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for Settings wired to the BackendStub hosts.

    Args passed to the factory:
        services: Identifiers that get a configured URL (default: none).
        **overrides: Any other Settings field.
    """

    def factory(
        services: tuple[ServiceIdentifier, ...] = (),
        **overrides: Any,
    ) -> Settings:
        values: dict[str, Any] = {
            "completion_api_key": TEST_API_KEY,
            "completion_base_url": COMPLETION_BASE_URL,
        }
        for identifier in services:
            values[f"{identifier.value}_service_url"] = service_url(identifier)
        values.update(overrides)
        return Settings(**values)

    return factory


@pytest.fixture
def backend() -> BackendStub:
    """Scripted backends; tests add behaviors per host."""
    return BackendStub()


@pytest.fixture
async def http_client(backend: BackendStub) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Real httpx.AsyncClient routed to the BackendStub."""
    async with backend.client() as client:
        yield client


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def build_app(http_client: httpx.AsyncClient) -> Callable[[Settings], FastAPI]:
    """Factory for a gateway app whose pipeline uses the stubbed client."""

    def factory(settings: Settings) -> FastAPI:
        app = FastAPI(title="service-gateway-test")
        app.include_router(health_router)
        app.include_router(chat_router, prefix="/api/v1")
        register_exception_handlers(app)
        app.state.settings = settings
        app.state.pipeline = build_pipeline(settings, http_client)
        return app

    return factory


@pytest.fixture
def make_async_client() -> Callable[[FastAPI], AsyncClient]:
    """Factory for an ASGI client against a given app."""

    def factory(app: FastAPI) -> AsyncClient:
        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="https://testserver")

    return factory
