"""FastAPI application entrypoint for service-gateway.

Patterns applied:
- asynccontextmanager lifespan (not the deprecated @app.on_event)
- configure_logging() called ONCE in lifespan startup
- One shared httpx.AsyncClient for backends, provider and orchestrator
- Health endpoints for K8s probes (/health, /health/ready)
- Docs disabled in production
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from gateway import __version__
from gateway.api.error_handlers import register_exception_handlers
from gateway.api.routes.chat import router as chat_router
from gateway.api.routes.health import router as health_router
from gateway.core.config import get_settings
from gateway.core.logging import configure_logging, get_logger
from gateway.observability.tracing import TracingMiddleware, setup_tracing
from gateway.orchestration.factory import build_pipeline


# =============================================================================
# Application Metadata
# =============================================================================
APP_NAME = "service-gateway"
APP_DESCRIPTION = "Chat gateway that routes questions to backend analysis services"
APP_VERSION = __version__


# =============================================================================
# Lifespan Context Manager
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the orchestration pipeline on startup, close the client on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None after startup, before shutdown.
    """
    # =========================================================================
    # STARTUP
    # =========================================================================
    settings = get_settings()

    configure_logging(level=settings.log_level)
    logger = get_logger(__name__)

    logger.info(
        "Application starting",
        service=APP_NAME,
        version=APP_VERSION,
        environment=settings.environment,
        port=settings.port,
        orchestration_mode=settings.orchestration_mode,
    )

    if settings.tracing_enabled:
        setup_tracing(service_name=settings.service_name, otlp_endpoint=settings.otlp_endpoint)

    client = httpx.AsyncClient()
    app.state.http_client = client
    app.state.settings = settings
    app.state.pipeline = build_pipeline(settings, client)
    app.state.started_at = time.monotonic()

    yield

    # =========================================================================
    # SHUTDOWN
    # =========================================================================
    logger.info("Application shutting down", service=APP_NAME)
    app.state.pipeline = None
    await client.aclose()


# =============================================================================
# FastAPI Application Instance
# =============================================================================
settings = get_settings()

app = FastAPI(
    title=APP_NAME,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

if settings.tracing_enabled:
    app.add_middleware(TracingMiddleware, exclude_paths=["/health", "/health/ready"])


# =============================================================================
# Register Routers
# =============================================================================
app.include_router(health_router)
app.include_router(chat_router, prefix="/api/v1")


# =============================================================================
# Register Exception Handlers
# =============================================================================
register_exception_handlers(app)


def main() -> None:
    """Run the gateway under uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
