"""Health check API routes for service-gateway.

Provides liveness (/health) and readiness (/health/ready) endpoints
for Kubernetes probes and service monitoring.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from gateway import __version__


if TYPE_CHECKING:
    from gateway.core.config import Settings
    from gateway.orchestration.pipeline import OrchestrationPipeline


# =============================================================================
# Constants
# =============================================================================

STATUS_HEALTHY = "healthy"
STATUS_READY = "ready"
STATUS_NOT_READY = "not_ready"
SERVICE_NAME = "service-gateway"
REASON_NOT_INITIALIZED = "Orchestration pipeline not initialized"


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for /health liveness endpoint."""

    status: str = Field(default=STATUS_HEALTHY, examples=["healthy"])
    service: str = Field(default=SERVICE_NAME, examples=["service-gateway"])
    version: str = Field(default=__version__, examples=["0.1.0"])
    uptime_seconds: float = Field(default=0.0, ge=0.0)
    completion_configured: bool = Field(
        default=False,
        description="Whether a completion provider credential is present",
    )


class ReadinessResponse(BaseModel):
    """Response model for /health/ready readiness endpoint."""

    status: str = Field(examples=["ready", "not_ready"])
    services: list[str] = Field(
        default_factory=list,
        description="Backend services with a configured endpoint",
        examples=[["compliance", "risk"]],
    )
    orchestration_mode: str | None = Field(default=None, examples=["pre_dispatch"])
    tiers: list[str] = Field(
        default_factory=list,
        description="Fallback tiers in the order they are tried",
    )
    reason: str | None = None


# =============================================================================
# Router
# =============================================================================

router = APIRouter(tags=["health"])


def _uptime(request: Request) -> float:
    started_at: float | None = getattr(request.app.state, "started_at", None)
    if started_at is None:
        return 0.0
    return round(time.monotonic() - started_at, 3)


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe endpoint. Always 200 while the process is serving."""
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return HealthResponse(
        status=STATUS_HEALTHY,
        service=settings.service_name if settings else SERVICE_NAME,
        version=__version__,
        uptime_seconds=_uptime(request),
        completion_configured=bool(settings and settings.completion_api_key),
    )


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready", "model": ReadinessResponse},
        503: {"description": "Service is not ready", "model": ReadinessResponse},
    },
    summary="Readiness check",
)
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 once the orchestration pipeline has been built, else 503.
    A gateway with no backend services configured is still ready: it answers
    through the fallback tiers.
    """
    pipeline: OrchestrationPipeline | None = getattr(
        request.app.state, "pipeline", None
    )
    settings: Settings | None = getattr(request.app.state, "settings", None)

    if pipeline is None or settings is None:
        response = ReadinessResponse(
            status=STATUS_NOT_READY,
            reason=REASON_NOT_INITIALIZED,
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(exclude_none=True),
        )

    response = ReadinessResponse(
        status=STATUS_READY,
        services=[name for name, url in settings.service_urls.items() if url],
        orchestration_mode=settings.orchestration_mode,
        tiers=list(pipeline.tiers),
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response.model_dump(exclude_none=True),
    )
