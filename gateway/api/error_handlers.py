"""Error handlers for FastAPI exception handling.

Error Response Schema:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "type": "retriable|non_retriable",
        "provider": "service-gateway",
        "details": {...}
    },
    "timestamp": "2024-01-01T00:00:00Z"
}

The orchestration pipeline converts dependency failures into degraded
replies, so in practice ClientError is the only GatewayError that reaches
these handlers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from gateway.core.exceptions import (
    ClientError,
    ErrorCode,
    GatewayError,
    NonRetriableError,
    RetriableError,
)
from gateway.core.logging import get_logger


logger = get_logger(__name__)

PROVIDER_NAME = "service-gateway"


# =============================================================================
# Error Response Models (Pydantic)
# =============================================================================


class ErrorDetail(BaseModel):
    """Error detail schema."""

    code: str
    message: str
    type: str
    provider: str = PROVIDER_NAME
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Error response wrapper."""

    error: ErrorDetail
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# Status Code Mapping
# =============================================================================


def get_status_code_for_error(error: Exception) -> int:
    """Determine HTTP status code based on exception type."""
    if isinstance(error, ClientError):
        return 400
    if isinstance(error, RetriableError):
        return 503
    return 500


# =============================================================================
# Error Details Extraction
# =============================================================================


_KNOWN_ATTRS = (
    "field",
    "service",
    "status_code",
    "timeout_seconds",
    "reason",
    "setting",
)


def extract_error_details(error: Exception) -> dict[str, Any]:
    """Extract additional details from exception attributes."""
    details: dict[str, Any] = {}
    for attr in _KNOWN_ATTRS:
        value = getattr(error, attr, None)
        if value is not None:
            details[attr] = value
    return details


def build_error_response(
    error: Exception,
    error_type: str = "non_retriable",
) -> ErrorResponse:
    """Build a standardized error response."""
    code = (
        error.error_code
        if isinstance(error, GatewayError)
        else ErrorCode.GATEWAY_ERROR.value
    )
    message = error.message if isinstance(error, GatewayError) else str(error)
    details = extract_error_details(error)

    return ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            type=error_type,
            details=details or None,
        )
    )


# =============================================================================
# Exception Handlers
# =============================================================================


async def gateway_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle GatewayError exceptions (Retry-After for retriable ones)."""
    if not isinstance(exc, GatewayError):
        return generic_error_handler(_request, exc)

    headers: dict[str, str] | None = None
    error_type = "non_retriable"
    if isinstance(exc, RetriableError):
        error_type = "retriable"
        headers = {"Retry-After": str(max(exc.retry_after_ms // 1000, 1))}

    response = build_error_response(exc, error_type)
    return JSONResponse(
        status_code=get_status_code_for_error(exc),
        content=response.model_dump(mode="json"),
        headers=headers,
    )


async def client_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle ClientError exceptions with a 400 status."""
    if not isinstance(exc, ClientError):
        return generic_error_handler(_request, exc)

    logger.info("Rejected malformed request", error=exc.message, field=exc.field)
    response = build_error_response(exc, "non_retriable")
    return JSONResponse(status_code=400, content=response.model_dump(mode="json"))


def generic_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle generic/unexpected exceptions."""
    logger.error("Unhandled error", error=str(exc), error_type=type(exc).__name__)
    response = ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.GATEWAY_ERROR.value,
            message="Internal server error",
            type="non_retriable",
        )
    )
    return JSONResponse(status_code=500, content=response.model_dump(mode="json"))


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(RetriableError, gateway_error_handler)
    app.add_exception_handler(NonRetriableError, gateway_error_handler)
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
