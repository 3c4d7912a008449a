"""Custom exceptions for service-gateway.

Exception Hierarchy:
    GatewayError (base)
    ├── RetriableError (transient errors)
    │   ├── DependencyUnavailableError
    │   └── DependencyTimeoutError
    └── NonRetriableError (permanent errors)
        ├── ClientError
        ├── DependencyError
        ├── ProviderUnconfiguredError
        ├── ProviderError
        └── ConfigurationError

Dependency and provider errors are raised inside the outbound clients and
converted to typed outcomes at the dispatcher and fallback-strategy
boundaries. Only ClientError is expected to reach the HTTP layer.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """Machine-readable error codes used in API responses and logs."""

    GATEWAY_ERROR = "GATEWAY_ERROR"

    # Retriable errors
    DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"
    DEPENDENCY_TIMEOUT = "DEPENDENCY_TIMEOUT"

    # Non-retriable errors
    CLIENT_ERROR = "CLIENT_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"
    PROVIDER_UNCONFIGURED = "PROVIDER_UNCONFIGURED"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class GatewayError(Exception):
    """Base exception for all service-gateway errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.GATEWAY_ERROR,
        **kwargs: Any,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )

        for key, value in kwargs.items():
            setattr(self, key, value)


class RetriableError(GatewayError):
    """Base class for transient errors that may succeed on retry.

    Attributes:
        retry_after_ms: Suggested retry delay in milliseconds.
    """

    def __init__(
        self,
        message: str,
        retry_after_ms: int = 1000,
        error_code: str | ErrorCode = ErrorCode.GATEWAY_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.retry_after_ms = retry_after_ms


class NonRetriableError(GatewayError):
    """Base class for permanent errors that should not be retried."""

    pass


# =============================================================================
# Retriable Exceptions
# =============================================================================


class DependencyUnavailableError(RetriableError):
    """Backend endpoint is unknown to the registry or unreachable.

    Attributes:
        service: Identifier of the dependency.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        retry_after_ms: int = 1000,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            retry_after_ms=retry_after_ms,
            error_code=ErrorCode.DEPENDENCY_UNAVAILABLE,
            **kwargs,
        )
        self.service = service


class DependencyTimeoutError(RetriableError):
    """Backend call exceeded its time bound.

    Attributes:
        service: Identifier of the dependency.
        timeout_seconds: The bound that was exceeded.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        timeout_seconds: float | None = None,
        retry_after_ms: int = 1000,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            retry_after_ms=retry_after_ms,
            error_code=ErrorCode.DEPENDENCY_TIMEOUT,
            **kwargs,
        )
        self.service = service
        self.timeout_seconds = timeout_seconds


# =============================================================================
# Non-Retriable Exceptions
# =============================================================================


class ClientError(NonRetriableError):
    """Request body is malformed or carries no usable transcript.

    Never retried and never enters the fallback chain.

    Attributes:
        field: Name of the offending field, when known.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=ErrorCode.CLIENT_ERROR, **kwargs)
        self.field = field


class DependencyError(NonRetriableError):
    """Backend was reachable but rejected the call.

    Attributes:
        service: Identifier of the dependency.
        status_code: HTTP status returned, if any.
    """

    def __init__(
        self,
        message: str,
        service: str | None = None,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=ErrorCode.DEPENDENCY_ERROR, **kwargs)
        self.service = service
        self.status_code = status_code


class ProviderUnconfiguredError(NonRetriableError):
    """No completion credential is available."""

    def __init__(self, message: str = "Completion provider is not configured", **kwargs: Any) -> None:
        super().__init__(message, error_code=ErrorCode.PROVIDER_UNCONFIGURED, **kwargs)


class ProviderError(NonRetriableError):
    """Completion call failed.

    Attributes:
        reason: Provider-supplied reason, or "transport" for network failures.
        status_code: HTTP status returned by the provider, None for transport failures.
    """

    def __init__(
        self,
        reason: str,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        message = f"Completion provider error: {reason}"
        if status_code is not None:
            message = f"Completion provider error ({status_code}): {reason}"
        super().__init__(message, error_code=ErrorCode.PROVIDER_ERROR, **kwargs)
        self.reason = reason
        self.status_code = status_code


class ConfigurationError(NonRetriableError):
    """Service configuration is invalid.

    Attributes:
        setting: Name of the problematic setting.
    """

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code=ErrorCode.CONFIGURATION_ERROR, **kwargs)
        self.setting = setting
