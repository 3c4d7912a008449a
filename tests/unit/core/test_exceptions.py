"""Tests for the service-gateway exception hierarchy."""

import pytest

from gateway.core.exceptions import (
    ClientError,
    ConfigurationError,
    DependencyError,
    DependencyTimeoutError,
    DependencyUnavailableError,
    ErrorCode,
    GatewayError,
    NonRetriableError,
    ProviderError,
    ProviderUnconfiguredError,
    RetriableError,
)


class TestHierarchy:
    """Every error derives from GatewayError via Retriable/NonRetriable."""

    @pytest.mark.parametrize(
        "error_cls",
        [DependencyUnavailableError, DependencyTimeoutError],
    )
    def test_retriable_errors(self, error_cls: type[GatewayError]) -> None:
        assert issubclass(error_cls, RetriableError)
        assert issubclass(error_cls, GatewayError)

    @pytest.mark.parametrize(
        "error_cls",
        [ClientError, DependencyError, ProviderUnconfiguredError, ProviderError, ConfigurationError],
    )
    def test_non_retriable_errors(self, error_cls: type[GatewayError]) -> None:
        assert issubclass(error_cls, NonRetriableError)
        assert not issubclass(error_cls, RetriableError)


class TestGatewayError:
    def test_error_code_stored_as_string(self) -> None:
        error = GatewayError("boom", ErrorCode.CONFIGURATION_ERROR)

        assert error.error_code == "CONFIGURATION_ERROR"
        assert error.message == "boom"
        assert str(error) == "boom"

    def test_extra_kwargs_become_attributes(self) -> None:
        error = GatewayError("boom", request_id="chat_1")

        assert error.request_id == "chat_1"  # type: ignore[attr-defined]


class TestDependencyErrors:
    def test_timeout_carries_service_and_bound(self) -> None:
        error = DependencyTimeoutError("slow", service="risk", timeout_seconds=5.0)

        assert error.error_code == ErrorCode.DEPENDENCY_TIMEOUT.value
        assert error.service == "risk"
        assert error.timeout_seconds == 5.0
        assert error.retry_after_ms == 1000

    def test_unavailable_code(self) -> None:
        error = DependencyUnavailableError("down", service="hse")

        assert error.error_code == ErrorCode.DEPENDENCY_UNAVAILABLE.value
        assert error.service == "hse"

    def test_dependency_error_carries_status(self) -> None:
        error = DependencyError("rejected", service="budget", status_code=502)

        assert error.status_code == 502
        assert error.error_code == ErrorCode.DEPENDENCY_ERROR.value


class TestProviderErrors:
    def test_unconfigured_default_message(self) -> None:
        error = ProviderUnconfiguredError()

        assert error.message == "Completion provider is not configured"
        assert error.error_code == ErrorCode.PROVIDER_UNCONFIGURED.value

    def test_provider_error_with_status(self) -> None:
        error = ProviderError("Invalid API key", status_code=401)

        assert error.reason == "Invalid API key"
        assert error.status_code == 401
        assert "401" in error.message
        assert "Invalid API key" in error.message

    def test_transport_error_has_no_status(self) -> None:
        error = ProviderError("transport")

        assert error.status_code is None
        assert error.message == "Completion provider error: transport"


class TestClientError:
    def test_field_and_code(self) -> None:
        error = ClientError("missing messages", field="messages")

        assert error.field == "messages"
        assert error.error_code == ErrorCode.CLIENT_ERROR.value
