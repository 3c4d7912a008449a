"""Tests for core configuration module.

Tests verify:
- Settings loads GATEWAY_* environment variables
- Defaults match the documented service behavior
- Validation fails fast with clear errors
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettingsDefaults:
    """Test Settings class default values."""

    def test_default_port_is_3000(self) -> None:
        from gateway.core.config import Settings

        assert Settings().port == 3000

    def test_default_host_is_all_interfaces(self) -> None:
        """Host defaults to 0.0.0.0 for container deployment."""
        from gateway.core.config import Settings

        assert Settings().host == "0.0.0.0"

    def test_default_log_level_is_info(self) -> None:
        from gateway.core.config import Settings

        assert Settings().log_level == "INFO"

    def test_default_orchestration_mode_is_pre_dispatch(self) -> None:
        from gateway.core.config import Settings

        assert Settings().orchestration_mode == "pre_dispatch"

    def test_default_service_timeout_is_five_seconds(self) -> None:
        from gateway.core.config import Settings

        assert Settings().service_timeout_seconds == 5.0

    def test_completion_provider_unconfigured_by_default(self) -> None:
        from gateway.core.config import Settings

        settings = Settings()
        assert settings.completion_api_key is None
        assert settings.completion_base_url == "https://api.openai.com/v1"

    def test_no_services_configured_by_default(self) -> None:
        from gateway.core.config import Settings

        assert all(url is None for url in Settings().service_urls.values())

    def test_model_tiers_default(self) -> None:
        from gateway.core.config import Settings

        settings = Settings()
        assert settings.fast_model == "gpt-4o-mini"
        assert settings.deep_model == "gpt-4o"
        assert settings.default_model_tier == "fast"


class TestSettingsEnvironmentVariables:
    """Test Settings loads from GATEWAY_* prefixed environment variables."""

    def test_loads_port_from_env(self) -> None:
        from gateway.core.config import Settings

        with patch.dict(os.environ, {"GATEWAY_PORT": "9999"}):
            settings = Settings()
        assert settings.port == 9999

    def test_loads_service_url_from_env(self) -> None:
        from gateway.core.config import Settings

        env = {"GATEWAY_RISK_SERVICE_URL": "http://risk:8002"}
        with patch.dict(os.environ, env):
            settings = Settings()
        assert settings.service_urls["risk"] == "http://risk:8002"
        assert settings.service_urls["budget"] is None

    def test_loads_orchestration_mode_from_env(self) -> None:
        from gateway.core.config import Settings

        with patch.dict(os.environ, {"GATEWAY_ORCHESTRATION_MODE": "post_dispatch"}):
            settings = Settings()
        assert settings.orchestration_mode == "post_dispatch"

    def test_env_vars_case_insensitive(self) -> None:
        from gateway.core.config import Settings

        with patch.dict(os.environ, {"gateway_port": "8123"}):
            settings = Settings()
        assert settings.port == 8123


class TestSettingsValidation:
    """Test Settings validation errors."""

    def test_log_level_normalized_to_uppercase(self) -> None:
        from gateway.core.config import Settings

        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self) -> None:
        from gateway.core.config import Settings

        with pytest.raises(ValidationError, match="log_level"):
            Settings(log_level="LOUD")

    def test_invalid_orchestration_mode_rejected(self) -> None:
        from gateway.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(orchestration_mode="sideways")

    def test_invalid_port_rejected(self) -> None:
        from gateway.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(port=70000)

    def test_non_positive_service_timeout_rejected(self) -> None:
        from gateway.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(service_timeout_seconds=0)

    def test_blank_api_key_treated_as_unset(self) -> None:
        """An empty GATEWAY_COMPLETION_API_KEY must not count as a credential."""
        from gateway.core.config import Settings

        with patch.dict(os.environ, {"GATEWAY_COMPLETION_API_KEY": "   "}):
            settings = Settings()
        assert settings.completion_api_key is None

    def test_blank_orchestrator_url_treated_as_unset(self) -> None:
        from gateway.core.config import Settings

        assert Settings(orchestrator_url="").orchestrator_url is None

    def test_blank_service_url_treated_as_unset(self) -> None:
        from gateway.core.config import Settings

        with patch.dict(os.environ, {"GATEWAY_RISK_SERVICE_URL": " "}):
            settings = Settings()
        assert settings.service_urls["risk"] is None

    @pytest.mark.parametrize(
        "url", ["http://risk.test:notaport", "risk.test", "ftp://risk.test", "http://"]
    )
    def test_malformed_service_url_rejected(self, url: str) -> None:
        from gateway.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(risk_service_url=url)

    def test_malformed_orchestrator_url_rejected(self) -> None:
        from gateway.core.config import Settings

        with pytest.raises(ValidationError):
            Settings(orchestrator_url="http://orchestrator:bad")

    def test_valid_service_url_kept_verbatim(self) -> None:
        from gateway.core.config import Settings

        settings = Settings(risk_service_url=" http://risk:8002 ")
        assert settings.service_urls["risk"] == "http://risk:8002"


class TestSettingsImmutability:
    """Settings are read-only once constructed."""

    def test_settings_are_frozen(self) -> None:
        from gateway.core.config import Settings

        settings = Settings()
        with pytest.raises(ValidationError):
            settings.port = 1234  # type: ignore[misc]


class TestGetSettings:
    """Test get_settings() singleton."""

    def test_get_settings_returns_cached_instance(self) -> None:
        from gateway.core.config import get_settings

        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
