"""Core configuration module for service-gateway.

Loads settings from GATEWAY_* prefixed environment variables using Pydantic Settings.

Patterns applied:
- pydantic-settings BaseSettings (Pydantic v2 split)
- env_prefix = "GATEWAY_" for namespace isolation
- frozen model: settings are read-only once constructed
- @field_validator + @classmethod (Pydantic v2 pattern)
- @lru_cache for singleton pattern
"""

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings

from gateway.core.constants import (
    DEFAULT_COMPLETION_BASE_URL,
    DEFAULT_COMPLETION_TIMEOUT_SECONDS,
    DEFAULT_DEEP_MODEL,
    DEFAULT_ENVIRONMENT,
    DEFAULT_FALLBACK_MESSAGE,
    DEFAULT_FAST_MODEL,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL_TIER,
    DEFAULT_ORCHESTRATION_MODE,
    DEFAULT_ORCHESTRATOR_PATH,
    DEFAULT_ORCHESTRATOR_TIMEOUT_SECONDS,
    DEFAULT_PORT,
    DEFAULT_SERVICE_NAME,
    DEFAULT_SERVICE_PATH,
    DEFAULT_SERVICE_TIMEOUT_SECONDS,
    DEFAULT_TEMPERATURE,
)


_HTTP_URL: TypeAdapter[AnyHttpUrl] = TypeAdapter(AnyHttpUrl)


class Settings(BaseSettings):
    """Application settings loaded from GATEWAY_* environment variables.

    Example: GATEWAY_PORT=3000, GATEWAY_COMPLIANCE_SERVICE_URL=http://compliance:8001

    A backend service whose URL is unset is simply absent from the service
    registry; requests routed to it report ``unavailable``.
    """

    # =========================================================================
    # Core Settings
    # =========================================================================
    service_name: str = Field(
        default=DEFAULT_SERVICE_NAME,
        description="Service name for identification",
    )
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    host: str = Field(default=DEFAULT_HOST)
    environment: Literal["development", "staging", "production"] = Field(
        default=DEFAULT_ENVIRONMENT,
        description="Deployment environment",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Orchestration Settings
    # =========================================================================
    orchestration_mode: Literal["pre_dispatch", "post_dispatch"] = Field(
        default=DEFAULT_ORCHESTRATION_MODE,
        description="Dispatch before the completion call, or let the model request a service",
    )
    fallback_message: str = Field(default=DEFAULT_FALLBACK_MESSAGE)

    # =========================================================================
    # Completion Provider
    # =========================================================================
    completion_api_key: str | None = Field(
        default=None,
        description="Credential for the completion provider; unset disables it",
    )
    completion_base_url: str = Field(default=DEFAULT_COMPLETION_BASE_URL)
    fast_model: str = Field(default=DEFAULT_FAST_MODEL)
    deep_model: str = Field(default=DEFAULT_DEEP_MODEL)
    default_model_tier: Literal["fast", "deep"] = Field(default=DEFAULT_MODEL_TIER)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, ge=1)
    completion_timeout_seconds: float = Field(
        default=DEFAULT_COMPLETION_TIMEOUT_SECONDS, gt=0
    )

    # =========================================================================
    # Backend Analysis Services
    # =========================================================================
    compliance_service_url: str | None = None
    risk_service_url: str | None = None
    hse_service_url: str | None = None
    qaqc_service_url: str | None = None
    schedule_service_url: str | None = None
    budget_service_url: str | None = None
    service_path: str = Field(default=DEFAULT_SERVICE_PATH)
    service_timeout_seconds: float = Field(
        default=DEFAULT_SERVICE_TIMEOUT_SECONDS,
        gt=0,
        description="Per-call bound for backend service requests",
    )

    # =========================================================================
    # External Orchestrator (secondary fallback tier)
    # =========================================================================
    orchestrator_url: str | None = None
    orchestrator_path: str = Field(default=DEFAULT_ORCHESTRATOR_PATH)
    orchestrator_timeout_seconds: float = Field(
        default=DEFAULT_ORCHESTRATOR_TIMEOUT_SECONDS, gt=0
    )

    # =========================================================================
    # Observability
    # =========================================================================
    tracing_enabled: bool = False
    otlp_endpoint: str | None = None

    # =========================================================================
    # Pydantic v2 Model Configuration
    # =========================================================================
    model_config = {
        "env_prefix": "GATEWAY_",
        "case_sensitive": False,
        "extra": "ignore",
        "frozen": True,
    }

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Raises:
            ValueError: If log level is not valid.
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized not in valid_levels:
            msg = f"log_level must be one of {valid_levels}, got '{v}'"
            raise ValueError(msg)
        return normalized

    @field_validator("completion_api_key")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty strings from the environment as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator(
        "orchestrator_url",
        "compliance_service_url",
        "risk_service_url",
        "hse_service_url",
        "qaqc_service_url",
        "schedule_service_url",
        "budget_service_url",
    )
    @classmethod
    def validate_http_url(cls, v: str | None) -> str | None:
        """Blank means unset; anything else must be an http(s) URL.

        Raises:
            ValueError: If the URL does not parse (bad scheme, port or host).
        """
        if v is None or not v.strip():
            return None
        url = v.strip()
        try:
            _HTTP_URL.validate_python(url)
        except ValidationError as e:
            msg = f"invalid http(s) URL '{url}': {e.errors()[0]['msg']}"
            raise ValueError(msg) from e
        return url

    @property
    def service_urls(self) -> dict[str, str | None]:
        """Backend base URLs keyed by service identifier value."""
        return {
            "compliance": self.compliance_service_url,
            "risk": self.risk_service_url,
            "hse": self.hse_service_url,
            "qaqc": self.qaqc_service_url,
            "schedule": self.schedule_service_url,
            "budget": self.budget_service_url,
        }


@lru_cache
def get_settings() -> Settings:
    """Get singleton Settings instance.

    Returns:
        Cached Settings instance.
    """
    return Settings()
