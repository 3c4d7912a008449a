"""Service defaults for service-gateway.

Defaults are overridden via GATEWAY_* environment variables, see
gateway.core.config.Settings.
"""

# =============================================================================
# Service Defaults
# =============================================================================

DEFAULT_SERVICE_NAME = "service-gateway"
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_ORCHESTRATION_MODE = "pre_dispatch"


# =============================================================================
# Completion Provider Defaults
# =============================================================================

DEFAULT_COMPLETION_BASE_URL = "https://api.openai.com/v1"
DEFAULT_FAST_MODEL = "gpt-4o-mini"
DEFAULT_DEEP_MODEL = "gpt-4o"
DEFAULT_MODEL_TIER = "fast"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 1000
DEFAULT_COMPLETION_TIMEOUT_SECONDS = 30.0


# =============================================================================
# Backend Service Defaults
# =============================================================================

DEFAULT_SERVICE_PATH = "/analyze"
DEFAULT_SERVICE_TIMEOUT_SECONDS = 5.0  # Per-call bound, not per batch
DEFAULT_ORCHESTRATOR_PATH = "/v1/orchestrate"
DEFAULT_ORCHESTRATOR_TIMEOUT_SECONDS = 15.0


# =============================================================================
# Fallback
# =============================================================================

DEFAULT_FALLBACK_MESSAGE = (
    "I'm running with limited capabilities right now and couldn't reach the "
    "analysis services or the language model. Please try again in a few "
    "minutes."
)
