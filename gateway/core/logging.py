"""Structured JSON logging for service-gateway.

Every record carries timestamp, level, logger and event. Inside a chat
request it also carries ``correlation_id`` (the response id), and
``trace_id`` when the request is being traced. Credential-looking keys are
masked before rendering.

Usage:
    configure_logging(level="INFO")          # once, in the app lifespan
    logger = get_logger(__name__)
    with correlation_scope(response_id):
        logger.info("Dispatch batch complete", services=["risk"])
"""

import contextvars
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Final, TextIO

import structlog
from structlog.types import EventDict

from gateway.observability.tracing import get_current_trace_id


REDACTED: Final[str] = "***"
SENSITIVE_KEYS: Final[frozenset[str]] = frozenset(
    {"api_key", "completion_api_key", "authorization", "password", "token"}
)

_configured: bool = False

_correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


# =============================================================================
# Correlation ID
# =============================================================================
def set_correlation_id(correlation_id: str | None) -> contextvars.Token[str | None]:
    """Bind a correlation id to the current async context.

    Returns:
        Token for reset_correlation_id().
    """
    return _correlation_id_var.set(correlation_id)


def reset_correlation_id(token: contextvars.Token[str | None]) -> None:
    _correlation_id_var.reset(token)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind correlation_id for the duration of the block, then restore."""
    token = set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        reset_correlation_id(token)


# =============================================================================
# Processors
# =============================================================================
def add_correlation_id(_logger: object, _method_name: str, event_dict: EventDict) -> EventDict:
    correlation_id = get_correlation_id()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict


def add_trace_id(_logger: object, _method_name: str, event_dict: EventDict) -> EventDict:
    """Attach the active OpenTelemetry trace id, if any."""
    trace_id = get_current_trace_id()
    if trace_id is not None:
        event_dict.setdefault("trace_id", trace_id)
    return event_dict


def redact_secrets(_logger: object, _method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values of credential-looking keys."""
    for key in SENSITIVE_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _level_to_int(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


# =============================================================================
# Configuration
# =============================================================================
def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    force: bool = False,
) -> None:
    """Configure structlog once per process.

    Later calls are no-ops unless force=True (tests).

    Args:
        level: Minimum level name.
        stream: Output stream, sys.stdout by default.
        force: Reconfigure even if already configured.
    """
    global _configured

    if _configured and not force:
        return

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            add_correlation_id,
            add_trace_id,
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )
    _configured = True


def reset_logging() -> None:
    """Forget the configuration (test isolation)."""
    global _configured
    _configured = False


def get_logger(name: str) -> Any:
    """Logger bound to ``name``; configures defaults on first use."""
    configure_logging()
    return structlog.get_logger().bind(logger=name)
