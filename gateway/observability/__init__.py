"""
Observability package: OpenTelemetry tracing for service-gateway.
"""

from gateway.observability.tracing import (
    TracingMiddleware,
    extract_trace_context,
    get_current_trace_id,
    get_tracer,
    inject_trace_context,
    outbound_span,
    setup_tracing,
)

__all__ = [
    "setup_tracing",
    "TracingMiddleware",
    "get_tracer",
    "get_current_trace_id",
    "inject_trace_context",
    "extract_trace_context",
    "outbound_span",
]
