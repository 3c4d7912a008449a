"""OpenTelemetry tracing for service-gateway.

Incoming chat requests get a SERVER span from TracingMiddleware. Every
outbound call (backend service, completion provider, external orchestrator)
runs inside ``outbound_span``, which opens a CLIENT span and hands back the
headers carrying the trace context, so downstream services join the trace.

Nothing here requires tracing to be enabled: without setup_tracing() the
global no-op provider is used and spans cost almost nothing.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Callable, Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.propagate import extract, inject
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer


TRACER_NAME = "service_gateway"

_tracer_provider: Optional[TracerProvider] = None


def _build_exporter(otlp_endpoint: Optional[str]) -> SpanExporter:
    if not otlp_endpoint:
        return ConsoleSpanExporter()
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    except ImportError:
        # otlp extra not installed
        return ConsoleSpanExporter()
    return OTLPSpanExporter(endpoint=otlp_endpoint)


def setup_tracing(
    service_name: str = "service-gateway",
    otlp_endpoint: Optional[str] = None,
    exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    """Install the global TracerProvider once.

    Args:
        service_name: Resource service name.
        otlp_endpoint: OTLP gRPC endpoint; console export when unset.
        exporter: Explicit exporter, overriding otlp_endpoint.

    Returns:
        The installed provider. Later calls return the same provider.
    """
    global _tracer_provider

    if _tracer_provider is not None:
        return _tracer_provider

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter or _build_exporter(otlp_endpoint)))
    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def get_tracer(name: str = TRACER_NAME) -> Tracer:
    return trace.get_tracer(name)


def get_current_trace_id() -> Optional[str]:
    """Hex trace id of the active span, or None outside a recorded trace."""
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return None
    return format(span_context.trace_id, "032x")


def inject_trace_context(headers: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Add traceparent (and friends) for the active span to headers."""
    carrier = headers if headers is not None else {}
    inject(carrier)
    return carrier


def extract_trace_context(headers: dict[str, Any]) -> Context:
    return extract(headers)


@contextmanager
def outbound_span(
    name: str,
    attributes: Optional[dict[str, Any]] = None,
    tracer: Optional[Tracer] = None,
) -> Iterator[tuple[Span, dict[str, str]]]:
    """Open a CLIENT span for one outbound HTTP call.

    Yields the span and a fresh header dict already carrying the trace
    context of that span.

    Example:
        with outbound_span("service.risk", {"gateway.service": "risk"}) as (span, headers):
            response = await client.post(url, json=body, headers=headers)
            span.set_attribute("http.status_code", response.status_code)
    """
    with (tracer or get_tracer()).start_as_current_span(
        name, kind=SpanKind.CLIENT, attributes=attributes
    ) as span:
        yield span, inject_trace_context()


def _headers_to_dict(headers: list[tuple[bytes, bytes]]) -> dict[str, str]:
    return {key.decode("latin-1").lower(): value.decode("latin-1") for key, value in headers}


class TracingMiddleware:
    """ASGI middleware opening a SERVER span per HTTP request.

    The incoming traceparent, if any, becomes the parent. Responses with a
    5xx status mark the span as an error.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        exclude_paths: Optional[list[str]] = None,
        tracer_name: str = f"{TRACER_NAME}.http",
    ) -> None:
        self.app = app
        self.exclude_paths = frozenset(exclude_paths or ())
        self.tracer = get_tracer(tracer_name)

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        path = scope.get("path", "/")
        if scope["type"] != "http" or path in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        parent_context = extract_trace_context(_headers_to_dict(scope.get("headers", [])))

        with self.tracer.start_as_current_span(
            f"{method} {path}",
            context=parent_context,
            kind=SpanKind.SERVER,
            attributes={"http.method": method, "http.route": path},
        ) as span:

            async def send_wrapper(message: dict[str, Any]) -> None:
                if message["type"] == "http.response.start":
                    status_code = message.get("status", 500)
                    span.set_attribute("http.status_code", status_code)
                    if status_code >= 500:
                        span.set_status(Status(StatusCode.ERROR))
                await send(message)

            await self.app(scope, receive, send_wrapper)
