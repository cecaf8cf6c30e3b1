"""
OpenTelemetry tracing integration.

Until ``TracingManager.initialize`` runs, the global OpenTelemetry API hands
out no-op tracers, so spans opened by ``probe`` cost nothing.
"""

from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from .logging import get_logger, get_trace_id, trace_scope

logger = get_logger(__name__)

_propagator = TraceContextTextMapPropagator()


class TracingManager:
    """Manages OpenTelemetry tracing configuration."""

    def __init__(self, service_name: str = "streamwright", service_version: str = "0.3.0"):
        self.service_name = service_name
        self.service_version = service_version
        self.tracer_provider: TracerProvider | None = None
        self.tracer: trace.Tracer | None = None
        self._initialized = False

    def initialize(self, otlp_endpoint: str | None = None) -> None:
        """Install a tracer provider, exporting over OTLP when an endpoint is given."""
        if self._initialized:
            return

        resource = Resource.create(
            {
                "service.name": self.service_name,
                "service.version": self.service_version,
            }
        )
        self.tracer_provider = TracerProvider(resource=resource)
        if otlp_endpoint:
            self.tracer_provider.add_span_processor(
                BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint))
            )
        trace.set_tracer_provider(self.tracer_provider)

        self.tracer = trace.get_tracer(self.service_name, self.service_version)
        self._initialized = True
        logger.info("Tracing initialized", otlp_endpoint=otlp_endpoint or "-")

    @contextmanager
    def span(self, name: str, attributes: dict[str, Any] | None = None):
        """Open a span; log lines inside it carry its trace id, the outer id is restored on exit."""
        tracer = self.tracer or trace.get_tracer(self.service_name)
        with tracer.start_as_current_span(name) as span:
            for key, value in (attributes or {}).items():
                span.set_attribute(key, str(value))
            ctx = span.get_span_context()
            trace_id = format(ctx.trace_id, "032x") if ctx.trace_id else get_trace_id()
            with trace_scope(trace_id):
                try:
                    yield span
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

    def shutdown(self) -> None:
        if self.tracer_provider:
            self.tracer_provider.shutdown()
        self._initialized = False


def inject_context(headers: dict[str, str]) -> dict[str, str]:
    """Add W3C trace context of the current span to outbound headers."""
    _propagator.inject(headers)
    return headers


_tracing_manager: TracingManager | None = None


def setup_tracing(
    service_name: str, service_version: str, otlp_endpoint: str | None = None
) -> TracingManager:
    """Create, initialize and install the global tracing manager."""
    global _tracing_manager
    _tracing_manager = TracingManager(service_name, service_version)
    _tracing_manager.initialize(otlp_endpoint=otlp_endpoint)
    return _tracing_manager


def get_tracing_manager() -> TracingManager:
    """Get the global tracing manager; uninitialized managers use the no-op API tracer."""
    global _tracing_manager
    if _tracing_manager is None:
        _tracing_manager = TracingManager()
    return _tracing_manager
