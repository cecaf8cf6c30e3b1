"""
Observability for the orchestration client: structured logging, operation
probes, OpenTelemetry metrics and tracing.

Usage:
    >>> from streamwright.observability import get_logger, probe
    >>>
    >>> logger = get_logger(__name__)
    >>> with probe("streams.deploy", stream="ingest"):
    ...     ...

Configuration:
    - SWR_OBSERVABILITY__LOG_LEVEL=INFO
    - SWR_OBSERVABILITY__ENABLE_TRACING=true
    - SWR_OBSERVABILITY__OTLP_ENDPOINT=http://collector:4317
"""

from .logging import get_logger, get_trace_id, setup_logging, trace_scope
from .metrics import get_metrics_collector, setup_metrics
from .probe import probe, probed
from .tracing import get_tracing_manager, inject_context, setup_tracing

__all__ = [
    "get_logger",
    "setup_logging",
    "get_trace_id",
    "trace_scope",
    "get_metrics_collector",
    "setup_metrics",
    "probe",
    "probed",
    "get_tracing_manager",
    "inject_context",
    "setup_tracing",
]
