"""
OpenTelemetry metrics for control-plane traffic.

A no-op meter backs the collector until ``setup_metrics`` installs a real one,
so instrumented code never has to check whether metrics are enabled.
"""

from collections import defaultdict
from typing import Any

from opentelemetry.metrics import Counter as OTelCounter
from opentelemetry.metrics import Histogram, Meter, NoOpMeter

from .logging import get_logger

logger = get_logger(__name__)


class MetricsCollector:
    """Centralized metrics collection."""

    def __init__(self, meter: Meter):
        self.meter = meter
        self._counters: dict[str, OTelCounter] = {}
        self._histograms: dict[str, Histogram] = {}

        # In-process tallies, readable without an exporter
        self._requests = defaultdict(int)
        self._failures = defaultdict(int)
        self._token_acquisitions = 0
        self._catalog_registrations = 0

        self._setup_default_metrics()

    def _setup_default_metrics(self):
        self._counters["control_plane_requests_total"] = self.meter.create_counter(
            "streamwright_control_plane_requests_total",
            description="Total control plane requests",
            unit="1",
        )
        self._histograms["control_plane_duration"] = self.meter.create_histogram(
            "streamwright_control_plane_duration_seconds",
            description="Control plane request duration",
            unit="s",
        )
        self._counters["token_acquisitions_total"] = self.meter.create_counter(
            "streamwright_token_acquisitions_total",
            description="Token endpoint exchanges",
            unit="1",
        )
        self._counters["catalog_registrations_total"] = self.meter.create_counter(
            "streamwright_catalog_registrations_total",
            description="Applications registered from the bulk catalog",
            unit="1",
        )

    def record_request(self, method: str, path: str, status_code: int | None, duration: float):
        """Record one control-plane round trip. ``path`` is the unresolved template."""
        ok = status_code is not None and 200 <= status_code < 300
        attributes = {
            "method": method,
            "path": path,
            "status_code": str(status_code) if status_code is not None else "none",
            "ok": str(ok).lower(),
        }
        self._counters["control_plane_requests_total"].add(1, attributes)
        self._histograms["control_plane_duration"].record(duration, attributes)

        key = f"{method} {path}"
        self._requests[key] += 1
        if not ok:
            self._failures[key] += 1

    def record_token_acquisition(self, registration_id: str, success: bool):
        self._counters["token_acquisitions_total"].add(
            1, {"registration_id": registration_id, "success": str(success).lower()}
        )
        if success:
            self._token_acquisitions += 1

    def record_catalog_registrations(self, count: int, failures: int):
        self._counters["catalog_registrations_total"].add(count, {"outcome": "registered"})
        if failures:
            self._counters["catalog_registrations_total"].add(failures, {"outcome": "failed"})
        self._catalog_registrations += count

    def snapshot(self) -> dict[str, Any]:
        """Aggregated in-process counts."""
        return {
            "requests": dict(self._requests),
            "failures": dict(self._failures),
            "token_acquisitions": self._token_acquisitions,
            "catalog_registrations": self._catalog_registrations,
        }


_metrics_collector: MetricsCollector | None = None


def setup_metrics(meter: Meter) -> MetricsCollector:
    """Install the global metrics collector."""
    global _metrics_collector
    _metrics_collector = MetricsCollector(meter)
    return _metrics_collector


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector, creating a no-op one on first use."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(NoOpMeter("streamwright"))
    return _metrics_collector


def reset_metrics() -> None:
    global _metrics_collector
    _metrics_collector = None
