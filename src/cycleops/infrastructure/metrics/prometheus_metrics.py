"""
Prometheus metrics for the request lifecycle.

Recording is a no-op until the metrics server is started or ``enable()`` is
called, so the engine can record unconditionally.
"""

import sys
import threading
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Info, start_http_server

from cycleops.constants import DEFAULT_METRICS_PORT
from cycleops.logging import get_logger

logger = get_logger(__name__)


class CycleOpsMetrics:
    """Prometheus metrics collection for CycleOps"""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.transitions_total = Counter(
            "cycleops_transitions_total",
            "Request status transitions",
            ["kind", "event", "to_status"],
            registry=registry,
        )

        self.sweeps_total = Counter(
            "cycleops_sweeps_total",
            "Completed expiry sweeps",
            registry=registry,
        )

        self.sweep_duration = Histogram(
            "cycleops_sweep_duration_seconds",
            "Expiry sweep duration in seconds",
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
            registry=registry,
        )

        self.expirations_total = Counter(
            "cycleops_expirations_total",
            "Requests expired by the sweeper",
            ["kind"],
            registry=registry,
        )

        self.coupon_consumptions_total = Counter(
            "cycleops_coupon_consumptions_total",
            "Coupon consumption attempts",
            ["status"],
            registry=registry,
        )

        self.gateway_requests_total = Counter(
            "cycleops_gateway_requests_total",
            "Payment gateway calls",
            ["gateway", "operation", "status"],
            registry=registry,
        )

        self.gateway_request_duration = Histogram(
            "cycleops_gateway_request_duration_seconds",
            "Payment gateway call duration in seconds",
            ["gateway", "operation"],
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=registry,
        )

        self.payment_verifications_total = Counter(
            "cycleops_payment_verifications_total",
            "Payment signature verifications",
            ["result"],
            registry=registry,
        )

        self.errors_total = Counter(
            "cycleops_errors_total",
            "Errors by type",
            ["error_type", "operation"],
            registry=registry,
        )

        self.system_info = Info("cycleops_system", "CycleOps system information", registry=registry)

        self._http_server = None
        self._initialized = False
        self._lock = threading.Lock()

    def enable(self):
        """Start recording without serving metrics over HTTP."""
        self._initialized = True

    def start_metrics_server(self, port: int = DEFAULT_METRICS_PORT):
        """Start Prometheus metrics HTTP server"""
        with self._lock:
            if self._http_server is not None:
                logger.warning("Metrics server already running", port=port)
                return
            self._http_server = start_http_server(port, registry=self.registry)
            self._initialized = True

        from cycleops import __version__

        self.system_info.info({"version": __version__, "python_version": sys.version.split()[0]})
        logger.info(f"Prometheus metrics server started on port {port}", port=port)

    def record_transition(self, kind: str, event: str, to_status: str):
        if not self._initialized:
            return
        self.transitions_total.labels(kind=kind, event=event, to_status=to_status).inc()

    def record_sweep(self, duration: float, expired_by_kind: Optional[dict] = None):
        if not self._initialized:
            return
        self.sweeps_total.inc()
        self.sweep_duration.observe(duration)
        for kind, count in (expired_by_kind or {}).items():
            if count:
                self.expirations_total.labels(kind=kind).inc(count)

    def record_coupon_consumption(self, status: str):
        if not self._initialized:
            return
        self.coupon_consumptions_total.labels(status=status).inc()

    def record_gateway_request(self, gateway: str, operation: str, duration: float, success: bool):
        if not self._initialized:
            return
        status = "success" if success else "error"
        self.gateway_requests_total.labels(gateway=gateway, operation=operation, status=status).inc()
        self.gateway_request_duration.labels(gateway=gateway, operation=operation).observe(duration)

    def record_payment_verification(self, verified: bool):
        if not self._initialized:
            return
        self.payment_verifications_total.labels(result="verified" if verified else "rejected").inc()

    def record_error(self, error_type: str, operation: str = ""):
        if not self._initialized:
            return
        self.errors_total.labels(error_type=error_type, operation=operation).inc()

    def is_server_running(self) -> bool:
        return self._http_server is not None


# Global metrics instance
_metrics: Optional[CycleOpsMetrics] = None
_metrics_lock = threading.Lock()


def get_metrics() -> CycleOpsMetrics:
    """Get global metrics instance (thread-safe singleton)"""
    global _metrics

    if _metrics is None:
        with _metrics_lock:
            if _metrics is None:
                _metrics = CycleOpsMetrics()

    return _metrics
