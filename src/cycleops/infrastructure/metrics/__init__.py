"""Prometheus metrics for CycleOps."""

from .prometheus_metrics import CycleOpsMetrics, get_metrics

__all__ = ["CycleOpsMetrics", "get_metrics"]
