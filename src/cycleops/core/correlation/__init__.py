"""
Correlation id management for CycleOps.

Every facade operation runs inside a thread-local correlation context so
log lines and errors produced while handling one request can be tied
together.

Usage:
    from cycleops.core.correlation import CorrelationIdManager

    with CorrelationIdManager.correlation_context(operation="approve", request_id=rid):
        ...
"""

from .manager import (
    CorrelationContext,
    CorrelationIdManager,
    get_correlation_id,
    with_correlation,
)

__all__ = [
    "CorrelationContext",
    "CorrelationIdManager",
    "get_correlation_id",
    "with_correlation",
]
