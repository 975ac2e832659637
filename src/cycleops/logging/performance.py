"""
Operation timing helpers.
"""

import time
from functools import wraps
from typing import Any, Dict, Optional

from .loggers import CycleOpsLogger


class TimedOperation:
    """Context manager logging the duration of an operation.

    Success is logged at debug level; a failure is logged at warning level
    since the caller decides how serious it is.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[CycleOpsLogger] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.operation = operation
        self.logger = logger or CycleOpsLogger(f"cycleops.performance.{operation}")
        self.context = context or {}
        self.start_time = None
        self.duration_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is None:
            return
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is None:
            self.logger.debug(
                f"Completed operation: {self.operation} in {self.duration_ms:.2f}ms",
                operation=self.operation,
                duration_ms=round(self.duration_ms, 3),
                status="success",
                **self.context,
            )
        else:
            self.logger.warning(
                f"Failed operation: {self.operation} after {self.duration_ms:.2f}ms: {exc_val}",
                operation=self.operation,
                duration_ms=round(self.duration_ms, 3),
                status="failed",
                error_type=exc_type.__name__,
                **self.context,
            )

    @property
    def duration_seconds(self) -> float:
        return (self.duration_ms or 0.0) / 1000


def timed(operation: Optional[str] = None, logger: Optional[CycleOpsLogger] = None):
    """Decorator timing a function with TimedOperation."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            op_name = operation or f"{func.__module__}.{func.__name__}"
            perf_logger = logger or CycleOpsLogger(f"{func.__module__}.performance")
            with TimedOperation(op_name, perf_logger):
                return func(*args, **kwargs)

        return wrapper

    return decorator
