"""
Core correlation ID management.

Provides the CorrelationIdManager class used to tag every facade operation
and sweep with a correlation id and the id of the request being handled.
"""

# Use standard Python logging: the structured logger reads from this module
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def _log_with_context(level, message, **kwargs):
    """Log message with key=value context appended."""
    context_parts = [f"{k}={v}" for k, v in kwargs.items() if v is not None]
    if context_parts:
        full_message = f"{message} ({', '.join(context_parts)})"
    else:
        full_message = message
    getattr(logger, level)(full_message)


# Thread-local storage for correlation context
_context_storage = threading.local()


@dataclass
class CorrelationContext:
    """
    Context information for a correlated operation.

    ``metadata`` typically carries the request id and kind.
    """

    correlation_id: str
    parent_id: Optional[str] = None
    operation: Optional[str] = None
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def elapsed_seconds(self) -> float:
        """Get elapsed time since operation start."""
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()


class CorrelationIdManager:
    """Manager for correlation IDs stored per thread."""

    @staticmethod
    def generate_id() -> str:
        """Generate a new correlation ID."""
        return str(uuid.uuid4())[:8]

    @staticmethod
    def get_current_id() -> Optional[str]:
        return getattr(_context_storage, "correlation_id", None)

    @staticmethod
    def get_current_context() -> Optional[CorrelationContext]:
        return getattr(_context_storage, "context", None)

    @staticmethod
    def set_context(context: CorrelationContext):
        """Set the full correlation context for the current thread."""
        _context_storage.context = context
        _context_storage.correlation_id = context.correlation_id

    @staticmethod
    def clear_context():
        """Clear the correlation context for the current thread."""
        if hasattr(_context_storage, "context"):
            delattr(_context_storage, "context")
        if hasattr(_context_storage, "correlation_id"):
            delattr(_context_storage, "correlation_id")

    @staticmethod
    @contextmanager
    def correlation_context(
        correlation_id: Optional[str] = None,
        operation: Optional[str] = None,
        **metadata,
    ):
        """
        Context manager for correlation ID management.

        Nested contexts record the enclosing context's id as ``parent_id``
        and restore it on exit.

        Args:
            correlation_id: Specific correlation ID (generates new if None)
            operation: Name of the operation being performed
            **metadata: Additional metadata, such as request_id
        """
        if correlation_id is None:
            correlation_id = CorrelationIdManager.generate_id()

        parent_context = CorrelationIdManager.get_current_context()
        parent_id = parent_context.correlation_id if parent_context else None

        context = CorrelationContext(
            correlation_id=correlation_id,
            parent_id=parent_id,
            operation=operation,
            metadata=metadata,
        )

        try:
            CorrelationIdManager.set_context(context)
            _log_with_context(
                "debug",
                "Operation started",
                correlation_id=correlation_id,
                parent_id=parent_id,
                operation=operation,
                **metadata,
            )

            yield context

            _log_with_context(
                "debug",
                "Operation completed",
                correlation_id=correlation_id,
                operation=operation,
                elapsed_seconds=round(context.elapsed_seconds(), 4),
            )

        except Exception as e:
            _log_with_context(
                "error",
                "Operation failed",
                correlation_id=correlation_id,
                operation=operation,
                exception_type=type(e).__name__,
                elapsed_seconds=round(context.elapsed_seconds(), 4),
                **metadata,
            )
            if hasattr(e, "add_context"):
                e.add_context(correlation_id=correlation_id, operation=operation)
            raise

        finally:
            if parent_context:
                CorrelationIdManager.set_context(parent_context)
            else:
                CorrelationIdManager.clear_context()

    @staticmethod
    def add_context_metadata(**metadata):
        """Add metadata to the current correlation context."""
        context = CorrelationIdManager.get_current_context()
        if context:
            context.metadata.update(metadata)


def get_correlation_id() -> Optional[str]:
    return CorrelationIdManager.get_current_id()


def with_correlation(operation: Optional[str] = None) -> Callable:
    """Decorator running the wrapped function inside a correlation context."""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with CorrelationIdManager.correlation_context(
                operation=operation or func.__name__
            ):
                return func(*args, **kwargs)

        return wrapper

    return decorator
