"""
Logger wrapper with correlation ids and structured keyword context.

``logger.info("Request approved", request_id=rid)`` puts ``request_id`` in
the record's ``extra_context``, which the formatters render.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from cycleops.core.correlation import get_correlation_id


class CycleOpsLogger:
    """Logger carrying persistent context and the active correlation id."""

    def __init__(self, name: str, correlation_id: Optional[str] = None):
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.extra_context: Dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self.logger.name

    def _log(self, level: int, msg: str, exc_info: bool = False, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        extra = {"correlation_id": self.correlation_id or get_correlation_id()}
        context = dict(self.extra_context)
        context.update(kwargs)
        if context:
            extra["extra_context"] = context
        self.logger.log(level, msg, exc_info=exc_info, extra=extra, stacklevel=3)

    def debug(self, msg: str, **kwargs):
        self._log(logging.DEBUG, msg, **kwargs)

    def info(self, msg: str, **kwargs):
        self._log(logging.INFO, msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        self._log(logging.WARNING, msg, **kwargs)

    def error(self, msg: str, **kwargs):
        self._log(logging.ERROR, msg, **kwargs)

    def exception(self, msg: str, **kwargs):
        """Log at error level with the current traceback."""
        self._log(logging.ERROR, msg, exc_info=True, **kwargs)

    def critical(self, msg: str, **kwargs):
        self._log(logging.CRITICAL, msg, **kwargs)

    def add_context(self, **kwargs):
        """Add persistent context to this logger."""
        self.extra_context.update(kwargs)

    def with_context(self, **kwargs) -> "CycleOpsLogger":
        """Create a copy of this logger with additional context."""
        new_logger = CycleOpsLogger(self.logger.name, self.correlation_id)
        new_logger.extra_context = {**self.extra_context, **kwargs}
        return new_logger

    @contextmanager
    def temp_context(self, **kwargs):
        """Context manager for temporary context."""
        original_context = self.extra_context.copy()
        self.extra_context.update(kwargs)
        try:
            yield self
        finally:
            self.extra_context = original_context
