"""
Base exception classes for CycleOps.

Facade operations hand these errors back inside ``Err`` rather than raising
them, so each carries what a caller needs to answer for it: a status code,
whether retrying unchanged can help, and a serializable body.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from cycleops.constants import HTTP_STATUS_BAD_REQUEST


@dataclass
class ExceptionContext:
    """Details attached to a CycleOps error."""

    help_text: Optional[str] = None
    error_code: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    correlation_id: Optional[str] = None


class CycleOpsError(Exception):
    """Base exception for all CycleOps errors.

    Attributes:
        message: The error message
        help_text: Optional guidance shown to whoever made the call
        error_code: Stable code for programmatic handling (see ErrorCodes)
        context: Identifiers and values describing the failure
        correlation_id: Short id tying the error to its log lines
        http_status: Status code the surrounding application should answer with
        retryable: True when the same call may succeed if repeated unchanged
    """

    http_status: int = HTTP_STATUS_BAD_REQUEST
    retryable: bool = False

    def __init__(self, message: str, context: Optional[ExceptionContext] = None):
        details = context or ExceptionContext()
        self.message = message
        self.help_text = details.help_text
        self.error_code = details.error_code
        self.context = dict(details.context)
        self.correlation_id = details.correlation_id or uuid.uuid4().hex[:8]
        super().__init__(message)

    def __str__(self) -> str:
        result = self.message
        shown = self._shown_context()
        if shown:
            result += " (" + ", ".join(f"{k}={v}" for k, v in shown.items()) + ")"
        if self.help_text:
            result += f"\nHelp: {self.help_text}"
        return f"{result}\nError ID: {self.correlation_id}"

    def to_dict(self) -> Dict[str, Any]:
        """Response body for the surrounding application."""
        body = {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "http_status": self.http_status,
            "retryable": self.retryable,
            "context": {k: str(v) if not isinstance(v, (int, bool)) else v for k, v in self._shown_context().items()},
            "correlation_id": self.correlation_id,
        }
        if self.help_text:
            body["help"] = self.help_text
        return body

    def add_context(self, **kwargs) -> "CycleOpsError":
        """Add context after the fact; returns self so it can be raised inline."""
        self.context.update(kwargs)
        return self

    def _shown_context(self) -> Dict[str, Any]:
        return {k: v for k, v in self.context.items() if v is not None}
