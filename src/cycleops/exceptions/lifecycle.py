"""
Request lifecycle exceptions.

State errors indicate caller misuse or a lost race with another writer.
They are logged at warning level and answered with a 409-equivalent.
"""

from typing import Any, Optional

from cycleops.constants import HTTP_STATUS_CONFLICT, HTTP_STATUS_NOT_FOUND

from .base import CycleOpsError, ExceptionContext
from .templates import ErrorCodes, ErrorMessageTemplates


class StateError(CycleOpsError):
    """Base class for request lifecycle conflicts."""

    http_status = HTTP_STATUS_CONFLICT


class IllegalTransitionError(StateError):
    """Raised when an event is not allowed from the request's current status."""

    def __init__(self, request_id: Optional[str], kind: Any, current: Any, attempted: Any):
        self.request_id = request_id
        self.current = _value(current)
        self.attempted = _value(attempted)
        message = ErrorMessageTemplates.ILLEGAL_TRANSITION.format(
            event=self.attempted, kind=_value(kind), status=self.current
        )
        context = ExceptionContext(
            help_text="Reload the request to see its current status",
            error_code=ErrorCodes.ILLEGAL_TRANSITION,
            context={
                "request_id": request_id,
                "current_status": self.current,
                "attempted": self.attempted,
            },
        )
        super().__init__(message, context)


class NotYetExpirableError(StateError):
    """Raised when expiry is attempted before the hold window has elapsed."""

    def __init__(self, request_id: Optional[str], expires_at: Any):
        self.request_id = request_id
        self.expires_at = expires_at
        message = ErrorMessageTemplates.NOT_YET_EXPIRABLE.format(
            request_id=request_id, expires_at=expires_at
        )
        context = ExceptionContext(
            error_code=ErrorCodes.NOT_YET_EXPIRABLE,
            context={"request_id": request_id, "expires_at": str(expires_at)},
        )
        super().__init__(message, context)


class PaymentAlreadyCompletedError(StateError):
    """Raised when a payment order is requested for an already paid request."""

    def __init__(self, request_id: str, payment_id: Optional[str] = None):
        self.request_id = request_id
        self.payment_id = payment_id
        context = ExceptionContext(
            help_text="The request is already paid; no further payment is needed",
            error_code=ErrorCodes.PAYMENT_ALREADY_COMPLETED,
            context={"request_id": request_id, "payment_id": payment_id},
        )
        super().__init__(f"Payment already completed for request {request_id}", context)


class RequestNotFoundError(StateError):
    """Raised when a request id is unknown to the request store."""

    http_status = HTTP_STATUS_NOT_FOUND

    def __init__(self, request_id: str):
        self.request_id = request_id
        context = ExceptionContext(
            error_code=ErrorCodes.REQUEST_NOT_FOUND,
            context={"request_id": request_id},
        )
        super().__init__(f"Request {request_id} not found", context)


def _value(item: Any) -> str:
    return getattr(item, "value", str(item))
