"""
Infrastructure exceptions.

All exceptions related to the payment gateway, the stores and optimistic
concurrency. These are logged at error level with the request id and may be
retried a bounded number of times at the caller's boundary.
"""

from typing import Optional

from cycleops.constants import (
    HTTP_STATUS_BAD_GATEWAY,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_SERVICE_UNAVAILABLE,
    HTTP_STATUS_UNPROCESSABLE,
)

from .base import CycleOpsError, ExceptionContext
from .templates import ErrorCodes, ErrorMessageTemplates


class InfrastructureError(CycleOpsError):
    """Base class for gateway, store and concurrency failures."""

    http_status = HTTP_STATUS_SERVICE_UNAVAILABLE


class GatewayUnavailableError(InfrastructureError):
    """Raised when the payment gateway cannot be reached or fails with 5xx."""

    retryable = True

    def __init__(self, gateway: str, details: Optional[str] = None, http_code: Optional[int] = None):
        self.gateway = gateway
        self.http_code = http_code
        message = ErrorMessageTemplates.GATEWAY_UNAVAILABLE.format(
            gateway=gateway, details=details or "no response"
        )
        context = ExceptionContext(
            help_text="Try again in a few moments",
            error_code=ErrorCodes.GATEWAY_UNAVAILABLE,
            context={"gateway": gateway, "http_code": http_code},
        )
        super().__init__(message, context)


class GatewayRejectedError(InfrastructureError):
    """Raised when the payment gateway refuses an order (4xx)."""

    http_status = HTTP_STATUS_BAD_GATEWAY

    def __init__(self, gateway: str, details: Optional[str] = None, http_code: Optional[int] = None):
        self.gateway = gateway
        self.http_code = http_code
        message = ErrorMessageTemplates.GATEWAY_REJECTED.format(
            gateway=gateway, details=details or "unknown reason"
        )
        context = ExceptionContext(
            help_text="Check the gateway credentials and order parameters",
            error_code=ErrorCodes.GATEWAY_REJECTED,
            context={"gateway": gateway, "http_code": http_code},
        )
        super().__init__(message, context)


class InvalidAmountError(InfrastructureError):
    """Raised when a request with a non-positive net amount is routed to the gateway."""

    http_status = HTTP_STATUS_UNPROCESSABLE

    def __init__(self, request_id: Optional[str], amount):
        self.request_id = request_id
        self.amount = amount
        context = ExceptionContext(
            help_text="Requests with nothing to pay are settled through the cash path",
            error_code=ErrorCodes.INVALID_AMOUNT,
            context={"request_id": request_id, "amount": str(amount)},
        )
        super().__init__(f"Cannot create a payment order for amount {amount}", context)


class ConcurrentModificationError(InfrastructureError):
    """Raised when a versioned write keeps conflicting after bounded retries."""

    retryable = True
    http_status = HTTP_STATUS_CONFLICT

    def __init__(self, entity: str, entity_id: Optional[str], attempts: int):
        self.entity = entity
        self.entity_id = entity_id
        self.attempts = attempts
        message = ErrorMessageTemplates.CONCURRENT_MODIFICATION.format(
            entity=entity, entity_id=entity_id, attempts=attempts
        )
        context = ExceptionContext(
            help_text="Retry the operation",
            error_code=ErrorCodes.CONCURRENT_MODIFICATION,
            context={"entity": entity, "entity_id": entity_id, "attempts": attempts},
        )
        super().__init__(message, context)


class StoreUnavailableError(InfrastructureError):
    """Raised when a store cannot be reached or times out."""

    retryable = True

    def __init__(self, store: str, details: Optional[str] = None):
        self.store = store
        message = f"Store {store} unavailable"
        if details:
            message += f": {details}"
        context = ExceptionContext(
            help_text="Check the database connection settings",
            error_code=ErrorCodes.STORE_UNAVAILABLE,
            context={"store": store},
        )
        super().__init__(message, context)


class DuplicateRecordError(InfrastructureError):
    """Raised when a record with the same key already exists in a store."""

    http_status = HTTP_STATUS_CONFLICT

    def __init__(self, store: str, key: Optional[str], details: Optional[str] = None):
        self.store = store
        self.key = key
        message = f"Record {key} already exists in {store}" if key else f"Duplicate record in {store}"
        if details:
            message += f": {details}"
        context = ExceptionContext(
            error_code=ErrorCodes.DUPLICATE_RECORD,
            context={"store": store, "key": key},
        )
        super().__init__(message, context)


class VersionConflict(Exception):
    """Signals a lost compare-and-set write; retried internally, never surfaced."""

    def __init__(self, entity: str, entity_id: Optional[str]):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"Version conflict on {entity} {entity_id}")
