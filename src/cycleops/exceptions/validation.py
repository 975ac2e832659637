"""
Business-rule validation exceptions.

These are expected outcomes of customer input (a bad coupon, a rejection
without a note, an unknown catalog item). They are returned to callers as
typed results and are never logged as failures.
"""

from typing import Any, Optional

from cycleops.constants import HTTP_STATUS_BAD_REQUEST, HTTP_STATUS_NOT_FOUND
from cycleops.models.enums import CouponRejection

from .base import CycleOpsError, ExceptionContext
from .templates import ErrorCodes, ErrorMessageTemplates


class ValidationError(CycleOpsError):
    """Base class for user-facing business-rule failures."""

    http_status = HTTP_STATUS_BAD_REQUEST


class InvalidCouponError(ValidationError):
    """Raised when a coupon cannot be applied to a request.

    Attributes:
        code: Normalized coupon code
        reason: The first eligibility rule that failed
    """

    reason: CouponRejection = CouponRejection.NOT_FOUND

    def __init__(
        self,
        code: str,
        message: Optional[str] = None,
        reason: Optional[CouponRejection] = None,
        error_code: Optional[str] = None,
        **details: Any,
    ):
        self.code = code
        if reason is not None:
            self.reason = reason
        context = ExceptionContext(
            help_text="Remove the coupon or choose another one to continue",
            error_code=error_code,
            context={"coupon_code": code, "reason": self.reason.value, **details},
        )
        super().__init__(message or f"Coupon '{code}' is not valid", context)


class CouponNotFoundError(InvalidCouponError):
    """Raised when a coupon code does not exist or is inactive."""

    reason = CouponRejection.NOT_FOUND
    http_status = HTTP_STATUS_NOT_FOUND

    def __init__(self, code: str):
        super().__init__(
            code,
            ErrorMessageTemplates.COUPON_NOT_FOUND.format(code=code),
            error_code=ErrorCodes.COUPON_NOT_FOUND,
        )


class CouponExpiredError(InvalidCouponError):
    """Raised when the coupon's expiry time has passed."""

    reason = CouponRejection.EXPIRED

    def __init__(self, code: str, expires_at: Any = None):
        super().__init__(
            code,
            ErrorMessageTemplates.COUPON_EXPIRED.format(code=code, expires_at=expires_at),
            error_code=ErrorCodes.COUPON_EXPIRED,
            expires_at=str(expires_at) if expires_at is not None else None,
        )


class CouponExhaustedError(InvalidCouponError):
    """Raised when the coupon has no remaining uses."""

    reason = CouponRejection.EXHAUSTED

    def __init__(self, code: str, used: int = 0, limit: int = 0):
        super().__init__(
            code,
            ErrorMessageTemplates.COUPON_EXHAUSTED.format(code=code, used=used, limit=limit),
            error_code=ErrorCodes.COUPON_EXHAUSTED,
            used_count=used,
            usage_limit=limit,
        )


class CouponNotApplicableError(InvalidCouponError):
    """Raised when none of the request's categories are covered by the coupon."""

    reason = CouponRejection.NOT_APPLICABLE

    def __init__(self, code: str, categories: Any = None):
        super().__init__(
            code,
            ErrorMessageTemplates.COUPON_NOT_APPLICABLE.format(code=code),
            error_code=ErrorCodes.COUPON_NOT_APPLICABLE,
            categories=categories,
        )


class BelowMinimumAmountError(InvalidCouponError):
    """Raised when the eligible amount is below the coupon minimum."""

    reason = CouponRejection.BELOW_MINIMUM

    def __init__(self, code: str, minimum: Any = None, amount: Any = None):
        super().__init__(
            code,
            ErrorMessageTemplates.COUPON_BELOW_MINIMUM.format(
                code=code, minimum=minimum, amount=amount
            ),
            error_code=ErrorCodes.COUPON_BELOW_MINIMUM,
            min_amount=str(minimum),
            eligible_amount=str(amount),
        )


class CouponAlreadyRedeemedError(InvalidCouponError):
    """Raised when a one-per-customer coupon was already redeemed by the user."""

    reason = CouponRejection.ALREADY_REDEEMED

    def __init__(self, code: str, user_id: Optional[str] = None):
        super().__init__(
            code,
            ErrorMessageTemplates.COUPON_ALREADY_REDEEMED.format(code=code),
            error_code=ErrorCodes.COUPON_ALREADY_REDEEMED,
            user_id=user_id,
        )


_COUPON_ERRORS = {
    CouponRejection.NOT_FOUND: CouponNotFoundError,
    CouponRejection.EXPIRED: CouponExpiredError,
    CouponRejection.EXHAUSTED: CouponExhaustedError,
    CouponRejection.NOT_APPLICABLE: CouponNotApplicableError,
    CouponRejection.BELOW_MINIMUM: BelowMinimumAmountError,
    CouponRejection.ALREADY_REDEEMED: CouponAlreadyRedeemedError,
}


def coupon_error_for(reason: CouponRejection, code: str, **details: Any) -> InvalidCouponError:
    """Build the InvalidCouponError subclass matching a validator rejection."""
    return _COUPON_ERRORS[reason](code, **details)


class MissingRejectionReasonError(ValidationError):
    """Raised when a request is rejected without a rejection note."""

    def __init__(self, request_id: Optional[str] = None):
        context = ExceptionContext(
            help_text="Provide a note explaining why the request was rejected",
            error_code=ErrorCodes.MISSING_REJECTION_REASON,
            context={"request_id": request_id},
        )
        super().__init__(ErrorMessageTemplates.MISSING_REJECTION_REASON, context)


class InvalidSubmissionError(ValidationError):
    """Raised when a submitted request is malformed."""

    def __init__(self, reason: str, **details: Any):
        self.reason = reason
        context = ExceptionContext(
            help_text="Check the submitted items, quantities and payment method",
            error_code=ErrorCodes.REQUEST_INVALID,
            context=details,
        )
        super().__init__(f"Invalid request submission: {reason}", context)


class CatalogItemNotFoundError(ValidationError):
    """Raised when a submitted line item is not in the catalog."""

    http_status = HTTP_STATUS_NOT_FOUND

    def __init__(self, item_id: str):
        self.item_id = item_id
        context = ExceptionContext(
            help_text="Refresh the catalog and select an available item",
            error_code=ErrorCodes.CATALOG_ITEM_NOT_FOUND,
            context={"item_id": item_id},
        )
        super().__init__(f"Catalog item '{item_id}' not found", context)
