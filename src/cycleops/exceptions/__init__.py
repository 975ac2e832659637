"""
CycleOps Exception Hierarchy

All exceptions carry an actionable message, an error code, a correlation id
and an ``http_status`` the surrounding application can answer with.

Exception Hierarchy:
    CycleOpsError (base)
    ├── ConfigurationError
    │   ├── InvalidConfigurationError
    │   ├── MissingConfigurationError
    │   └── ConfigurationValidationError
    ├── ValidationError
    │   ├── InvalidCouponError
    │   │   ├── CouponNotFoundError
    │   │   ├── CouponExpiredError
    │   │   ├── CouponExhaustedError
    │   │   ├── CouponNotApplicableError
    │   │   ├── BelowMinimumAmountError
    │   │   └── CouponAlreadyRedeemedError
    │   ├── MissingRejectionReasonError
    │   ├── InvalidSubmissionError
    │   └── CatalogItemNotFoundError
    ├── StateError
    │   ├── IllegalTransitionError
    │   ├── NotYetExpirableError
    │   ├── PaymentAlreadyCompletedError
    │   └── RequestNotFoundError
    └── InfrastructureError
        ├── GatewayUnavailableError
        ├── GatewayRejectedError
        ├── InvalidAmountError
        ├── ConcurrentModificationError
        ├── DuplicateRecordError
        └── StoreUnavailableError

Validation errors are expected business outcomes, state errors are caller
misuse or lost races, infrastructure errors are failures of collaborators.
"""

from .base import CycleOpsError, ExceptionContext

# Configuration exceptions
from .config import (
    ConfigurationError,
    ConfigurationValidationError,
    InvalidConfigurationError,
    MissingConfigurationError,
)

# Infrastructure exceptions
from .infrastructure import (
    ConcurrentModificationError,
    DuplicateRecordError,
    GatewayRejectedError,
    GatewayUnavailableError,
    InfrastructureError,
    InvalidAmountError,
    StoreUnavailableError,
    VersionConflict,
)

# Lifecycle exceptions
from .lifecycle import (
    IllegalTransitionError,
    NotYetExpirableError,
    PaymentAlreadyCompletedError,
    RequestNotFoundError,
    StateError,
)
from .templates import ErrorCodes, ErrorMessageTemplates

# Validation exceptions
from .validation import (
    BelowMinimumAmountError,
    CatalogItemNotFoundError,
    CouponAlreadyRedeemedError,
    CouponExhaustedError,
    CouponExpiredError,
    CouponNotApplicableError,
    CouponNotFoundError,
    InvalidCouponError,
    InvalidSubmissionError,
    MissingRejectionReasonError,
    ValidationError,
    coupon_error_for,
)

__all__ = [
    # Base
    "CycleOpsError",
    "ExceptionContext",
    "ErrorCodes",
    "ErrorMessageTemplates",
    # Configuration
    "ConfigurationError",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "ConfigurationValidationError",
    # Validation
    "ValidationError",
    "InvalidCouponError",
    "CouponNotFoundError",
    "CouponExpiredError",
    "CouponExhaustedError",
    "CouponNotApplicableError",
    "BelowMinimumAmountError",
    "CouponAlreadyRedeemedError",
    "MissingRejectionReasonError",
    "InvalidSubmissionError",
    "CatalogItemNotFoundError",
    "coupon_error_for",
    # Lifecycle
    "StateError",
    "IllegalTransitionError",
    "NotYetExpirableError",
    "PaymentAlreadyCompletedError",
    "RequestNotFoundError",
    # Infrastructure
    "InfrastructureError",
    "GatewayUnavailableError",
    "GatewayRejectedError",
    "InvalidAmountError",
    "ConcurrentModificationError",
    "DuplicateRecordError",
    "StoreUnavailableError",
    "VersionConflict",
]
