"""
Standardized error message templates and error codes.

Keeps the wording of user-facing errors consistent across the validation,
state and infrastructure exception families.
"""


class ErrorMessageTemplates:
    """Standardized error message templates for consistent formatting."""

    # Coupon templates
    COUPON_NOT_FOUND = "Coupon '{code}' not found or inactive"
    COUPON_EXPIRED = "Coupon '{code}' expired on {expires_at}"
    COUPON_EXHAUSTED = "Coupon '{code}' usage limit reached ({used}/{limit})"
    COUPON_NOT_APPLICABLE = "Coupon '{code}' is not applicable to the selected items"
    COUPON_BELOW_MINIMUM = "Minimum amount for coupon '{code}' is {minimum} (eligible amount {amount})"
    COUPON_ALREADY_REDEEMED = "Coupon '{code}' has already been used by this customer"

    # Lifecycle templates
    ILLEGAL_TRANSITION = "Cannot {event} a {kind} request in status '{status}'"
    NOT_YET_EXPIRABLE = "Request {request_id} holds until {expires_at}"
    MISSING_REJECTION_REASON = "A rejection note is required when rejecting a request"

    # Infrastructure templates
    GATEWAY_UNAVAILABLE = "Payment gateway {gateway} unavailable: {details}"
    GATEWAY_REJECTED = "Payment gateway {gateway} rejected the request: {details}"
    CONCURRENT_MODIFICATION = "{entity} {entity_id} was modified concurrently ({attempts} attempts)"


class ErrorCodes:
    """Standardized error codes for consistent error categorization."""

    # Configuration errors (CONFIG_xxx)
    CONFIG_MISSING = "CONFIG_001"
    CONFIG_INVALID = "CONFIG_002"
    CONFIG_VALIDATION_ERROR = "CONFIG_003"

    # Coupon validation errors (COUPON_xxx)
    COUPON_NOT_FOUND = "COUPON_001"
    COUPON_EXPIRED = "COUPON_002"
    COUPON_EXHAUSTED = "COUPON_003"
    COUPON_NOT_APPLICABLE = "COUPON_004"
    COUPON_BELOW_MINIMUM = "COUPON_005"
    COUPON_ALREADY_REDEEMED = "COUPON_006"

    # Submission errors (REQUEST_xxx)
    REQUEST_INVALID = "REQUEST_001"
    REQUEST_NOT_FOUND = "REQUEST_002"
    CATALOG_ITEM_NOT_FOUND = "REQUEST_003"
    MISSING_REJECTION_REASON = "REQUEST_004"

    # Lifecycle errors (STATE_xxx)
    ILLEGAL_TRANSITION = "STATE_001"
    NOT_YET_EXPIRABLE = "STATE_002"
    PAYMENT_ALREADY_COMPLETED = "STATE_003"

    # Infrastructure errors (INFRA_xxx)
    GATEWAY_UNAVAILABLE = "INFRA_001"
    GATEWAY_REJECTED = "INFRA_002"
    INVALID_AMOUNT = "INFRA_003"
    CONCURRENT_MODIFICATION = "INFRA_004"
    STORE_UNAVAILABLE = "INFRA_005"
    DUPLICATE_RECORD = "INFRA_006"
