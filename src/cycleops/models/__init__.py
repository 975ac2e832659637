from .coupon import Coupon, CouponRedemption, CouponValidation
from .enums import (
    CouponRejection,
    DiscountType,
    ItemCategory,
    PaymentMethod,
    PaymentStatus,
    RentalStatus,
    RepairStatus,
    RequestKind,
    TransitionEvent,
)
from .line_item import CatalogItem, LineItem
from .payment import GatewayOrder, PaymentPayload, PaymentTransaction, PaymentVerification
from .pricing import PriceQuote
from .request import (
    RentalRequest,
    RepairRequest,
    ServiceRequest,
    StatusChange,
    build_request,
    request_from_dict,
    request_type_for,
)
from .result import Err, Ok, Result

__all__ = [
    "CatalogItem",
    "Coupon",
    "CouponRedemption",
    "CouponRejection",
    "CouponValidation",
    "DiscountType",
    "Err",
    "GatewayOrder",
    "ItemCategory",
    "LineItem",
    "Ok",
    "PaymentMethod",
    "PaymentPayload",
    "PaymentStatus",
    "PaymentTransaction",
    "PaymentVerification",
    "PriceQuote",
    "RentalRequest",
    "RentalStatus",
    "RepairRequest",
    "RepairStatus",
    "RequestKind",
    "Result",
    "ServiceRequest",
    "StatusChange",
    "TransitionEvent",
    "build_request",
    "request_from_dict",
    "request_type_for",
]
