"""
CycleOps: Bicycle repair and rental request lifecycle engine

A Python library that coordinates repair and rental service requests from
submission through payment, fulfilment and closure, applying promotional
coupons and expiring requests that are left unattended.

Architecture Overview:
- Models: Domain models for requests, coupons, catalog items and payments
- Services: Pricing, coupon validation, state machine, sweeper, payments
- Infrastructure: Stores, payment gateway, resilience and metrics
- CLI: Command-line interface for running the expiry sweeper
- Core/Shared: Configuration, correlation, logging and exceptions
"""

__version__ = "0.3.0"

from .exceptions import CycleOpsError
from .models import (
    Coupon,
    ItemCategory,
    LineItem,
    PaymentMethod,
    RentalRequest,
    RentalStatus,
    RepairRequest,
    RepairStatus,
    RequestKind,
    ServiceRequest,
)
from .services import (
    CouponValidator,
    ExpirySweeper,
    PaymentReconciler,
    PricingEngine,
    RequestService,
    RequestStateMachine,
)
from .core.config import CycleOpsConfig

__all__ = [
    "Coupon",
    "ItemCategory",
    "LineItem",
    "PaymentMethod",
    "RentalRequest",
    "RentalStatus",
    "RepairRequest",
    "RepairStatus",
    "RequestKind",
    "ServiceRequest",
    "CouponValidator",
    "ExpirySweeper",
    "PaymentReconciler",
    "PricingEngine",
    "RequestService",
    "RequestStateMachine",
    "CycleOpsError",
    "CycleOpsConfig",
]
