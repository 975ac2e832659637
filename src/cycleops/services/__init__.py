"""
Request lifecycle services.

- pricing_engine: Totals and coupon discounts for a set of line items
- coupon_validator: Coupon eligibility and idempotent consumption
- state_machine: Pure status transitions per request kind
- transition_executor: Version-checked persistence of transitions
- expiry_sweeper: Periodic expiry of stale holds
- payment_reconciler: Gateway orders and signature verification
- request_service: Result-returning facade used by the application
"""

from .coupon_validator import CouponValidator
from .expiry_sweeper import ExpirySweeper, SweepReport
from .payment_reconciler import PaymentReconciler
from .pricing_engine import PricingEngine
from .request_service import RequestService
from .state_machine import RequestStateMachine
from .transition_executor import TransitionExecutor

__all__ = [
    "CouponValidator",
    "ExpirySweeper",
    "PaymentReconciler",
    "PricingEngine",
    "RequestService",
    "RequestStateMachine",
    "SweepReport",
    "TransitionExecutor",
]
