"""
Request pricing.

Computes gross, discount and net amounts for a set of line items plus the
kind's surcharge, applying at most one coupon. Quoting has no side effects:
a coupon is only consumed when the request is committed.
"""

from decimal import Decimal
from typing import FrozenSet, Optional, Sequence

from cycleops.constants import ZERO
from cycleops.exceptions import InvalidSubmissionError, coupon_error_for
from cycleops.infrastructure.storage import CouponStore
from cycleops.logging import get_logger
from cycleops.models import Coupon, ItemCategory, LineItem, PriceQuote, RequestKind, request_type_for
from cycleops.utils.money import clamp_non_negative, to_money
from cycleops.utils.normalization import normalize_code

from .coupon_validator import CouponValidator

logger = get_logger(__name__)


class PricingEngine:
    def __init__(self, coupon_store: CouponStore, validator: CouponValidator):
        self.coupon_store = coupon_store
        self.validator = validator

    def compute_totals(
        self,
        kind: RequestKind,
        line_items: Sequence[LineItem],
        surcharge: Decimal,
        coupon_code: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PriceQuote:
        """
        Price a request.

        Args:
            kind: Request kind, which decides the surcharge category
            line_items: Catalog lines with unit price and quantity
            surcharge: Mechanic charge (repair) or delivery charge (rental)
            coupon_code: Optional coupon, matched case-insensitively
            user_id: Customer, for one-per-customer coupons

        Returns:
            PriceQuote where gross == net + discount and net >= 0

        Raises:
            InvalidCouponError: Subclass naming the first rule the coupon failed
            InvalidSubmissionError: The catalog surcharge is negative
        """
        surcharge_category = request_type_for(kind).SURCHARGE_CATEGORY
        surcharge = to_money(surcharge)
        if surcharge < ZERO:
            raise InvalidSubmissionError("surcharge must not be negative", surcharge=str(surcharge))

        gross = to_money(sum((item.subtotal for item in line_items), ZERO) + surcharge)
        present = self._present_categories(line_items, surcharge, surcharge_category)

        code = normalize_code(coupon_code)
        if not code:
            return PriceQuote(
                gross_amount=gross,
                discount_amount=ZERO,
                net_amount=gross,
                eligible_amount=gross,
                present_categories=present,
            )

        coupon = self.coupon_store.get_by_code(code)
        eligible = self._eligible_amount(coupon, gross, line_items, surcharge, surcharge_category)
        result = self.validator.validate(coupon, eligible, present, user_id=user_id)
        if not result.valid:
            logger.debug(
                f"Coupon {code} rejected: {result.reason.value}",
                coupon_code=code,
                reason=result.reason.value,
            )
            raise coupon_error_for(result.reason, code, **result.details)

        discount = min(result.discount_amount, eligible)
        net = clamp_non_negative(gross - discount)
        return PriceQuote(
            gross_amount=gross,
            discount_amount=gross - net,
            net_amount=net,
            applied_coupon=code,
            eligible_amount=eligible,
            present_categories=present,
        )

    @staticmethod
    def _present_categories(
        line_items: Sequence[LineItem], surcharge: Decimal, surcharge_category: ItemCategory
    ) -> FrozenSet[ItemCategory]:
        categories = {item.category for item in line_items}
        if surcharge > ZERO:
            categories.add(surcharge_category)
        return frozenset(categories)

    @staticmethod
    def _eligible_amount(
        coupon: Optional[Coupon],
        gross: Decimal,
        line_items: Sequence[LineItem],
        surcharge: Decimal,
        surcharge_category: ItemCategory,
    ) -> Decimal:
        if coupon is None or coupon.applies_to_all:
            return gross
        eligible = sum((item.subtotal for item in line_items if coupon.covers(item.category)), ZERO)
        if coupon.covers(surcharge_category):
            eligible += surcharge
        return to_money(eligible)
