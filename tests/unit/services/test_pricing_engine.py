"""
Unit tests for request pricing.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from cycleops.exceptions import (
    BelowMinimumAmountError,
    CouponExpiredError,
    CouponNotApplicableError,
    CouponNotFoundError,
    InvalidCouponError,
    InvalidSubmissionError,
)
from cycleops.models import CouponRejection, ItemCategory, LineItem, RequestKind
from cycleops.services import CouponValidator, PricingEngine

from tests.helpers import NOW


def _line(item_id, price, quantity, category):
    return LineItem(item_id, item_id, Decimal(price), quantity, category)


REPAIR_LINES = [_line("brake-tune", "150", 1, ItemCategory.REPAIR_SERVICES)]
RENTAL_LINES = [_line("city-bike", "300", 3, ItemCategory.RENTAL_BICYCLES)]


@pytest.fixture
def engine(coupon_store, clock):
    return PricingEngine(coupon_store, CouponValidator(coupon_store, clock=clock))


@pytest.mark.unit
class TestTotals:
    def test_no_coupon(self, engine):
        quote = engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("200"))

        assert quote.gross_amount == Decimal("350.00")
        assert quote.discount_amount == Decimal("0.00")
        assert quote.net_amount == Decimal("350.00")
        assert quote.applied_coupon is None

    def test_blank_coupon_is_no_coupon(self, engine):
        quote = engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("200"), coupon_code="  ")
        assert quote.applied_coupon is None

    def test_present_categories_include_positive_surcharge(self, engine):
        with_surcharge = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"))
        without = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("0"))

        assert with_surcharge.present_categories == {ItemCategory.RENTAL_BICYCLES, ItemCategory.DELIVERY_CHARGES}
        assert without.present_categories == {ItemCategory.RENTAL_BICYCLES}

    def test_negative_surcharge_rejected(self, engine):
        with pytest.raises(InvalidSubmissionError):
            engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("-1"))


@pytest.mark.unit
class TestCouponScenarios:
    def test_repair_below_minimum(self, engine):
        with pytest.raises(BelowMinimumAmountError) as exc_info:
            engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("200"), coupon_code="WELCOME10")

        assert exc_info.value.reason is CouponRejection.BELOW_MINIMUM
        assert exc_info.value.context["eligible_amount"] == "350.00"
        # the request is then priced unmodified
        assert engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("200")).net_amount == Decimal("350.00")

    def test_rental_category_restricted_fixed_coupon(self, engine):
        quote = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="first50")

        assert quote.gross_amount == Decimal("1000.00")
        assert quote.eligible_amount == Decimal("900.00")
        assert quote.discount_amount == Decimal("50.00")
        assert quote.net_amount == Decimal("950.00")
        assert quote.applied_coupon == "FIRST50"

    def test_restricted_coupon_without_matching_category(self, engine):
        with pytest.raises(CouponNotApplicableError):
            engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("200"), coupon_code="FIRST50")

    def test_percentage_discount_on_eligible_subtotal_only(self, coupon_store, engine, make_coupon):
        coupon_store.add(make_coupon("BIKES20", discount_value=Decimal("20"),
                                     applicable_categories={ItemCategory.RENTAL_BICYCLES}))

        quote = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="BIKES20")

        assert quote.discount_amount == Decimal("180.00")
        assert quote.net_amount == Decimal("820.00")

    def test_surcharge_only_coupon(self, coupon_store, engine, make_coupon):
        coupon_store.add(make_coupon("FREEDELIVERY", discount_type="fixed", discount_value=Decimal("500"),
                                     applicable_categories={ItemCategory.DELIVERY_CHARGES}))

        quote = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="FREEDELIVERY")

        # capped at the delivery charge it discounts
        assert quote.discount_amount == Decimal("100.00")
        assert quote.net_amount == Decimal("900.00")

    def test_max_discount_cap(self, engine):
        quote = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="BIGSAVE")
        assert quote.discount_amount == Decimal("100.00")

    def test_fixed_discount_larger_than_gross(self, coupon_store, engine, make_coupon):
        coupon_store.add(make_coupon("HUGE", discount_type="fixed", discount_value=Decimal("5000")))

        quote = engine.compute_totals(RequestKind.REPAIR, REPAIR_LINES, Decimal("200"), coupon_code="HUGE")

        assert quote.discount_amount == Decimal("350.00")
        assert quote.net_amount == Decimal("0.00")

    def test_unknown_and_inactive_coupons_are_not_found(self, coupon_store, engine, make_coupon):
        coupon_store.add(make_coupon("DISABLED", is_active=False))

        for code in ("NOPE", "DISABLED"):
            with pytest.raises(CouponNotFoundError):
                engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code=code)

    def test_expired_coupon(self, coupon_store, engine, make_coupon):
        coupon_store.add(make_coupon("OLD", expires_at=NOW - timedelta(seconds=1)))
        with pytest.raises(CouponExpiredError):
            engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="OLD")


@pytest.mark.unit
class TestPricingProperties:
    @pytest.mark.parametrize("coupon_code", [None, "WELCOME10", "FIRST50", "BIGSAVE", "ONCE"])
    @pytest.mark.parametrize(
        "kind,lines,surcharge",
        [
            (RequestKind.RENTAL, RENTAL_LINES, "100"),
            (RequestKind.RENTAL, [_line("mtb", "499.99", 7, ItemCategory.RENTAL_BICYCLES)], "0"),
            (RequestKind.REPAIR, [_line("chain-fix", "250", 2, ItemCategory.REPAIR_SERVICES)], "200"),
            (RequestKind.REPAIR, [_line("brake-tune", "0.01", 1, ItemCategory.REPAIR_SERVICES)], "0"),
        ],
    )
    def test_gross_equals_net_plus_discount(self, engine, kind, lines, surcharge, coupon_code):
        try:
            quote = engine.compute_totals(kind, lines, Decimal(surcharge), coupon_code=coupon_code)
        except InvalidCouponError:
            return
        assert quote.gross_amount == quote.net_amount + quote.discount_amount
        assert quote.net_amount >= Decimal("0")
        assert quote.discount_amount <= quote.eligible_amount

    def test_quoting_is_idempotent(self, engine, coupon_store):
        first = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="FIRST50")
        second = engine.compute_totals(RequestKind.RENTAL, RENTAL_LINES, Decimal("100"), coupon_code="FIRST50")

        assert first == second
        assert coupon_store.get_by_code("FIRST50").used_count == 0
