"""
Unit tests for coupon and payment models.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from cycleops.models import (
    CouponRedemption,
    DiscountType,
    ItemCategory,
    PaymentPayload,
    PaymentStatus,
    PaymentTransaction,
    RequestKind,
)
from cycleops.models.coupon import categories_of

from tests.helpers import NOW


@pytest.mark.unit
class TestCoupon:
    def test_code_is_normalized(self, make_coupon):
        coupon = make_coupon(" welcome10 ")
        assert coupon.code == "WELCOME10"
        assert coupon.discount_type is DiscountType.PERCENTAGE

    def test_defaults_apply_to_all_categories(self, make_coupon):
        coupon = make_coupon()
        assert coupon.applies_to_all
        assert coupon.covers(ItemCategory.DELIVERY_CHARGES)

    def test_restricted_categories(self, make_coupon):
        coupon = make_coupon(applicable_categories=["rental_bicycles"])
        assert not coupon.applies_to_all
        assert coupon.covers(ItemCategory.RENTAL_BICYCLES)
        assert not coupon.covers(ItemCategory.DELIVERY_CHARGES)

    def test_percentage_discount_rounds_half_up(self, make_coupon):
        coupon = make_coupon(discount_value=Decimal("12.5"))
        assert coupon.raw_discount(Decimal("10.10")) == Decimal("1.26")

    def test_max_discount_caps_percentage(self, make_coupon):
        coupon = make_coupon(discount_value=Decimal("50"), max_discount=Decimal("100"))
        assert coupon.raw_discount(Decimal("1000")) == Decimal("100.00")
        assert coupon.raw_discount(Decimal("150")) == Decimal("75.00")

    def test_zero_max_discount_is_uncapped(self, make_coupon):
        coupon = make_coupon(discount_type="fixed", discount_value=Decimal("500"))
        assert coupon.raw_discount(Decimal("100")) == Decimal("500.00")

    def test_with_redemption_counts_use(self, make_coupon):
        coupon = make_coupon(usage_limit=2)
        redemption = CouponRedemption("req-1", "user-1", Decimal("10"), NOW)

        used = coupon.with_redemption(redemption)

        assert used.used_count == 1
        assert used.remaining_uses == 1
        assert used.redemption_for("req-1") is redemption
        assert used.redeemed_by("user-1")
        assert not used.redeemed_by(None)
        assert coupon.used_count == 0

    def test_categories_of_sorts_values(self):
        assert categories_of({ItemCategory.MECHANIC_CHARGE, "repair_services"}) == [
            "mechanic_charge",
            "repair_services",
        ]


@pytest.mark.unit
class TestPaymentPayload:
    def test_accepts_gateway_prefixed_keys(self):
        payload = PaymentPayload.from_mapping(
            {"razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": "abc"}
        )
        assert payload == PaymentPayload("order_1", "pay_1", "abc")

    def test_accepts_plain_keys(self):
        payload = PaymentPayload.from_mapping({"order_id": " order_1 ", "payment_id": "pay_1", "signature": "abc"})
        assert payload.order_id == "order_1"

    @pytest.mark.parametrize(
        "data",
        [
            {"order_id": "order_1", "payment_id": "pay_1"},
            {"order_id": "order_1", "payment_id": "  ", "signature": "abc"},
            {"order_id": 12, "payment_id": "pay_1", "signature": "abc"},
            "order_1|pay_1",
            None,
        ],
    )
    def test_malformed_payload_is_none(self, data):
        assert PaymentPayload.from_mapping(data) is None


@pytest.mark.unit
class TestPaymentTransaction:
    def _transaction(self):
        return PaymentTransaction(
            id="t-1",
            request_id="req-1",
            request_kind="rental",
            user_id="user-1",
            gateway_order_id="order_1",
            amount="950",
            amount_minor=95000,
            currency="INR",
            created_at=NOW,
        )

    def test_defaults_to_pending(self):
        transaction = self._transaction()
        assert transaction.status is PaymentStatus.PENDING
        assert transaction.request_kind is RequestKind.RENTAL
        assert transaction.amount == Decimal("950.00")

    def test_mark_completed_and_failed(self):
        later = NOW + timedelta(minutes=2)
        completed = self._transaction().mark_completed("pay_1", later)
        failed = self._transaction().mark_failed("signature mismatch", later, payment_id="pay_2")

        assert completed.is_completed
        assert completed.payment_id == "pay_1"
        assert completed.updated_at == later
        assert failed.status is PaymentStatus.FAILED
        assert failed.failure_reason == "signature mismatch"
        assert failed.to_dict()["payment_id"] == "pay_2"
