"""
Coupon eligibility and consumption.

``validate`` answers whether a coupon applies and how much it takes off; it
never raises for business outcomes. ``consume`` is the only place a coupon
is mutated, and it is called once a request write has committed it;
``ensure_available`` lets the caller refuse early without writing.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from cycleops.exceptions import CouponExhaustedError, CouponNotFoundError, VersionConflict
from cycleops.infrastructure.metrics import CycleOpsMetrics, get_metrics
from cycleops.infrastructure.resilience import RetryManager, run_with_conflict_retry
from cycleops.infrastructure.storage import CouponStore
from cycleops.logging import get_logger
from cycleops.models import Coupon, CouponRedemption, CouponRejection, CouponValidation, ItemCategory
from cycleops.models.coupon import categories_of
from cycleops.utils.money import to_money
from cycleops.utils.normalization import normalize_code
from cycleops.utils.time import utc_now

logger = get_logger(__name__)


class CouponValidator:
    def __init__(
        self,
        coupon_store: CouponStore,
        clock: Callable[[], datetime] = utc_now,
        retry_manager: Optional[RetryManager] = None,
        metrics: Optional[CycleOpsMetrics] = None,
    ):
        self.coupon_store = coupon_store
        self.clock = clock
        self.retry_manager = retry_manager
        self.metrics = metrics or get_metrics()

    def validate(
        self,
        coupon: Optional[Coupon],
        eligible_amount: Decimal,
        present_categories: Iterable[ItemCategory],
        user_id: Optional[str] = None,
    ) -> CouponValidation:
        """
        Check a coupon against a request, stopping at the first failed rule.

        Rules in order: exists and active, not expired, uses left, covers a
        present category, eligible amount reaches the minimum, and for
        one-per-customer coupons not already redeemed by ``user_id``.

        Args:
            coupon: The coupon, or None when the code was not found
            eligible_amount: Part of the gross the coupon may discount
            present_categories: Categories present on the request
            user_id: Customer redeeming the coupon

        Returns:
            CouponValidation with the discount after the max_discount cap
        """
        if coupon is None or not coupon.is_active:
            return CouponValidation.rejected(CouponRejection.NOT_FOUND)

        if self.clock() >= coupon.expires_at:
            return CouponValidation.rejected(CouponRejection.EXPIRED, expires_at=coupon.expires_at)

        if coupon.used_count >= coupon.usage_limit:
            return CouponValidation.rejected(
                CouponRejection.EXHAUSTED, used=coupon.used_count, limit=coupon.usage_limit
            )

        present = {ItemCategory(c) for c in present_categories}
        if not coupon.applies_to_all and not (coupon.applicable_categories & present):
            return CouponValidation.rejected(
                CouponRejection.NOT_APPLICABLE, categories=categories_of(present)
            )

        eligible_amount = to_money(eligible_amount)
        if eligible_amount < coupon.min_amount:
            return CouponValidation.rejected(
                CouponRejection.BELOW_MINIMUM, minimum=coupon.min_amount, amount=eligible_amount
            )

        if coupon.one_per_user and coupon.redeemed_by(user_id):
            return CouponValidation.rejected(CouponRejection.ALREADY_REDEEMED, user_id=user_id)

        return CouponValidation.accepted(coupon.raw_discount(eligible_amount))

    def consume(
        self,
        code: str,
        request_id: str,
        user_id: Optional[str],
        discount_amount: Decimal,
    ) -> Coupon:
        """
        Count one use of a coupon for a committed request.

        Re-running for the same request returns the coupon unchanged, so a
        retried commitment never counts twice. The limit is re-checked on the
        freshly read coupon and the write is a version-checked CAS.

        Raises:
            CouponNotFoundError: The coupon no longer exists
            CouponExhaustedError: Another request took the last use
            ConcurrentModificationError: Writes kept conflicting
        """
        code = normalize_code(code)

        def attempt() -> Coupon:
            coupon = self._usable_coupon(code, request_id)
            if coupon.redemption_for(request_id) is not None:
                logger.debug("Coupon already consumed for request", coupon_code=code, request_id=request_id)
                return coupon

            redemption = CouponRedemption(
                request_id=request_id,
                user_id=user_id,
                discount_amount=to_money(discount_amount),
                redeemed_at=self.clock(),
            )
            updated = coupon.with_redemption(redemption)
            if not self.coupon_store.save_with_version_check(updated, coupon.version):
                raise VersionConflict("coupon", code)

            self.metrics.record_coupon_consumption("consumed")
            logger.info(
                f"Coupon {code} consumed ({updated.used_count}/{updated.usage_limit})",
                coupon_code=code,
                request_id=request_id,
            )
            return replace(updated, version=coupon.version + 1)

        return run_with_conflict_retry(attempt, "coupon", code, self.retry_manager)

    def ensure_available(self, code: str, request_id: str) -> Coupon:
        """
        Check, without writing, that ``consume`` would count a use for ``request_id``.

        Raises:
            CouponNotFoundError: The coupon no longer exists
            CouponExhaustedError: No uses left and none already held by the request
        """
        return self._usable_coupon(normalize_code(code), request_id)

    def _usable_coupon(self, code: str, request_id: str) -> Coupon:
        coupon = self.coupon_store.get_by_code(code)
        if coupon is None:
            raise CouponNotFoundError(code)
        if coupon.redemption_for(request_id) is None and coupon.used_count >= coupon.usage_limit:
            self.metrics.record_coupon_consumption("exhausted")
            raise CouponExhaustedError(code, used=coupon.used_count, limit=coupon.usage_limit)
        return coupon

    def available_coupons(self, user_id: Optional[str] = None) -> List[Coupon]:
        """Active, unexpired coupons with uses left that ``user_id`` may still redeem."""
        now = self.clock()
        return [
            coupon
            for coupon in self.coupon_store.list_all()
            if coupon.is_active
            and now < coupon.expires_at
            and coupon.used_count < coupon.usage_limit
            and not (coupon.one_per_user and coupon.redeemed_by(user_id))
        ]
