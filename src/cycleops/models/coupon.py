from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from cycleops.constants import ZERO
from cycleops.models.enums import CouponRejection, DiscountType, ItemCategory
from cycleops.utils.money import to_money
from cycleops.utils.normalization import normalize_code
from cycleops.utils.time import ensure_utc


@dataclass(frozen=True)
class CouponRedemption:
    """One request's consumption of a coupon."""

    request_id: str
    user_id: Optional[str]
    discount_amount: Decimal
    redeemed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "discount_amount": str(self.discount_amount),
            "redeemed_at": self.redeemed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CouponRedemption":
        return cls(
            request_id=data["request_id"],
            user_id=data.get("user_id"),
            discount_amount=to_money(data.get("discount_amount", "0")),
            redeemed_at=ensure_utc(datetime.fromisoformat(data["redeemed_at"])),
        )


@dataclass(frozen=True)
class Coupon:
    """A discount code with eligibility rules and a bounded number of uses.

    ``max_discount`` of zero means the discount is uncapped. ``version`` is the
    optimistic concurrency counter bumped by every successful store write.
    """

    code: str
    discount_type: DiscountType
    discount_value: Decimal
    usage_limit: int
    expires_at: datetime
    min_amount: Decimal = ZERO
    max_discount: Decimal = ZERO
    used_count: int = 0
    applicable_categories: FrozenSet[ItemCategory] = frozenset({ItemCategory.ALL})
    description: str = ""
    is_active: bool = True
    one_per_user: bool = False
    redemptions: tuple = ()
    version: int = 0

    def __post_init__(self):
        object.__setattr__(self, "code", normalize_code(self.code))
        object.__setattr__(self, "discount_type", DiscountType(self.discount_type))
        object.__setattr__(self, "discount_value", to_money(self.discount_value))
        object.__setattr__(self, "min_amount", to_money(self.min_amount))
        object.__setattr__(self, "max_discount", to_money(self.max_discount))
        object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
        object.__setattr__(
            self,
            "applicable_categories",
            frozenset(ItemCategory(c) for c in self.applicable_categories),
        )
        object.__setattr__(self, "redemptions", tuple(self.redemptions))

    @property
    def applies_to_all(self) -> bool:
        return ItemCategory.ALL in self.applicable_categories

    @property
    def remaining_uses(self) -> int:
        return max(self.usage_limit - self.used_count, 0)

    def covers(self, category: ItemCategory) -> bool:
        return self.applies_to_all or category in self.applicable_categories

    def redemption_for(self, request_id: str) -> Optional[CouponRedemption]:
        for redemption in self.redemptions:
            if redemption.request_id == request_id:
                return redemption
        return None

    def redeemed_by(self, user_id: Optional[str]) -> bool:
        if user_id is None:
            return False
        return any(r.user_id == user_id for r in self.redemptions)

    def raw_discount(self, eligible_amount: Decimal) -> Decimal:
        """Discount before capping at the eligible subtotal."""
        if self.discount_type is DiscountType.PERCENTAGE:
            discount = to_money(eligible_amount * self.discount_value / Decimal(100))
        else:
            discount = self.discount_value
        if self.max_discount > ZERO:
            discount = min(discount, self.max_discount)
        return discount

    def with_redemption(self, redemption: CouponRedemption) -> "Coupon":
        return replace(
            self,
            used_count=self.used_count + 1,
            redemptions=self.redemptions + (redemption,),
        )


@dataclass(frozen=True)
class CouponValidation:
    """Outcome of a coupon eligibility check.

    ``details`` carries the values behind a rejection (limit, minimum, expiry)
    so callers can build a descriptive error.
    """

    valid: bool
    discount_amount: Decimal = ZERO
    reason: Optional[CouponRejection] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def accepted(cls, discount_amount: Decimal) -> "CouponValidation":
        return cls(valid=True, discount_amount=discount_amount)

    @classmethod
    def rejected(cls, reason: CouponRejection, **details: Any) -> "CouponValidation":
        return cls(valid=False, reason=reason, details=details)


def categories_of(values: Iterable[Any]) -> List[str]:
    return sorted(ItemCategory(v).value for v in values)
