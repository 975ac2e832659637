from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional

from cycleops.constants import ZERO
from cycleops.models.enums import ItemCategory


@dataclass(frozen=True)
class PriceQuote:
    """Totals for a set of line items plus a surcharge, with at most one coupon.

    ``eligible_amount`` is the part of the gross the coupon could discount;
    it equals the gross when no coupon is applied.
    """

    gross_amount: Decimal
    discount_amount: Decimal
    net_amount: Decimal
    applied_coupon: Optional[str] = None
    eligible_amount: Decimal = ZERO
    present_categories: FrozenSet[ItemCategory] = frozenset()

    def __post_init__(self):
        if self.gross_amount != self.net_amount + self.discount_amount:
            raise ValueError(
                f"Inconsistent quote: gross {self.gross_amount} != net {self.net_amount} + discount {self.discount_amount}"
            )
        if self.net_amount < ZERO or self.discount_amount < ZERO:
            raise ValueError("Quote amounts must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gross_amount": str(self.gross_amount),
            "discount_amount": str(self.discount_amount),
            "net_amount": str(self.net_amount),
            "applied_coupon": self.applied_coupon,
            "eligible_amount": str(self.eligible_amount),
            "present_categories": sorted(c.value for c in self.present_categories),
        }
