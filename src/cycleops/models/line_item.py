from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from cycleops.models.enums import ItemCategory
from cycleops.utils.money import to_money


@dataclass(frozen=True)
class CatalogItem:
    """A priced service or bicycle offered by the catalog."""

    id: str
    category: ItemCategory
    unit_price: Decimal
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "category", ItemCategory(self.category))
        object.__setattr__(self, "unit_price", to_money(self.unit_price))


@dataclass(frozen=True)
class LineItem:
    item_id: str
    description: str
    unit_price: Decimal
    quantity: int
    category: ItemCategory

    def __post_init__(self):
        object.__setattr__(self, "category", ItemCategory(self.category))
        object.__setattr__(self, "unit_price", to_money(self.unit_price))
        object.__setattr__(self, "quantity", int(self.quantity))

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    @classmethod
    def from_catalog(cls, item: CatalogItem, quantity: int) -> "LineItem":
        return cls(
            item_id=item.id,
            description=item.description,
            unit_price=item.unit_price,
            quantity=quantity,
            category=item.category,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "description": self.description,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        return cls(
            item_id=data["item_id"],
            description=data.get("description", ""),
            unit_price=Decimal(str(data["unit_price"])),
            quantity=data["quantity"],
            category=data["category"],
        )
