"""
Service request models.

Repair and rental requests share one shape and differ only in their surcharge
field and in the work states they pass through. Each kind carries its own
closed status enumeration, so a rental can never hold a repair status.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, Optional, Type

from cycleops.constants import ZERO
from cycleops.models.enums import (
    HOLDING_STATUS_VALUES,
    TERMINAL_STATUS_VALUES,
    ItemCategory,
    PaymentMethod,
    RentalStatus,
    RepairStatus,
    RequestKind,
    TransitionEvent,
)
from cycleops.models.line_item import LineItem
from cycleops.utils.money import to_money
from cycleops.utils.normalization import normalize_code
from cycleops.utils.time import ensure_utc


@dataclass(frozen=True)
class StatusChange:
    from_status: Optional[str]
    to_status: str
    event: TransitionEvent
    at: datetime
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_status": self.from_status,
            "to_status": self.to_status,
            "event": self.event.value,
            "at": self.at.isoformat(),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusChange":
        return cls(
            from_status=data.get("from_status"),
            to_status=data["to_status"],
            event=TransitionEvent(data["event"]),
            at=ensure_utc(datetime.fromisoformat(data["at"])),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class ServiceRequest(ABC):
    id: str
    user_id: str
    line_items: tuple = ()
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    coupon_code: Optional[str] = None
    gross_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    net_amount: Decimal = ZERO
    status: Any = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    rejection_note: Optional[str] = None
    payment_reference: Optional[str] = None
    history: tuple = ()
    version: int = 0

    kind: ClassVar[RequestKind]
    Status: ClassVar[Type[Any]]
    ITEM_CATEGORY: ClassVar[ItemCategory]
    SURCHARGE_CATEGORY: ClassVar[ItemCategory]
    WORK_STATE: ClassVar[Any]
    ACTIVE_STATE: ClassVar[Any]

    def __post_init__(self):
        object.__setattr__(self, "status", self.Status(self.status or "pending"))
        object.__setattr__(self, "payment_method", PaymentMethod(self.payment_method))
        object.__setattr__(self, "coupon_code", normalize_code(self.coupon_code) or None)
        object.__setattr__(self, "line_items", tuple(self.line_items))
        object.__setattr__(self, "history", tuple(self.history))
        for name in ("gross_amount", "discount_amount", "net_amount"):
            object.__setattr__(self, name, to_money(getattr(self, name)))
        for name in ("created_at", "updated_at", "expires_at"):
            object.__setattr__(self, name, ensure_utc(getattr(self, name)))

        if self.discount_amount < ZERO or self.net_amount < ZERO:
            raise ValueError(f"Request {self.id} has negative amounts")
        if self.net_amount != self.gross_amount - self.discount_amount:
            raise ValueError(
                f"Request {self.id}: net {self.net_amount} != gross {self.gross_amount} - discount {self.discount_amount}"
            )
        if self.status.value == "rejected" and not (self.rejection_note or "").strip():
            raise ValueError(f"Request {self.id} is rejected without a rejection note")

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}[{self.status.value}]"

    @property
    @abstractmethod
    def surcharge(self) -> Decimal:
        pass

    @property
    def is_holding(self) -> bool:
        """True while expires_at still drives a transition."""
        return self.status.value in HOLDING_STATUS_VALUES

    @property
    def is_terminal(self) -> bool:
        return self.status.value in TERMINAL_STATUS_VALUES

    @property
    def requires_online_payment(self) -> bool:
        return self.payment_method is PaymentMethod.ONLINE and self.net_amount > ZERO

    def is_expirable_at(self, now: datetime) -> bool:
        return self.is_holding and self.expires_at is not None and now >= self.expires_at

    def evolve(self, **changes: Any) -> "ServiceRequest":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "user_id": self.user_id,
            "line_items": [item.to_dict() for item in self.line_items],
            "surcharge": str(self.surcharge),
            "payment_method": self.payment_method.value,
            "coupon_code": self.coupon_code,
            "gross_amount": str(self.gross_amount),
            "discount_amount": str(self.discount_amount),
            "net_amount": str(self.net_amount),
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "expires_at": _iso(self.expires_at),
            "rejection_note": self.rejection_note,
            "payment_reference": self.payment_reference,
            "history": [change.to_dict() for change in self.history],
            "version": self.version,
        }


@dataclass(frozen=True)
class RepairRequest(ServiceRequest):
    mechanic_charge: Decimal = ZERO

    kind: ClassVar[RequestKind] = RequestKind.REPAIR
    Status: ClassVar[Type[Any]] = RepairStatus
    ITEM_CATEGORY: ClassVar[ItemCategory] = ItemCategory.REPAIR_SERVICES
    SURCHARGE_CATEGORY: ClassVar[ItemCategory] = ItemCategory.MECHANIC_CHARGE
    WORK_STATE: ClassVar[Any] = RepairStatus.ACTIVE
    ACTIVE_STATE: ClassVar[Any] = RepairStatus.ACTIVE

    def __post_init__(self):
        object.__setattr__(self, "mechanic_charge", to_money(self.mechanic_charge))
        super().__post_init__()

    @property
    def surcharge(self) -> Decimal:
        return self.mechanic_charge


@dataclass(frozen=True)
class RentalRequest(ServiceRequest):
    delivery_charge: Decimal = ZERO

    kind: ClassVar[RequestKind] = RequestKind.RENTAL
    Status: ClassVar[Type[Any]] = RentalStatus
    ITEM_CATEGORY: ClassVar[ItemCategory] = ItemCategory.RENTAL_BICYCLES
    SURCHARGE_CATEGORY: ClassVar[ItemCategory] = ItemCategory.DELIVERY_CHARGES
    WORK_STATE: ClassVar[Any] = RentalStatus.ARRANGING_DELIVERY
    ACTIVE_STATE: ClassVar[Any] = RentalStatus.ACTIVE_RENTAL

    def __post_init__(self):
        object.__setattr__(self, "delivery_charge", to_money(self.delivery_charge))
        super().__post_init__()

    @property
    def surcharge(self) -> Decimal:
        return self.delivery_charge


REQUEST_TYPES: Dict[RequestKind, Type[ServiceRequest]] = {
    RequestKind.REPAIR: RepairRequest,
    RequestKind.RENTAL: RentalRequest,
}

_SURCHARGE_FIELDS = {
    RequestKind.REPAIR: "mechanic_charge",
    RequestKind.RENTAL: "delivery_charge",
}


def request_type_for(kind: Any) -> Type[ServiceRequest]:
    return REQUEST_TYPES[RequestKind(kind)]


def build_request(kind: Any, surcharge: Decimal = ZERO, **fields: Any) -> ServiceRequest:
    """Instantiate the request variant for ``kind`` with its surcharge field set."""
    kind = RequestKind(kind)
    fields[_SURCHARGE_FIELDS[kind]] = surcharge
    return REQUEST_TYPES[kind](**fields)


def request_from_dict(data: Dict[str, Any]) -> ServiceRequest:
    return build_request(
        data["kind"],
        surcharge=Decimal(str(data.get("surcharge", "0"))),
        id=data["id"],
        user_id=data["user_id"],
        line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
        payment_method=data.get("payment_method", PaymentMethod.ONLINE.value),
        coupon_code=data.get("coupon_code"),
        gross_amount=Decimal(str(data.get("gross_amount", "0"))),
        discount_amount=Decimal(str(data.get("discount_amount", "0"))),
        net_amount=Decimal(str(data.get("net_amount", "0"))),
        status=data.get("status"),
        created_at=_parse(data.get("created_at")),
        updated_at=_parse(data.get("updated_at")),
        expires_at=_parse(data.get("expires_at")),
        rejection_note=data.get("rejection_note"),
        payment_reference=data.get("payment_reference"),
        history=[StatusChange.from_dict(change) for change in data.get("history", [])],
        version=data.get("version", 0),
    )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return ensure_utc(datetime.fromisoformat(value)) if value else None
