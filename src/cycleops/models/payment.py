from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from cycleops.models.enums import PaymentStatus, RequestKind
from cycleops.utils.money import to_money
from cycleops.utils.time import ensure_utc


@dataclass(frozen=True)
class GatewayOrder:
    gateway_order_id: str
    amount: Decimal
    currency: str
    amount_minor: int
    transaction_id: Optional[str] = None


@dataclass(frozen=True)
class PaymentPayload:
    """What the client hands back after paying at the gateway."""

    order_id: str
    payment_id: str
    signature: str

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> Optional["PaymentPayload"]:
        """Parse a gateway callback; returns None when a field is missing or blank."""
        if not isinstance(data, dict):
            return None
        values = []
        for keys in (
            ("order_id", "razorpay_order_id"),
            ("payment_id", "razorpay_payment_id"),
            ("signature", "razorpay_signature"),
        ):
            value = next((data[k] for k in keys if data.get(k)), None)
            if not isinstance(value, str) or not value.strip():
                return None
            values.append(value.strip())
        return cls(*values)


@dataclass(frozen=True)
class PaymentTransaction:
    id: str
    request_id: str
    request_kind: RequestKind
    user_id: str
    gateway_order_id: str
    amount: Decimal
    amount_minor: int
    currency: str
    status: PaymentStatus = PaymentStatus.PENDING
    payment_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "request_kind", RequestKind(self.request_kind))
        object.__setattr__(self, "status", PaymentStatus(self.status))
        object.__setattr__(self, "amount", to_money(self.amount))
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        object.__setattr__(self, "updated_at", ensure_utc(self.updated_at))

    @property
    def is_completed(self) -> bool:
        return self.status is PaymentStatus.COMPLETED

    def mark_completed(self, payment_id: str, at: datetime) -> "PaymentTransaction":
        return replace(
            self,
            status=PaymentStatus.COMPLETED,
            payment_id=payment_id,
            failure_reason=None,
            updated_at=at,
        )

    def mark_failed(self, reason: str, at: datetime, payment_id: Optional[str] = None) -> "PaymentTransaction":
        return replace(
            self,
            status=PaymentStatus.FAILED,
            payment_id=payment_id or self.payment_id,
            failure_reason=reason,
            updated_at=at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "request_kind": self.request_kind.value,
            "user_id": self.user_id,
            "gateway_order_id": self.gateway_order_id,
            "amount": str(self.amount),
            "amount_minor": self.amount_minor,
            "currency": self.currency,
            "status": self.status.value,
            "payment_id": self.payment_id,
            "failure_reason": self.failure_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class PaymentVerification:
    """Result of confirming a payment: a failed signature check is not an error."""

    verified: bool
    request: Any
    transaction: Optional[PaymentTransaction] = None
