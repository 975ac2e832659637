"""
Store interfaces consumed by the engine.

Requests and coupons are versioned records. ``save_with_version_check``
writes only when the stored version still equals ``expected_version`` and
stores the record with ``version = expected_version + 1``; it returns
False on conflict instead of raising.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from cycleops.models import (
    CatalogItem,
    Coupon,
    PaymentTransaction,
    RequestKind,
    ServiceRequest,
)


class CatalogStore(ABC):
    """Read-only view of the service and bicycle catalog."""

    @abstractmethod
    def get_line_item(self, item_id: str) -> CatalogItem:
        """Return the catalog item or raise CatalogItemNotFoundError."""

    @abstractmethod
    def get_surcharge_rate(self, kind: RequestKind) -> Decimal:
        """Mechanic charge for repairs, delivery charge for rentals."""


class CouponStore(ABC):
    @abstractmethod
    def get_by_code(self, code: str) -> Optional[Coupon]:
        """Case-insensitive lookup; None when the code is unknown."""

    @abstractmethod
    def save_with_version_check(self, coupon: Coupon, expected_version: int) -> bool:
        pass

    @abstractmethod
    def add(self, coupon: Coupon) -> None:
        pass

    @abstractmethod
    def list_all(self) -> List[Coupon]:
        pass


class RequestStore(ABC):
    @abstractmethod
    def create(self, request: ServiceRequest) -> str:
        """Persist a new request or raise DuplicateRecordError when the id is taken."""

    @abstractmethod
    def get_by_id(self, request_id: str) -> ServiceRequest:
        """Return the request or raise RequestNotFoundError."""

    @abstractmethod
    def save_with_version_check(self, request: ServiceRequest, expected_version: int) -> bool:
        pass

    @abstractmethod
    def list_expirable(self, now: datetime) -> List[ServiceRequest]:
        """Requests in pending or waiting_payment whose expires_at is at or before ``now``."""


class PaymentTransactionStore(ABC):
    @abstractmethod
    def add(self, transaction: PaymentTransaction) -> None:
        pass

    @abstractmethod
    def get_by_order_id(self, gateway_order_id: str) -> Optional[PaymentTransaction]:
        pass

    @abstractmethod
    def list_for_request(self, request_id: str) -> List[PaymentTransaction]:
        """Transactions for a request, oldest first."""

    @abstractmethod
    def save(self, transaction: PaymentTransaction) -> None:
        pass
