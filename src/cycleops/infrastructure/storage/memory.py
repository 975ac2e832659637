"""
Thread-safe in-memory stores.

Records are immutable dataclasses, so handing them out needs no copying. The
lock only makes each compare-and-set atomic; callers still rely on version
checks for correctness.
"""

import threading
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from cycleops.constants import ZERO
from cycleops.exceptions import CatalogItemNotFoundError, DuplicateRecordError, RequestNotFoundError
from cycleops.models import (
    CatalogItem,
    Coupon,
    PaymentTransaction,
    RequestKind,
    ServiceRequest,
)
from cycleops.utils.money import to_money
from cycleops.utils.normalization import normalize_code

from .base import CatalogStore, CouponStore, PaymentTransactionStore, RequestStore

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class InMemoryCatalogStore(CatalogStore):
    def __init__(
        self,
        items: Iterable[CatalogItem] = (),
        surcharges: Optional[Dict[RequestKind, Decimal]] = None,
    ):
        self._items = {item.id: item for item in items}
        self._surcharges = {
            RequestKind(kind): to_money(amount) for kind, amount in (surcharges or {}).items()
        }

    def get_line_item(self, item_id: str) -> CatalogItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise CatalogItemNotFoundError(item_id) from None

    def get_surcharge_rate(self, kind: RequestKind) -> Decimal:
        return self._surcharges.get(RequestKind(kind), ZERO)


class InMemoryCouponStore(CouponStore):
    def __init__(self, coupons: Iterable[Coupon] = ()):
        self._lock = threading.Lock()
        self._coupons: Dict[str, Coupon] = {c.code: c for c in coupons}

    def get_by_code(self, code: str) -> Optional[Coupon]:
        with self._lock:
            return self._coupons.get(normalize_code(code))

    def save_with_version_check(self, coupon: Coupon, expected_version: int) -> bool:
        with self._lock:
            current = self._coupons.get(coupon.code)
            if current is None or current.version != expected_version:
                return False
            self._coupons[coupon.code] = replace(coupon, version=expected_version + 1)
            return True

    def add(self, coupon: Coupon) -> None:
        with self._lock:
            if coupon.code in self._coupons:
                raise DuplicateRecordError("coupons", coupon.code)
            self._coupons[coupon.code] = coupon

    def list_all(self) -> List[Coupon]:
        with self._lock:
            return sorted(self._coupons.values(), key=lambda c: c.code)


class InMemoryRequestStore(RequestStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._requests: Dict[str, ServiceRequest] = {}

    def create(self, request: ServiceRequest) -> str:
        with self._lock:
            if request.id in self._requests:
                raise DuplicateRecordError("requests", request.id)
            self._requests[request.id] = request
            return request.id

    def get_by_id(self, request_id: str) -> ServiceRequest:
        with self._lock:
            try:
                return self._requests[request_id]
            except KeyError:
                raise RequestNotFoundError(request_id) from None

    def save_with_version_check(self, request: ServiceRequest, expected_version: int) -> bool:
        with self._lock:
            current = self._requests.get(request.id)
            if current is None or current.version != expected_version:
                return False
            self._requests[request.id] = replace(request, version=expected_version + 1)
            return True

    def list_expirable(self, now: datetime) -> List[ServiceRequest]:
        with self._lock:
            candidates = [r for r in self._requests.values() if r.is_expirable_at(now)]
        return sorted(candidates, key=lambda r: r.expires_at)


class InMemoryPaymentTransactionStore(PaymentTransactionStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._transactions: Dict[str, PaymentTransaction] = {}

    def add(self, transaction: PaymentTransaction) -> None:
        with self._lock:
            self._transactions[transaction.gateway_order_id] = transaction

    def get_by_order_id(self, gateway_order_id: str) -> Optional[PaymentTransaction]:
        with self._lock:
            return self._transactions.get(gateway_order_id)

    def list_for_request(self, request_id: str) -> List[PaymentTransaction]:
        with self._lock:
            matches = [t for t in self._transactions.values() if t.request_id == request_id]
        return sorted(matches, key=lambda t: t.created_at or _EPOCH)

    def save(self, transaction: PaymentTransaction) -> None:
        with self._lock:
            self._transactions[transaction.gateway_order_id] = transaction
