"""
SQLAlchemy-backed stores.

Compare-and-set writes are a single ``UPDATE ... WHERE id = :id AND
version = :expected``; a row count of zero means another writer won.
"""

from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from cycleops.constants import ZERO
from cycleops.exceptions import (
    CatalogItemNotFoundError,
    DuplicateRecordError,
    RequestNotFoundError,
    StoreUnavailableError,
)
from cycleops.models import (
    CatalogItem,
    Coupon,
    CouponRedemption,
    LineItem,
    PaymentTransaction,
    RequestKind,
    ServiceRequest,
    StatusChange,
    build_request,
)
from cycleops.models.enums import HOLDING_STATUS_VALUES
from cycleops.utils.money import to_money
from cycleops.utils.normalization import normalize_code
from cycleops.utils.time import ensure_utc

from .base import CatalogStore, CouponStore, PaymentTransactionStore, RequestStore
from .database import (
    CatalogItemRow,
    CouponRow,
    Database,
    PaymentTransactionRow,
    RequestRow,
    SurchargeRateRow,
)


class _SqlStore:
    store_name = "sql"

    def __init__(self, database: Database):
        self.database = database

    @contextmanager
    def _session(self):
        session = self.database.session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise DuplicateRecordError(self.store_name, None, str(e.orig)) from e
        except OperationalError as e:
            session.rollback()
            raise StoreUnavailableError(self.store_name, str(e.orig)) from e
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreUnavailableError(self.store_name, str(e)) from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()


class SqlCatalogStore(_SqlStore, CatalogStore):
    store_name = "catalog"

    def get_line_item(self, item_id: str) -> CatalogItem:
        with self._session() as session:
            row = session.get(CatalogItemRow, item_id)
            if row is None:
                raise CatalogItemNotFoundError(item_id)
            return CatalogItem(
                id=row.id,
                category=row.category,
                unit_price=row.unit_price,
                description=row.description or "",
            )

    def get_surcharge_rate(self, kind: RequestKind) -> Decimal:
        with self._session() as session:
            row = session.get(SurchargeRateRow, RequestKind(kind).value)
            return to_money(row.amount) if row is not None else ZERO

    def add_item(self, item: CatalogItem) -> None:
        """Seed a catalog item; catalog management lives outside the engine."""
        with self._session() as session:
            session.merge(
                CatalogItemRow(
                    id=item.id,
                    category=item.category.value,
                    unit_price=item.unit_price,
                    description=item.description,
                )
            )

    def set_surcharge_rate(self, kind: RequestKind, amount: Decimal) -> None:
        with self._session() as session:
            session.merge(SurchargeRateRow(kind=RequestKind(kind).value, amount=to_money(amount)))


def _coupon_columns(coupon: Coupon) -> Dict[str, Any]:
    return {
        "code": coupon.code,
        "description": coupon.description,
        "discount_type": coupon.discount_type.value,
        "discount_value": coupon.discount_value,
        "min_amount": coupon.min_amount,
        "max_discount": coupon.max_discount,
        "usage_limit": coupon.usage_limit,
        "used_count": coupon.used_count,
        "applicable_categories": sorted(c.value for c in coupon.applicable_categories),
        "expires_at": coupon.expires_at,
        "is_active": coupon.is_active,
        "one_per_user": coupon.one_per_user,
        "redemptions": [r.to_dict() for r in coupon.redemptions],
    }


def _coupon_from_row(row: CouponRow) -> Coupon:
    return Coupon(
        code=row.code,
        description=row.description or "",
        discount_type=row.discount_type,
        discount_value=row.discount_value,
        min_amount=row.min_amount,
        max_discount=row.max_discount,
        usage_limit=row.usage_limit,
        used_count=row.used_count,
        applicable_categories=row.applicable_categories or [],
        expires_at=row.expires_at,
        is_active=row.is_active,
        one_per_user=row.one_per_user,
        redemptions=[CouponRedemption.from_dict(r) for r in (row.redemptions or [])],
        version=row.version,
    )


class SqlCouponStore(_SqlStore, CouponStore):
    store_name = "coupons"

    def get_by_code(self, code: str) -> Optional[Coupon]:
        with self._session() as session:
            row = session.get(CouponRow, normalize_code(code))
            return _coupon_from_row(row) if row is not None else None

    def save_with_version_check(self, coupon: Coupon, expected_version: int) -> bool:
        with self._session() as session:
            result = session.execute(
                update(CouponRow)
                .where(CouponRow.code == coupon.code, CouponRow.version == expected_version)
                .values(**_coupon_columns(coupon), version=expected_version + 1)
            )
            return result.rowcount == 1

    def add(self, coupon: Coupon) -> None:
        with self._session() as session:
            session.add(CouponRow(**_coupon_columns(coupon), version=coupon.version))

    def list_all(self) -> List[Coupon]:
        with self._session() as session:
            rows = session.execute(select(CouponRow).order_by(CouponRow.code)).scalars().all()
            return [_coupon_from_row(row) for row in rows]


def _request_columns(request: ServiceRequest) -> Dict[str, Any]:
    return {
        "id": request.id,
        "kind": request.kind.value,
        "user_id": request.user_id,
        "status": request.status.value,
        "payment_method": request.payment_method.value,
        "coupon_code": request.coupon_code,
        "surcharge": request.surcharge,
        "gross_amount": request.gross_amount,
        "discount_amount": request.discount_amount,
        "net_amount": request.net_amount,
        "line_items": [item.to_dict() for item in request.line_items],
        "history": [change.to_dict() for change in request.history],
        "created_at": request.created_at,
        "updated_at": request.updated_at,
        "expires_at": request.expires_at,
        "rejection_note": request.rejection_note,
        "payment_reference": request.payment_reference,
    }


def _request_from_row(row: RequestRow) -> ServiceRequest:
    return build_request(
        row.kind,
        surcharge=row.surcharge,
        id=row.id,
        user_id=row.user_id,
        line_items=[LineItem.from_dict(item) for item in (row.line_items or [])],
        payment_method=row.payment_method,
        coupon_code=row.coupon_code,
        gross_amount=row.gross_amount,
        discount_amount=row.discount_amount,
        net_amount=row.net_amount,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        expires_at=row.expires_at,
        rejection_note=row.rejection_note,
        payment_reference=row.payment_reference,
        history=[StatusChange.from_dict(change) for change in (row.history or [])],
        version=row.version,
    )


class SqlRequestStore(_SqlStore, RequestStore):
    store_name = "requests"

    def create(self, request: ServiceRequest) -> str:
        with self._session() as session:
            session.add(RequestRow(**_request_columns(request), version=request.version))
        return request.id

    def get_by_id(self, request_id: str) -> ServiceRequest:
        with self._session() as session:
            row = session.get(RequestRow, request_id)
            if row is None:
                raise RequestNotFoundError(request_id)
            return _request_from_row(row)

    def save_with_version_check(self, request: ServiceRequest, expected_version: int) -> bool:
        with self._session() as session:
            result = session.execute(
                update(RequestRow)
                .where(RequestRow.id == request.id, RequestRow.version == expected_version)
                .values(**_request_columns(request), version=expected_version + 1)
            )
            return result.rowcount == 1

    def list_expirable(self, now: datetime) -> List[ServiceRequest]:
        now = ensure_utc(now)
        with self._session() as session:
            rows = (
                session.execute(
                    select(RequestRow)
                    .where(
                        RequestRow.status.in_(sorted(HOLDING_STATUS_VALUES)),
                        RequestRow.expires_at.is_not(None),
                        RequestRow.expires_at <= now,
                    )
                    .order_by(RequestRow.expires_at)
                )
                .scalars()
                .all()
            )
            return [_request_from_row(row) for row in rows]


def _transaction_columns(transaction: PaymentTransaction) -> Dict[str, Any]:
    return {
        "gateway_order_id": transaction.gateway_order_id,
        "id": transaction.id,
        "request_id": transaction.request_id,
        "request_kind": transaction.request_kind.value,
        "user_id": transaction.user_id,
        "amount": transaction.amount,
        "amount_minor": transaction.amount_minor,
        "currency": transaction.currency,
        "status": transaction.status.value,
        "payment_id": transaction.payment_id,
        "failure_reason": transaction.failure_reason,
        "created_at": transaction.created_at,
        "updated_at": transaction.updated_at,
    }


def _transaction_from_row(row: PaymentTransactionRow) -> PaymentTransaction:
    return PaymentTransaction(
        id=row.id,
        request_id=row.request_id,
        request_kind=row.request_kind,
        user_id=row.user_id,
        gateway_order_id=row.gateway_order_id,
        amount=row.amount,
        amount_minor=row.amount_minor,
        currency=row.currency,
        status=row.status,
        payment_id=row.payment_id,
        failure_reason=row.failure_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlPaymentTransactionStore(_SqlStore, PaymentTransactionStore):
    store_name = "payment_transactions"

    def add(self, transaction: PaymentTransaction) -> None:
        with self._session() as session:
            session.add(PaymentTransactionRow(**_transaction_columns(transaction)))

    def get_by_order_id(self, gateway_order_id: str) -> Optional[PaymentTransaction]:
        with self._session() as session:
            row = session.get(PaymentTransactionRow, gateway_order_id)
            return _transaction_from_row(row) if row is not None else None

    def list_for_request(self, request_id: str) -> List[PaymentTransaction]:
        with self._session() as session:
            rows = (
                session.execute(
                    select(PaymentTransactionRow)
                    .where(PaymentTransactionRow.request_id == request_id)
                    .order_by(PaymentTransactionRow.created_at)
                )
                .scalars()
                .all()
            )
            return [_transaction_from_row(row) for row in rows]

    def save(self, transaction: PaymentTransaction) -> None:
        with self._session() as session:
            session.merge(PaymentTransactionRow(**_transaction_columns(transaction)))
