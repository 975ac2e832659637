"""
Stores for requests, coupons, payment transactions and the catalog.

Two implementations share the interfaces in ``base``: thread-safe in-memory
stores for tests and single-process use, and SQLAlchemy stores for any SQL
database.
"""

from .base import CatalogStore, CouponStore, PaymentTransactionStore, RequestStore
from .database import Database
from .memory import (
    InMemoryCatalogStore,
    InMemoryCouponStore,
    InMemoryPaymentTransactionStore,
    InMemoryRequestStore,
)
from .sql import (
    SqlCatalogStore,
    SqlCouponStore,
    SqlPaymentTransactionStore,
    SqlRequestStore,
)

__all__ = [
    "CatalogStore",
    "CouponStore",
    "PaymentTransactionStore",
    "RequestStore",
    "Database",
    "InMemoryCatalogStore",
    "InMemoryCouponStore",
    "InMemoryPaymentTransactionStore",
    "InMemoryRequestStore",
    "SqlCatalogStore",
    "SqlCouponStore",
    "SqlPaymentTransactionStore",
    "SqlRequestStore",
]
