"""
Database tables and session management.

Uses SQLAlchemy so any supported database can hold requests, coupons,
payment transactions and the catalog. Money columns are NUMERIC(12, 2);
line items, history and redemptions are JSON documents on their row.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from cycleops.exceptions import StoreUnavailableError
from cycleops.logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

MONEY = Numeric(12, 2, asdecimal=True)


class RequestRow(Base):
    __tablename__ = "service_requests"

    id = Column(String(64), primary_key=True)
    kind = Column(String(16), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(32), nullable=False)
    payment_method = Column(String(16), nullable=False)
    coupon_code = Column(String(64), nullable=True)
    surcharge = Column(MONEY, nullable=False)
    gross_amount = Column(MONEY, nullable=False)
    discount_amount = Column(MONEY, nullable=False)
    net_amount = Column(MONEY, nullable=False)
    line_items = Column(JSON, nullable=False)
    history = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    rejection_note = Column(Text, nullable=True)
    payment_reference = Column(String(128), nullable=True)
    version = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("ix_service_requests_status_expires", "status", "expires_at"),)


class CouponRow(Base):
    __tablename__ = "coupons"

    code = Column(String(64), primary_key=True)
    description = Column(Text, nullable=False, default="")
    discount_type = Column(String(16), nullable=False)
    discount_value = Column(MONEY, nullable=False)
    min_amount = Column(MONEY, nullable=False)
    max_discount = Column(MONEY, nullable=False)
    usage_limit = Column(Integer, nullable=False)
    used_count = Column(Integer, nullable=False, default=0)
    applicable_categories = Column(JSON, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    one_per_user = Column(Boolean, nullable=False, default=False)
    redemptions = Column(JSON, nullable=False)
    version = Column(Integer, nullable=False, default=0)


class PaymentTransactionRow(Base):
    __tablename__ = "payment_transactions"

    gateway_order_id = Column(String(64), primary_key=True)
    id = Column(String(64), nullable=False, unique=True)
    request_id = Column(String(64), nullable=False, index=True)
    request_kind = Column(String(16), nullable=False)
    user_id = Column(String(64), nullable=False)
    amount = Column(MONEY, nullable=False)
    amount_minor = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False)
    status = Column(String(16), nullable=False)
    payment_id = Column(String(64), nullable=True)
    failure_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class CatalogItemRow(Base):
    __tablename__ = "catalog_items"

    id = Column(String(64), primary_key=True)
    category = Column(String(32), nullable=False)
    unit_price = Column(MONEY, nullable=False)
    description = Column(Text, nullable=False, default="")


class SurchargeRateRow(Base):
    __tablename__ = "surcharge_rates"

    kind = Column(String(16), primary_key=True)
    amount = Column(MONEY, nullable=False)


class Database:
    """Engine and session factory for one database URL."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        try:
            self.engine: Engine = create_engine(database_url, echo=echo, pool_pre_ping=True, future=True)
        except (SQLAlchemyError, ValueError) as e:
            raise StoreUnavailableError("database", f"Cannot create engine: {e}") from e
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def create_schema(self) -> None:
        """Create missing tables; fails fast when the database is unreachable."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error("Database schema creation failed", database=self.engine.url.render_as_string())
            raise StoreUnavailableError("database", str(e)) from e

    def dispose(self) -> None:
        self.engine.dispose()
