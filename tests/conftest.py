"""
Pytest configuration and shared fixtures for CycleOps tests.
"""

import json
from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests
from prometheus_client import CollectorRegistry

from cycleops.core.config import ConcurrencyConfig, CycleOpsConfig, GatewayConfig
from cycleops.infrastructure.gateway import PaymentGateway, expected_signature
from cycleops.infrastructure.metrics import CycleOpsMetrics
from cycleops.infrastructure.storage import (
    InMemoryCatalogStore,
    InMemoryCouponStore,
    InMemoryPaymentTransactionStore,
    InMemoryRequestStore,
)
from cycleops.models import CatalogItem, Coupon, ItemCategory, RequestKind
from cycleops.services import RequestService

from .helpers import GATEWAY_SECRET, NOW, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def metrics():
    """Metrics on a private registry, recording enabled."""
    instance = CycleOpsMetrics(registry=CollectorRegistry())
    instance.enable()
    return instance


@pytest.fixture
def catalog_store():
    return InMemoryCatalogStore(
        items=[
            CatalogItem("brake-tune", ItemCategory.REPAIR_SERVICES, Decimal("150"), "Brake tune-up"),
            CatalogItem("chain-fix", ItemCategory.REPAIR_SERVICES, Decimal("250"), "Chain replacement"),
            CatalogItem("city-bike", ItemCategory.RENTAL_BICYCLES, Decimal("300"), "City bike, per day"),
            CatalogItem("mtb", ItemCategory.RENTAL_BICYCLES, Decimal("500"), "Mountain bike, per day"),
        ],
        surcharges={RequestKind.REPAIR: Decimal("200"), RequestKind.RENTAL: Decimal("100")},
    )


@pytest.fixture
def make_coupon():
    """Factory for coupons valid for 30 days from NOW unless overridden."""

    def factory(code="WELCOME10", **overrides):
        fields = {
            "code": code,
            "discount_type": "percentage",
            "discount_value": Decimal("10"),
            "usage_limit": 100,
            "expires_at": NOW + timedelta(days=30),
        }
        fields.update(overrides)
        return Coupon(**fields)

    return factory


@pytest.fixture
def coupons(make_coupon):
    return [
        make_coupon("WELCOME10", min_amount=Decimal("500")),
        make_coupon(
            "FIRST50",
            discount_type="fixed",
            discount_value=Decimal("50"),
            min_amount=Decimal("200"),
            applicable_categories={ItemCategory.RENTAL_BICYCLES},
            usage_limit=10,
        ),
        make_coupon("BIGSAVE", discount_value=Decimal("50"), max_discount=Decimal("100")),
        make_coupon("ONCE", discount_type="fixed", discount_value=Decimal("20"), one_per_user=True),
    ]


@pytest.fixture
def coupon_store(coupons):
    return InMemoryCouponStore(coupons)


@pytest.fixture
def request_store():
    return InMemoryRequestStore()


@pytest.fixture
def transaction_store():
    return InMemoryPaymentTransactionStore()


@pytest.fixture
def config():
    return CycleOpsConfig(
        gateway=GatewayConfig(key_id="rzp_test_key", key_secret=GATEWAY_SECRET),
        concurrency=ConcurrencyConfig(max_write_attempts=3, backoff_seconds=0),
    )


@pytest.fixture
def gateway():
    mock_gateway = Mock(spec=PaymentGateway)
    mock_gateway.name = "mock"
    mock_gateway.create_order.return_value = {
        "order_id": "order_123",
        "amount": 95000,
        "currency": "INR",
        "status": "created",
        "receipt": "rental_x",
    }
    return mock_gateway


@pytest.fixture
def service(catalog_store, coupon_store, request_store, transaction_store, gateway, config, clock, metrics):
    return RequestService(
        catalog_store,
        coupon_store,
        request_store,
        transaction_store,
        gateway=gateway,
        config=config,
        clock=clock,
        metrics=metrics,
    )


@pytest.fixture
def signed_payload():
    """Factory for gateway callbacks signed with the test secret."""

    def factory(order_id="order_123", payment_id="pay_456", secret=GATEWAY_SECRET):
        return {
            "razorpay_order_id": order_id,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": expected_signature(secret, order_id, payment_id),
        }

    return factory


@pytest.fixture
def make_response():
    """Factory for real requests.Response objects with a JSON body."""

    def factory(status_code=200, body=None):
        response = requests.Response()
        response.status_code = status_code
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
        return response

    return factory
