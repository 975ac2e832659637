"""
Razorpay order creation over its REST API.
"""

import time
from typing import Any, Dict, Optional

import requests

from cycleops.constants import DEFAULT_GATEWAY_BASE_URL, DEFAULT_GATEWAY_TIMEOUT_SECONDS, GATEWAY_ORDERS_ENDPOINT
from cycleops.exceptions import GatewayRejectedError, GatewayUnavailableError
from cycleops.infrastructure.metrics import CycleOpsMetrics, get_metrics
from cycleops.logging import get_logger

from .base import PaymentGateway
from .http_client import HttpClient

logger = get_logger(__name__)

# Razorpay rejects receipts longer than 40 characters
MAX_RECEIPT_LENGTH = 40


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = DEFAULT_GATEWAY_BASE_URL,
        timeout: float = DEFAULT_GATEWAY_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        metrics: Optional[CycleOpsMetrics] = None,
    ):
        self.client = HttpClient(base_url, session=session, timeout=timeout, auth=(key_id, key_secret))
        self.metrics = metrics or get_metrics()

    def create_order(self, amount_minor: int, currency: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        receipt = str(metadata.get("receipt") or f"order_{int(time.time())}")[:MAX_RECEIPT_LENGTH]
        payload = {
            "amount": int(amount_minor),
            "currency": currency,
            "receipt": receipt,
            "notes": {k: str(v) for k, v in metadata.items() if k != "receipt" and v is not None},
        }

        started = time.perf_counter()
        try:
            response = self.client.post(GATEWAY_ORDERS_ENDPOINT, json=payload)
        except requests.RequestException as e:
            self.metrics.record_gateway_request(self.name, "create_order", time.perf_counter() - started, False)
            raise GatewayUnavailableError(self.name, f"{type(e).__name__}: {e}") from e

        duration = time.perf_counter() - started
        if response.status_code >= 500:
            self.metrics.record_gateway_request(self.name, "create_order", duration, False)
            raise GatewayUnavailableError(self.name, f"HTTP {response.status_code}", http_code=response.status_code)
        if response.status_code >= 400:
            self.metrics.record_gateway_request(self.name, "create_order", duration, False)
            raise GatewayRejectedError(
                self.name, self._error_description(response), http_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            self.metrics.record_gateway_request(self.name, "create_order", duration, False)
            raise GatewayUnavailableError(self.name, "Malformed order response") from e

        order_id = body.get("id") if isinstance(body, dict) else None
        if not order_id:
            self.metrics.record_gateway_request(self.name, "create_order", duration, False)
            raise GatewayUnavailableError(self.name, "Order response without an id")

        self.metrics.record_gateway_request(self.name, "create_order", duration, True)
        logger.info("Gateway order created", gateway=self.name, order_id=order_id, receipt=receipt)
        return {
            "order_id": order_id,
            "amount": body.get("amount", payload["amount"]),
            "currency": body.get("currency", currency),
            "status": body.get("status"),
            "receipt": body.get("receipt", receipt),
        }

    @staticmethod
    def _error_description(response: requests.Response) -> str:
        try:
            error = response.json().get("error", {})
            return error.get("description") or error.get("code") or f"HTTP {response.status_code}"
        except (ValueError, AttributeError):
            return f"HTTP {response.status_code}"
