"""
Tests for the Razorpay gateway adapter and its HTTP client.
"""

from unittest.mock import Mock

import pytest
import requests

from cycleops.exceptions import GatewayRejectedError, GatewayUnavailableError
from cycleops.infrastructure.gateway import HttpClient, RazorpayGateway


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def razorpay(session, metrics):
    return RazorpayGateway("rzp_test_key", "secret", session=session, timeout=5, metrics=metrics)


@pytest.mark.unit
class TestCreateOrder:
    def test_posts_order_and_returns_id(self, razorpay, session, make_response, metrics):
        session.post.return_value = make_response(
            200,
            {"id": "order_abc", "amount": 95000, "currency": "INR", "status": "created", "receipt": "rental_r-1"},
        )

        order = razorpay.create_order(95000, "INR", {"receipt": "rental_r-1", "request_id": "r-1", "user_id": None})

        session.post.assert_called_once_with(
            "https://api.razorpay.com/v1/orders",
            json={"amount": 95000, "currency": "INR", "receipt": "rental_r-1", "notes": {"request_id": "r-1"}},
            auth=("rzp_test_key", "secret"),
            timeout=5,
        )
        assert order == {
            "order_id": "order_abc",
            "amount": 95000,
            "currency": "INR",
            "status": "created",
            "receipt": "rental_r-1",
        }
        labels = {"gateway": "razorpay", "operation": "create_order", "status": "success"}
        assert metrics.gateway_requests_total.labels(**labels)._value.get() == 1

    def test_long_receipts_are_truncated(self, razorpay, session, make_response):
        session.post.return_value = make_response(200, {"id": "order_abc"})

        razorpay.create_order(100, "INR", {"receipt": "rental_" + "x" * 64})

        assert len(session.post.call_args.kwargs["json"]["receipt"]) == 40

    def test_server_error_is_unavailable(self, razorpay, session, make_response):
        session.post.return_value = make_response(503, {})

        with pytest.raises(GatewayUnavailableError) as exc_info:
            razorpay.create_order(100, "INR", {})

        assert exc_info.value.http_code == 503
        assert exc_info.value.retryable

    def test_client_error_is_rejected(self, razorpay, session, make_response, metrics):
        session.post.return_value = make_response(
            400, {"error": {"code": "BAD_REQUEST_ERROR", "description": "amount must be at least 100"}}
        )

        with pytest.raises(GatewayRejectedError, match="amount must be at least 100"):
            razorpay.create_order(1, "INR", {})
        labels = {"gateway": "razorpay", "operation": "create_order", "status": "error"}
        assert metrics.gateway_requests_total.labels(**labels)._value.get() == 1

    def test_timeout_is_unavailable(self, razorpay, session):
        session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(GatewayUnavailableError, match="Timeout"):
            razorpay.create_order(100, "INR", {})

    def test_response_without_id(self, razorpay, session, make_response):
        session.post.return_value = make_response(200, {"status": "created"})

        with pytest.raises(GatewayUnavailableError, match="without an id"):
            razorpay.create_order(100, "INR", {})

    def test_non_json_response(self, razorpay, session, make_response):
        response = make_response(200)
        response._content = b"<html>maintenance</html>"
        session.post.return_value = response

        with pytest.raises(GatewayUnavailableError, match="Malformed"):
            razorpay.create_order(100, "INR", {})


@pytest.mark.unit
class TestHttpClient:
    def test_builds_urls_against_base(self, session, make_response):
        session.get.return_value = make_response(200, {"ok": True})
        client = HttpClient("https://api.example.com/", session=session, timeout=3)

        response = client.get("/v1/orders/order_1", params={"expand": "payments"})

        assert response.json() == {"ok": True}
        session.get.assert_called_once_with(
            "https://api.example.com/v1/orders/order_1",
            params={"expand": "payments"},
            auth=None,
            timeout=3,
        )

    def test_absolute_urls_pass_through(self, session, make_response):
        session.post.return_value = make_response(201, {})
        client = HttpClient("https://api.example.com", session=session)

        client.post("https://other.example.com/hook", json={"a": 1}, timeout=1)

        assert session.post.call_args.args[0] == "https://other.example.com/hook"
        assert session.post.call_args.kwargs["timeout"] == 1

    def test_default_session_does_not_retry_posts(self):
        client = HttpClient("https://api.example.com", max_retries=2)

        retries = client.session.get_adapter("https://api.example.com").max_retries

        assert retries.total == 2
        assert "POST" not in retries.allowed_methods
        client.close()
