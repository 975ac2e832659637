"""
Payment gateway adapters.

- base: PaymentGateway interface
- http_client: requests session wrapper with bounded timeouts
- razorpay: Razorpay order creation
- signature: HMAC-SHA256 payment signature verification
"""

from .base import PaymentGateway
from .http_client import HttpClient
from .razorpay import RazorpayGateway
from .signature import expected_signature, verify_signature

__all__ = [
    "HttpClient",
    "PaymentGateway",
    "RazorpayGateway",
    "expected_signature",
    "verify_signature",
]
