"""
Payment signature verification.

The gateway signs ``"{order_id}|{payment_id}"`` with HMAC-SHA256 using the
account secret and returns the hex digest. Only verification lives here.
"""

import hashlib
import hmac


def expected_signature(secret: str, order_id: str, payment_id: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    """Constant-time comparison of the received signature with the expected one."""
    if not secret or not signature:
        return False
    expected = expected_signature(secret, order_id, payment_id)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))
