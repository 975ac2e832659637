from typing import Optional


def normalize_code(code: Optional[str]) -> str:
    """Coupon codes are matched case-insensitively on their trimmed form."""
    return (code or "").strip().upper()
