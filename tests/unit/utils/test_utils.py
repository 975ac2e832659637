"""
Unit tests for money, code and time helpers.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cycleops.utils import clamp_non_negative, from_minor_units, normalize_code, to_minor_units, to_money, utc_now
from cycleops.utils.time import ensure_utc


@pytest.mark.unit
class TestMoney:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (10, Decimal("10.00")),
            ("2.345", Decimal("2.35")),
            ("2.344", Decimal("2.34")),
            (0.1 + 0.2, Decimal("0.30")),
            (Decimal("-1.005"), Decimal("-1.01")),
            (None, Decimal("0.00")),
        ],
    )
    def test_to_money_rounds_half_up(self, value, expected):
        assert to_money(value) == expected

    def test_invalid_amount(self):
        with pytest.raises(ValueError, match="Not a valid amount"):
            to_money("ten rupees")

    def test_minor_units(self):
        """Test conversion to and from the gateway's integer units."""
        assert to_minor_units(Decimal("950.00")) == 95000
        assert to_minor_units("19.995") == 2000
        assert from_minor_units(95050) == Decimal("950.50")

    def test_clamp(self):
        assert clamp_non_negative(Decimal("-3.00")) == Decimal("0")
        assert clamp_non_negative(Decimal("3.00")) == Decimal("3.00")


@pytest.mark.unit
class TestNormalization:
    @pytest.mark.parametrize("raw", [" first50 ", "FIRST50", "First50\n"])
    def test_coupon_codes(self, raw):
        assert normalize_code(raw) == "FIRST50"

    def test_missing_code(self):
        assert normalize_code(None) == ""


@pytest.mark.unit
class TestTime:
    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is timezone.utc

    def test_ensure_utc(self):
        naive = datetime(2024, 5, 1, 10, 0)
        offset = datetime(2024, 5, 1, 15, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))

        assert ensure_utc(naive) == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert ensure_utc(offset) == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert ensure_utc(None) is None
