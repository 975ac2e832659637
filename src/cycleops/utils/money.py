"""Decimal money helpers.

Amounts are kept as ``Decimal`` quantized to two places. Gateways take integer
minor units.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from cycleops.constants import MINOR_UNITS_PER_MAJOR, MONEY_QUANTUM, ZERO

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Convert a number to a two-place Decimal, rounding half up."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        # str() avoids binary float artefacts such as 0.1 + 0.2
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValueError(f"Not a valid amount: {value!r}") from e
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def to_minor_units(value: Number) -> int:
    return int((to_money(value) * MINOR_UNITS_PER_MAJOR).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(value: int) -> Decimal:
    return to_money(Decimal(int(value)) / MINOR_UNITS_PER_MAJOR)


def clamp_non_negative(value: Decimal) -> Decimal:
    return value if value > ZERO else ZERO
