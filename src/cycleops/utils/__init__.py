from .money import clamp_non_negative, from_minor_units, to_minor_units, to_money
from .normalization import normalize_code
from .time import utc_now

__all__ = [
    "clamp_non_negative",
    "from_minor_units",
    "to_minor_units",
    "to_money",
    "normalize_code",
    "utc_now",
]
