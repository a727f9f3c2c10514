"""
Money and rounding helpers.

All monetary values in FASHIONSIM are Decimal amounts rounded to the
cent (half up) at every point where they are accumulated into a
ledger, cost bucket or balance. Unit counts are integers rounded
half up (so 0.5 -> 1, 2.5 -> 3).
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def to_money(value: Number) -> Decimal:
    """Round a value to the cent, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_units(value: float) -> int:
    """Round a unit quantity to the nearest integer, halves rounding up."""
    return int(math.floor(value + 0.5))


def format_money(value: Number) -> str:
    """Format an amount for display, e.g. $1,234.50."""
    amount = to_money(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
