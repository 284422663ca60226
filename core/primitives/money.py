"""
LuxRent Money Primitive — Integer Minor Units
===============================================
All booking amounts are integer cents. Multipliers and rates are
applied through Decimal and rounded half-up back to whole cents,
so every line item is exact and totals are plain integer sums.

RULES:
- amounts are int minor units (150000 = $1500.00), never floats
- currency travels beside the amount (PriceBreakdown.currency)
- rates and multipliers enter as Decimal (floats via str())
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Rate = Union[Decimal, float, int, str]

SUPPORTED_CURRENCIES = frozenset({"USD", "AED", "EUR", "GBP"})

_ONE = Decimal(1)
_CENT = Decimal("0.01")


def as_decimal(value: Rate) -> Decimal:
    """Convert a rate/multiplier to Decimal without binary float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_cents(value: Decimal) -> int:
    """Round a Decimal amount of cents to a whole cent, half-up."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def apply_rate(cents: int, *rates: Rate) -> int:
    """Multiply an integer cent amount by one or more rates, round once."""
    value = Decimal(cents)
    for rate in rates:
        value *= as_decimal(rate)
    return round_cents(value)


def format_cents(cents: int) -> str:
    """Integer cents → 2-decimal string, e.g. 442260 → '4422.60'."""
    return str((Decimal(cents) * _CENT).quantize(_CENT, rounding=ROUND_HALF_UP))
