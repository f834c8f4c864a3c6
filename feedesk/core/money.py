"""Money helpers. Amounts are exact 2-place decimals; EPSILON is the "fully paid" threshold."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

EPSILON = Decimal("0.01")
ZERO = Decimal("0.00")
_CENTS = Decimal("0.01")


def to_money(val) -> Decimal:
    if val is None:
        return ZERO
    dec = val if isinstance(val, Decimal) else Decimal(str(val))
    return dec.quantize(_CENTS, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable) -> Decimal:
    return sum((to_money(v) for v in values), ZERO)


def is_settled(amount: Decimal) -> bool:
    """A pending bucket at or below EPSILON counts as fully paid."""
    return to_money(amount) <= EPSILON
