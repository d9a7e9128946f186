"""Fixed-point money helpers.

Amounts are persisted as two-decimal floats but every calculation goes
through ``Decimal`` quantized to cents, so totals never pick up binary
floating-point drift.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Convert an int/float/str/Decimal amount to a cent-precision ``Decimal``."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_float(amount: Decimal) -> float:
    """Convert a money ``Decimal`` back to the float stored on fields."""
    return float(to_money(amount))


def total_of(amounts) -> Decimal:
    return sum((to_money(a) for a in amounts), ZERO)
