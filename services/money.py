"""Currency arithmetic: discounts, tax and half-up rounding to cents."""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert ints, floats, strings and Decimals without binary float noise."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_percent_discount(amount, percent, rounded: bool = True) -> Decimal:
    result = to_decimal(amount) * (1 - to_decimal(percent) / HUNDRED)
    return round_money(result) if rounded else result


def apply_fixed_discount(amount, value, rounded: bool = True) -> Decimal:
    """Subtract a fixed amount, clamping at zero so no deal total goes negative."""
    result = max(Decimal("0"), to_decimal(amount) - to_decimal(value))
    return round_money(result) if rounded else result


def apply_tax(amount, percent, rounded: bool = True) -> Decimal:
    result = to_decimal(amount) * (1 + to_decimal(percent) / HUNDRED)
    return round_money(result) if rounded else result
