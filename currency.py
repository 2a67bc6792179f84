from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, InvalidOperation
from typing import Any

# Source threshold: anything strictly under one cent counts as zero,
# and two totals reconcile when they differ by at most one cent
EPSILON = Decimal("0.01")
CENT = Decimal("0.01")
ZERO = Decimal("0")
# Keeps every sum and quantize inside the default 28-digit decimal context
MAX_AMOUNT = Decimal("1e15")


def to_decimal(value: Any) -> Decimal:
    """Wrap an untyped numeric value in a Decimal without binary float drift"""
    if isinstance(value, bool):
        raise ValueError("Boolean is not a currency amount")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() keeps 0.1 as Decimal("0.1") instead of its float expansion
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Not a numeric amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    if abs(result) >= MAX_AMOUNT:
        raise ValueError(f"Amount is out of range: {value!r}")
    return result


def round_currency(amount: Decimal) -> Decimal:
    """Round to two decimal places, half away from zero"""
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    # no "-0.00" in output
    return rounded if rounded else abs(rounded)


def floor_currency(amount: Decimal) -> Decimal:
    """Truncate toward zero at two decimal places"""
    return amount.quantize(CENT, rounding=ROUND_DOWN)


def within_epsilon(amount: Decimal) -> bool:
    """True when an amount counts as settled (strictly under one cent)"""
    return abs(amount) < EPSILON


def reconciles(actual: Decimal, expected: Decimal) -> bool:
    """True when two amounts agree to within one cent, inclusive"""
    return abs(actual - expected) <= EPSILON
