"""Decimal helpers shared by the derivation engine and the services."""

from decimal import Decimal, InvalidOperation
from typing import Union

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# Positions below this many shares are treated as fully closed.
SHARE_EPSILON = Decimal("0.000001")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number | None) -> Decimal:
    """
    Coerce a number to Decimal; None and empty strings become 0.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion. NaN and infinities are rejected.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise TypeError("bool is not a number")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Invalid decimal value: {value!r}")
    if not result.is_finite():
        raise ValueError(f"Non-finite decimal value: {value!r}")
    return result


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, returning 0 instead of raising when the denominator is 0."""
    if denominator == ZERO:
        return ZERO
    return numerator / denominator
