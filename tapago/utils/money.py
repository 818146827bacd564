"""Decimal money helpers"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

from bson.decimal128 import Decimal128

from tapago.core.exceptions import InvalidArgumentError

ZERO = Decimal("0.00")

# Upper bound for a single debt; keeps 2-place quantize within the decimal context
MAX_AMOUNT = Decimal("1000000000000")


def round_money(value: Decimal, decimal_places: int = 2) -> Decimal:
    """
    Round a decimal value to currency minor-unit precision.

    Args:
        value: Decimal value to round
        decimal_places: Number of decimal places (default 2)

    Returns:
        Rounded decimal value
    """
    quantize_value = Decimal(10) ** -decimal_places
    return value.quantize(quantize_value, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Read a stored amount (Decimal128, int, float or missing) as a 2-place Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    if isinstance(value, float):
        value = str(value)
    return round_money(Decimal(value))


def to_decimal128(value: Decimal) -> Decimal128:
    return Decimal128(round_money(value))


def parse_amount(value: Any) -> Decimal:
    """
    Parse a user supplied amount into a positive 2-place Decimal.

    Raises:
        InvalidArgumentError: not a finite number, not below MAX_AMOUNT,
            or not positive after rounding
    """
    if isinstance(value, bool) or value is None:
        raise InvalidArgumentError("Amount must be a number")

    try:
        if isinstance(value, Decimal128):
            amount = value.to_decimal()
        elif isinstance(value, str):
            amount = Decimal(value.strip().replace(",", "."))
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError(f"Amount {value!r} is not a number")

    if not amount.is_finite():
        raise InvalidArgumentError("Amount must be finite")
    if amount.copy_abs() >= MAX_AMOUNT:
        raise InvalidArgumentError(f"Amount must be less than {MAX_AMOUNT}")

    amount = round_money(amount)
    if amount <= 0:
        raise InvalidArgumentError("Amount must be greater than zero")
    if amount >= MAX_AMOUNT:
        raise InvalidArgumentError(f"Amount must be less than {MAX_AMOUNT}")
    return amount


def sum_money(values: Iterable[Decimal]) -> Decimal:
    """Sum decimal amounts, 0.00 for an empty iterable."""
    return round_money(sum(values, ZERO))
