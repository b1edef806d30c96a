"""Decimal arithmetic helpers for monetary values.

Every amount that takes part in a calculation goes through this module so
that totals never touch binary floating point.
"""
from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from orderdesk.exceptions import InvalidAmount

AmountLike = Union[Decimal, int, float, str]

ZERO = Decimal('0')
HUNDRED = Decimal('100')

# Wide enough that products and sums of realistic order amounts stay exact.
MONEY_CONTEXT = Context(prec=60, rounding=ROUND_HALF_UP)


def to_decimal(value: Optional[AmountLike], default: Optional[AmountLike] = None) -> Decimal:
    """
    Convert a raw value (form input, JSON number, DB column) to Decimal.

    Floats are converted through ``str`` so ``0.1`` becomes ``Decimal('0.1')``.

    Args:
        value: Value to convert
        default: Returned (as Decimal) when value is missing or invalid.
            When None, invalid input raises instead.

    Raises:
        InvalidAmount: if the value is not numeric and no default was given.
    """
    try:
        return _coerce(value)
    except InvalidAmount:
        if default is None:
            raise
        return _coerce(default)


def _coerce(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidAmount(f'Not a numeric amount: {value!r}')

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            raise InvalidAmount('Empty amount')
        try:
            result = Decimal(cleaned)
        except (InvalidOperation, ValueError):
            raise InvalidAmount(f'Not a numeric amount: {value!r}')
    else:
        raise InvalidAmount(f'Not a numeric amount: {value!r}')

    if not result.is_finite():
        raise InvalidAmount(f'Amount must be finite: {value!r}')
    return result


def multiply(a: Decimal, b: Decimal) -> Decimal:
    return MONEY_CONTEXT.multiply(a, b)


def add(a: Decimal, b: Decimal) -> Decimal:
    return MONEY_CONTEXT.add(a, b)


def subtract(a: Decimal, b: Decimal) -> Decimal:
    return MONEY_CONTEXT.subtract(a, b)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Return ``amount * percent / 100``."""
    return MONEY_CONTEXT.divide(multiply(amount, percent), HUNDRED)


def total(values: Iterable[Decimal]) -> Decimal:
    result = ZERO
    for value in values:
        result = add(result, value)
    return result


def quantize_money(value: Decimal, places: int = 2) -> Decimal:
    """Round to the currency's minor unit (ROUND_HALF_UP)."""
    exponent = Decimal(1).scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_HALF_UP, context=MONEY_CONTEXT)


def to_display_number(value: Decimal) -> float:
    """Lossy conversion for rendering only; never feed the result back into math."""
    return float(value)


def to_json_number(value: Decimal) -> Union[int, str]:
    """
    Encode a Decimal for a JSON body without losing precision.

    Integral values become ints; anything else is sent as its exact
    decimal string.
    """
    if value == value.to_integral_value():
        return int(value)
    return format(value.normalize(), 'f')
