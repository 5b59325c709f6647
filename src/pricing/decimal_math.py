"""
Decimal Math Utilities for Fee Calculations.

Every fee step runs on Decimal so that table multipliers such as 2.2 or
1.35 are applied exactly. With binary floats, 150 * 2.2 is
330.00000000000006, and a value that should land on a $25 boundary can be
pushed up a full step by ceil().

Rounding follows the quote sheet:
- monthly fees round half up to whole dollars (or to the nearest $5 for TaaS)
- setup fees always round UP to the next $25
"""

import logging
import re
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, InvalidOperation, localcontext
from typing import Optional, Union

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

MONEY_PLACES = Decimal("0.01")
WHOLE = Decimal("1")
ZERO = Decimal("0")

# Precision of the default decimal context
DEFAULT_PRECISION = 28

# Typed amounts at or above 10**101 are treated as not a number
MAX_AMOUNT_EXPONENT = 100

# Leading number of a free-text amount ("5000", " 1250.50 USD", ".5")
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Examples:
        >>> to_decimal(2.2)
        Decimal('2.2')
        >>> to_decimal("0.75")
        Decimal('0.75')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def _working_precision(*values: Decimal) -> int:
    # Enough digits that quantizing to whole dollars or pennies is exact
    digits = max((v.adjusted() for v in values if v.is_finite() and v), default=0)
    return max(DEFAULT_PRECISION, digits + 10)


def money(value: Numeric) -> Decimal:
    """
    Convert value to money (rounded to pennies, half up).

    Examples:
        >>> money(1950)
        Decimal('1950.00')
    """
    d = to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = _working_precision(d)
        return d.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def round_half_up(value: Numeric) -> Decimal:
    """
    Round to the nearest whole dollar, ties away from zero.

    Examples:
        >>> round_half_up("429.5")
        Decimal('430')
    """
    d = to_decimal(value)
    with localcontext() as ctx:
        ctx.prec = _working_precision(d)
        return d.quantize(WHOLE, rounding=ROUND_HALF_UP)


def round_to_nearest(value: Numeric, step: Numeric) -> Decimal:
    """
    Round to the nearest multiple of step (ties round up).

    Examples:
        >>> round_to_nearest(204, 5)
        Decimal('205')
    """
    d, step_d = to_decimal(value), to_decimal(step)
    with localcontext() as ctx:
        ctx.prec = _working_precision(d, step_d)
        return (d / step_d).quantize(WHOLE, rounding=ROUND_HALF_UP) * step_d


def ceil_to_nearest(value: Numeric, step: Numeric) -> Decimal:
    """
    Round UP to the next multiple of step; exact multiples are unchanged.

    Examples:
        >>> ceil_to_nearest(1935, 25)
        Decimal('1950')
        >>> ceil_to_nearest(1950, 25)
        Decimal('1950')
    """
    d, step_d = to_decimal(value), to_decimal(step)
    with localcontext() as ctx:
        ctx.prec = _working_precision(d, step_d)
        return (d / step_d).quantize(WHOLE, rounding=ROUND_CEILING) * step_d


def _bounded(parsed: Decimal) -> Optional[Decimal]:
    if not parsed.is_finite() or (parsed and parsed.adjusted() > MAX_AMOUNT_EXPONENT):
        return None
    return parsed


def parse_amount(value: object) -> Optional[Decimal]:
    """
    Parse a user-typed amount.

    Reads the leading number of the text and ignores trailing characters,
    so "5000" and "5000 flat" both give 5000. Returns None when the value
    does not start with a number or is beyond 10**MAX_AMOUNT_EXPONENT.

    Examples:
        >>> parse_amount("5000")
        Decimal('5000')
        >>> parse_amount("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            parsed = to_decimal(value)
        except InvalidOperation:
            return None
        return _bounded(parsed)

    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return None
    try:
        return _bounded(Decimal(match.group(1)))
    except InvalidOperation:
        logger.debug(f"Unparseable amount: {value!r}")
        return None


def to_number(value: Decimal) -> Union[int, float]:
    """
    Convert a Decimal for JSON output: int when whole, float otherwise.

    Examples:
        >>> to_number(Decimal("1950"))
        1950
        >>> to_number(Decimal("2.2"))
        2.2
    """
    if value == value.to_integral_value():
        return int(value)
    return float(value)
