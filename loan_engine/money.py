"""
Money Module

Decimal helpers for monetary values. Every amount the engine produces is
quantized to 2 decimal places with ROUND_HALF_UP. NEVER uses float for
monetary values.
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Iterable, Union
import re

# High precision for intermediate rate arithmetic (powers in the level payment)
getcontext().prec = 28

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
DEFAULT_TOLERANCE = Decimal('0.01')

Numeric = Union[Decimal, int, float, str]


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a number to Decimal without binary floating point drift.

    Floats go through str() so 0.1 becomes Decimal('0.1'), not
    Decimal('0.1000000000000000055511151231257827'). NaN and infinities
    are rejected whatever the input type.
    """
    if isinstance(value, bool):
        raise ValueError("Boolean is not a valid amount")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        return decimal_from_string(value)
    else:
        raise ValueError(f"Cannot convert {type(value).__name__} to Decimal")

    if not result.is_finite():
        raise ValueError(f"{value!r} is not a finite amount")
    return result


def round_money(value: Numeric) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Numeric]) -> Decimal:
    """Sum amounts and round the total"""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return round_money(total)


def within_tolerance(left: Numeric, right: Numeric, tolerance: Numeric = DEFAULT_TOLERANCE) -> bool:
    """Check two amounts differ by no more than the tolerance"""
    return abs(to_decimal(left) - to_decimal(right)) <= to_decimal(tolerance)


# Plain amount: optional sign, digits, optional fraction
PLAIN_AMOUNT = re.compile(r'^[+-]?\d+(\.\d+)?$')
# Amount with comma thousands separators in groups of three
GROUPED_AMOUNT = re.compile(r'^[+-]?\d{1,3}(,\d{3})+(\.\d+)?$')
# ISO currency code separated from the number by whitespace
CURRENCY_CODE = re.compile(r'^[A-Z]{3}\s+|\s+[A-Z]{3}$')
CURRENCY_SYMBOLS = '$€£¥₹₦₱'


def decimal_from_string(value: str) -> Decimal:
    """
    Parse an amount string into a Decimal

    Accepts a plain decimal number, optionally with a currency code or
    symbol and comma thousands separators ("$1,234.56", "EUR 10").
    Anything else is rejected rather than guessed at, so "1e3", "12abc"
    and "1,5" all raise.

    Args:
        value: String representation of an amount

    Returns:
        Decimal value

    Raises:
        ValueError: If the string is not a well-formed amount
    """
    if not value or not isinstance(value, str):
        raise ValueError("Value must be a non-empty string")

    clean_value = CURRENCY_CODE.sub('', value.strip()).strip()

    sign = ''
    if clean_value[:1] in ('+', '-'):
        sign, clean_value = clean_value[0], clean_value[1:]
    clean_value = sign + clean_value.strip(CURRENCY_SYMBOLS).strip()

    if GROUPED_AMOUNT.match(clean_value):
        clean_value = clean_value.replace(',', '')

    if not PLAIN_AMOUNT.match(clean_value):
        raise ValueError(f"Cannot convert '{value}' to Decimal")

    return Decimal(clean_value)


def format_money(value: Numeric) -> str:
    """Format for display and logs, e.g. '10,000.00'"""
    return f"{round_money(value):,.2f}"
