"""
Rate and amount conversion utilities for loan calculations.

This module provides standardized functions for converting between the
formats used throughout the loan tracker.

Conventions:
- All user inputs are annual rates as percentages (e.g., 5.0 = 5%)
- All calculations use Decimal rates (e.g., Decimal("0.05") = 5%)
- Monthly rates are derived from annual rates: annual_decimal / 12
- Money amounts are Decimal; stored amounts are rounded to cents
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from loanshare.utils.error_utils import error_handler, ValidationError

Number = Union[Decimal, float, int, str]

# Convenience constants for common conversions
MONTHS_PER_YEAR = 12
PERCENTAGE_TO_DECIMAL = Decimal("100")
CENT = Decimal("0.01")

# Stored amounts are Numeric(15, 2): at most 13 integer digits
MAX_AMOUNT = Decimal("1E13")


@error_handler
def to_decimal(value: Number, field: str = "value") -> Decimal:
    """
    Convert a user or database value to a finite Decimal.

    Floats go through ``str`` so that 0.1 becomes Decimal("0.1") rather than
    its binary expansion.

    Raises:
        ValidationError: If the value is missing, non-numeric or not finite

    Examples:
        >>> to_decimal("12.50")
        Decimal('12.50')
        >>> to_decimal(0.1)
        Decimal('0.1')
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", {"field": field, "value": value})
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number", {"field": field, "value": value})
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number", {"field": field, "value": value})
    return result


@error_handler
def to_amount(value: Number, field: str = "amount") -> Decimal:
    """
    Convert a money amount and check that it fits a stored amount column.

    Raises:
        ValidationError: If the value is not a finite number or its
            magnitude is ``MAX_AMOUNT`` or more

    Examples:
        >>> to_amount("250")
        Decimal('250')
    """
    amount = to_decimal(value, field)
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f"{field} is too large", {"field": field, "value": str(value)})
    return amount


def quantize_cents(amount: Decimal) -> Decimal:
    """Round a money amount half-up to whole cents."""
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("Amount is too large to round to cents", {"value": str(amount)})


@error_handler
def annual_pct_to_decimal(rate_pct: Number) -> Decimal:
    """
    Convert annual percentage rate to decimal format.

    Examples:
        >>> annual_pct_to_decimal(5)
        Decimal('0.05')
    """
    return to_decimal(rate_pct, "interest_rate") / PERCENTAGE_TO_DECIMAL


@error_handler
def annual_pct_to_monthly_decimal(rate_pct: Number) -> Decimal:
    """
    Convert annual percentage rate directly to monthly decimal rate.

    Args:
        rate_pct: Annual rate as percentage (e.g., 12 for 12%)

    Returns:
        Monthly rate as decimal (e.g., Decimal("0.01") for 12% annually)
    """
    return annual_pct_to_decimal(rate_pct) / MONTHS_PER_YEAR


def validate_rate_range(rate_pct: Decimal, min_pct: Number = 0, max_pct: Number = 100) -> bool:
    """
    Validate that a percentage rate is within reasonable bounds.

    Examples:
        >>> validate_rate_range(Decimal("5"))
        True
        >>> validate_rate_range(Decimal("-1"))
        False
    """
    return Decimal(str(min_pct)) <= rate_pct <= Decimal(str(max_pct))


@error_handler
def normalize_rate_input(rate_input: Number) -> Decimal:
    """
    Normalize rate input from various formats to a Decimal percentage.

    Handles string inputs, removes percentage signs, and validates ranges.

    Raises:
        ValidationError: If rate cannot be converted or is out of range

    Examples:
        >>> normalize_rate_input("5.5%")
        Decimal('5.5')
        >>> normalize_rate_input(6)
        Decimal('6')
    """
    if isinstance(rate_input, str):
        rate_input = rate_input.strip().rstrip("%")
    rate = to_decimal(rate_input, "interest_rate")

    if not validate_rate_range(rate):
        raise ValidationError(f"Rate {rate}% is outside valid range (0% to 100%)", {"field": "interest_rate"})

    return rate


# Module metadata
__version__ = "1.0.0"
__author__ = "LoanShare Development Team"
__description__ = "Rate and amount conversion utilities for LoanShare"
