"""
Central date utilities for LoanShare.

Loan and transaction dates are calendar dates with no time-of-day semantics.
Every input (ISO strings, day-first strings, datetimes, pandas Timestamps) is
reduced to a ``datetime.date`` before it reaches the ledger engine.

Key Features:
- Universal date parsing with format detection
- Calendar month boundaries for interest accrual
- Month labels for generated descriptions
"""

from datetime import datetime, date
from typing import Iterator, Union

import pandas as pd
from dateutil.relativedelta import relativedelta

from loanshare.utils.error_utils import error_handler, ValidationError

DateInput = Union[str, datetime, date, pd.Timestamp]


@error_handler
def parse_date(date_input: DateInput, normalize_to_month_start: bool = False) -> date:
    """
    Universal date parser for LoanShare.

    Args:
        date_input: Date in various formats (str, datetime, date, pd.Timestamp)
        normalize_to_month_start: If True, sets day to 1

    Returns:
        date: Calendar date

    Raises:
        ValidationError: If the input is missing or cannot be parsed

    Examples:
        >>> parse_date("2024-01-15")
        datetime.date(2024, 1, 15)

        >>> parse_date("15/01/2024", normalize_to_month_start=True)
        datetime.date(2024, 1, 1)
    """
    if date_input is None or (isinstance(date_input, str) and not date_input.strip()):
        raise ValidationError("Date is required", {"field": "date"})

    if isinstance(date_input, pd.Timestamp):
        result = date_input.date()
    elif isinstance(date_input, datetime):
        result = date_input.date()
    elif isinstance(date_input, date):
        result = date_input
    elif isinstance(date_input, str):
        result = _parse_date_string(date_input.strip())
    else:
        raise ValidationError(f"Unsupported date input type: {type(date_input).__name__}", {"field": "date"})

    if normalize_to_month_start:
        result = result.replace(day=1)

    return result


def _parse_date_string(date_str: str) -> date:
    """
    Parse date string with automatic format detection.

    Supports ISO (YYYY-MM-DD, YYYY/MM/DD) first, then day-first
    (DD/MM/YYYY, DD-MM-YYYY), then whatever pandas can make of it.
    """
    format_patterns = [
        "%Y-%m-%d",
        "%Y/%m/%d",
        "%d/%m/%Y",
        "%d-%m-%Y",
    ]

    for format_str in format_patterns:
        try:
            return datetime.strptime(date_str, format_str).date()
        except ValueError:
            continue

    # ISO timestamps from JS clients ("2024-01-15T00:00:00.000Z")
    try:
        parsed = pd.to_datetime(date_str)
    except (ValueError, TypeError):
        parsed = None
    if parsed is not None and not pd.isna(parsed):
        return parsed.date()

    raise ValidationError(
        f"Unable to parse date string '{date_str}'. Supported formats include: YYYY-MM-DD, DD/MM/YYYY",
        {"field": "date"},
    )


def month_start(day: date) -> date:
    """First calendar day of the month containing ``day``."""
    return day.replace(day=1)


def month_end(day: date) -> date:
    """Last calendar day of the month containing ``day``."""
    return month_start(day) + relativedelta(months=1, days=-1)


def iter_elapsed_months(start: date, today: date) -> Iterator[date]:
    """
    Yield the first day of every fully elapsed month from ``start`` onward.

    A month counts as elapsed once its last day is strictly before ``today``,
    so the month containing ``today`` is never yielded.

    Examples:
        >>> list(iter_elapsed_months(date(2024, 1, 15), date(2024, 3, 2)))
        [datetime.date(2024, 1, 1), datetime.date(2024, 2, 1)]
    """
    current = month_start(start)
    while month_end(current) < today:
        yield current
        current = current + relativedelta(months=1)


def format_month_label(day: date) -> str:
    """Month and year label, e.g. ``"January 2024"``."""
    return day.strftime("%B %Y")


# Module metadata
__version__ = "1.0.0"
__author__ = "LoanShare Development Team"
__description__ = "Central date utilities for LoanShare"
