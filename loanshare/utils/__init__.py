"""
Utility modules for LoanShare.

This package contains reusable utility functions for date handling,
rate and amount conversions, and error handling throughout the application.
"""

from loanshare.utils.date_utils import (
    parse_date,
    month_start,
    month_end,
    iter_elapsed_months,
    format_month_label,
)

from loanshare.utils.rate_utils import (
    to_decimal,
    quantize_cents,
    to_amount,
    annual_pct_to_decimal,
    annual_pct_to_monthly_decimal,
    validate_rate_range,
    normalize_rate_input,
    MONTHS_PER_YEAR,
    PERCENTAGE_TO_DECIMAL,
)

from loanshare.utils.error_utils import (
    LoanShareError,
    ValidationError,
    StoreError,
    NotFoundError,
    AccessDeniedError,
    SystemEntryError,
    ProjectionError,
    InvalidPayment,
    PaymentTooSmall,
    error_handler,
    logger,
)

__all__ = [
    # Date utilities
    "parse_date",
    "month_start",
    "month_end",
    "iter_elapsed_months",
    "format_month_label",
    # Rate utilities
    "to_decimal",
    "quantize_cents",
    "to_amount",
    "annual_pct_to_decimal",
    "annual_pct_to_monthly_decimal",
    "validate_rate_range",
    "normalize_rate_input",
    "MONTHS_PER_YEAR",
    "PERCENTAGE_TO_DECIMAL",
    # Error handling
    "LoanShareError",
    "ValidationError",
    "StoreError",
    "NotFoundError",
    "AccessDeniedError",
    "SystemEntryError",
    "ProjectionError",
    "InvalidPayment",
    "PaymentTooSmall",
    "error_handler",
    "logger",
]

__version__ = "1.0.0"
