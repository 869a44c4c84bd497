"""
Core modules for LoanShare.

This package contains the domain models, constants, and the ledger,
interest and projection engines.
"""

from loanshare.core.constants import (
    TransactionType,
    EntryType,
    SortDirection,
    SYSTEM_AUTHOR_ID,
    INTEREST_MATERIALITY_THRESHOLD,
    MAX_PROJECTION_MONTHS,
)

__all__ = [
    "TransactionType",
    "EntryType",
    "SortDirection",
    "SYSTEM_AUTHOR_ID",
    "INTEREST_MATERIALITY_THRESHOLD",
    "MAX_PROJECTION_MONTHS",
]

__version__ = "1.0.0"
