"""
Core constants and enumerations for LoanShare.

This module defines all constant values, enumerations, and configuration
parameters used by the ledger engine.
"""

from decimal import Decimal
from enum import Enum


class TransactionType(str, Enum):
    """Stored transaction types. Direction is implied by type, never by sign."""
    PAYMENT = "payment"
    LOAN_INCREASE = "loanIncrease"
    INTEREST = "interest"

    @property
    def is_user_entered(self) -> bool:
        return self is not TransactionType.INTEREST


class EntryType(str, Enum):
    """Ledger entry types: every transaction type plus the synthetic initial entry."""
    INITIAL = "initial"
    PAYMENT = "payment"
    LOAN_INCREASE = "loanIncrease"
    INTEREST = "interest"


class SortDirection(str, Enum):
    """Presentation order of ledger entries"""
    ASC = "asc"
    DESC = "desc"


# Author id stamped on reconciler-generated interest transactions
SYSTEM_AUTHOR_ID = "system"

INITIAL_ENTRY_DESCRIPTION = "Initial Loan Amount"

# Accruals at or below half a cent are not generated
INTEREST_MATERIALITY_THRESHOLD = Decimal("0.005")

# Projection runaway guard: 50 years of monthly rows
MAX_PROJECTION_MONTHS = 600

# Friendly share codes, e.g. "K7P-2QX" (no 0/O/1/I)
FRIENDLY_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
FRIENDLY_ID_LENGTH = 6
FRIENDLY_ID_MAX_ATTEMPTS = 10


# Module metadata
__version__ = "1.0.0"
__author__ = "LoanShare Development Team"
__description__ = "Core constants and enumerations for LoanShare"
