"""
LoanShare Core Models Package.

Value objects shared by the ledger engine, the store and the API layer.

Modules:
    loan: LoanSettings, Transaction, LedgerEntry, Ledger, AmortizationRow,
          InterestAccrual, InterestDelta
"""

from loanshare.core.models.loan import (
    LoanSettings,
    Transaction,
    TransactionId,
    LedgerEntry,
    Ledger,
    AmortizationRow,
    InterestAccrual,
    InterestDelta,
)

__all__ = [
    "LoanSettings",
    "Transaction",
    "TransactionId",
    "LedgerEntry",
    "Ledger",
    "AmortizationRow",
    "InterestAccrual",
    "InterestDelta",
]

__version__ = "1.0.0"
__author__ = "LoanShare Development Team"
