"""
LoanShare Core Engine Package.

Pure calculation engines and the service that drives them against a store.

Modules:
    ledger_builder: Running-balance fold over a loan's transactions
    interest_reconciler: Canonical monthly interest accruals and write-deltas
    projection_engine: Fixed-payment amortization schedules
    display: Presentation-facing derivations (paid-off %, summary)
    loan_service: Operations exposed to the presentation layer
"""

from loanshare.core.engine.ledger_builder import build_ledger, balance_before
from loanshare.core.engine.interest_reconciler import (
    ReconciliationGuard,
    planned_accruals,
    reconcile_interest,
)
from loanshare.core.engine.projection_engine import project_amortization, required_payment
from loanshare.core.engine.display import LoanSummary, summarize_loan
from loanshare.core.engine.loan_service import LoanService

__all__ = [
    "build_ledger",
    "balance_before",
    "ReconciliationGuard",
    "planned_accruals",
    "reconcile_interest",
    "project_amortization",
    "required_payment",
    "LoanSummary",
    "summarize_loan",
    "LoanService",
]

__version__ = "1.0.0"
