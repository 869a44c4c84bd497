"""
Display derivations over a built ledger.

Thin views used by the presentation layer: percentage paid off, paid-off
status, and the loan summary card. Sorting here only changes presentation
order; balances always come from the ascending-date fold.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from loanshare.core.constants import SortDirection, TransactionType
from loanshare.core.engine.ledger_builder import build_ledger
from loanshare.core.models.loan import Ledger, LedgerEntry, LoanSettings, Transaction

HUNDRED = Decimal("100")


def percentage_paid_off(settings: Optional[LoanSettings], transactions: Iterable[Transaction]) -> Decimal:
    """
    Share of the initial amount covered by payments, clamped to 0..100.

    Only payment amounts count; interest and balance increases are
    deliberately left out of "paid off".
    """
    if settings is None or settings.initial_loan_amount is None or settings.initial_loan_amount <= 0:
        return Decimal("0")
    total_paid = sum(
        (tx.amount for tx in transactions if tx.type is TransactionType.PAYMENT),
        Decimal("0"),
    )
    pct = total_paid / settings.initial_loan_amount * HUNDRED
    return max(Decimal("0"), min(HUNDRED, pct))


def is_paid_off(settings: Optional[LoanSettings], ledger: Ledger) -> bool:
    if settings is None or settings.initial_loan_amount is None:
        return False
    return ledger.current_balance <= 0 and settings.initial_loan_amount > 0


def sort_for_display(ledger: Ledger, direction: Union[SortDirection, str] = SortDirection.DESC) -> List[LedgerEntry]:
    return ledger.for_display(direction)


@dataclass(frozen=True)
class LoanSummary:
    current_balance: Decimal
    percentage_paid_off: Decimal
    is_paid_off: bool
    last_payment: Optional[LedgerEntry]
    entries: List[LedgerEntry]


def summarize_loan(
    settings: Optional[LoanSettings],
    transactions: Iterable[Transaction],
    direction: Union[SortDirection, str] = SortDirection.DESC,
) -> LoanSummary:
    """Build the ledger once and derive every display value from it."""
    transactions = list(transactions)
    ledger = build_ledger(settings, transactions)
    return LoanSummary(
        current_balance=ledger.current_balance,
        percentage_paid_off=percentage_paid_off(settings, transactions),
        is_paid_off=is_paid_off(settings, ledger),
        last_payment=ledger.last_payment,
        entries=sort_for_display(ledger, direction),
    )
