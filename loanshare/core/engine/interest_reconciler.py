"""
Interest accrual reconciler for LoanShare.

Derives the canonical set of monthly interest transactions from the loan
settings and the non-interest transactions, and computes the write-delta
that brings the stored interest transactions in line with it.

Every pass is logically "delete all stored interest, regenerate the full
history from scratch". Stored accruals that already equal a canonical one
are left alone, so a pass over an already converged loan produces an empty
delta, and one pass from any starting state yields the canonical set.
"""

import threading
from collections import Counter
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, List, Optional, Set

from loanshare.core.constants import INTEREST_MATERIALITY_THRESHOLD, TransactionType
from loanshare.core.engine.ledger_builder import balance_before
from loanshare.core.models.loan import (
    InterestAccrual,
    InterestDelta,
    LoanSettings,
    Transaction,
    TransactionId,
)
from loanshare.utils.date_utils import format_month_label, iter_elapsed_months, month_end
from loanshare.utils.error_utils import logger
from loanshare.utils.rate_utils import annual_pct_to_monthly_decimal, quantize_cents


def accrual_description(period_end: date) -> str:
    """Description stamped on a generated accrual, e.g. ``"Monthly Interest - January 2024"``."""
    return f"Monthly Interest - {format_month_label(period_end)}"


def planned_accruals(
    settings: Optional[LoanSettings],
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    compound: bool = False,
) -> List[InterestAccrual]:
    """
    Canonical interest accruals for every fully elapsed month.

    Args:
        settings: Loan settings; nothing accrues until amount, date and rate are set
        transactions: Stored transactions; interest-type entries are ignored
        today: Reference date (defaults to the current date); the month
            containing it never accrues
        compound: When True, accruals generated for earlier months count
            towards the balance of later months

    Returns:
        Accruals in ascending date order, amounts rounded to cents
    """
    if settings is None or not settings.is_setup_complete:
        return []

    today = today or date.today()
    rate = settings.interest_rate
    if rate <= 0:
        return []
    monthly_rate = annual_pct_to_monthly_decimal(rate)

    basis = [tx for tx in transactions if tx.type is not TransactionType.INTEREST]
    accruals: List[InterestAccrual] = []

    for period_start in iter_elapsed_months(settings.initial_loan_date, today):
        balance = balance_before(settings, basis, period_start)
        if balance <= 0:
            continue

        interest = balance * monthly_rate
        if interest <= INTEREST_MATERIALITY_THRESHOLD:
            continue

        period_end = month_end(period_start)
        accrual = InterestAccrual(
            date=period_end,
            amount=quantize_cents(interest),
            description=accrual_description(period_end),
        )
        accruals.append(accrual)
        if compound:
            basis.append(accrual.to_transaction())

    return accruals


def reconcile_interest(
    settings: Optional[LoanSettings],
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    rewrite_all: bool = False,
    compound: bool = False,
) -> InterestDelta:
    """
    Compute the delta that makes stored interest equal the canonical accruals.

    Args:
        settings: Loan settings snapshot
        transactions: Full transaction snapshot, interest entries included
        today: Reference date for "fully elapsed" months
        rewrite_all: Delete every stored interest entry and insert the whole
            canonical set, even where they already match
        compound: See ``planned_accruals``

    Returns:
        InterestDelta; empty when settings are not set up
    """
    if settings is None or not settings.is_setup_complete:
        return InterestDelta()

    transactions = list(transactions)
    existing = [tx for tx in transactions if tx.type is TransactionType.INTEREST]
    canonical = planned_accruals(settings, transactions, today=today, compound=compound)

    if rewrite_all:
        return InterestDelta(to_delete=[tx.id for tx in existing], to_insert=canonical)

    wanted = Counter(accrual.key() for accrual in canonical)
    to_delete: List[TransactionId] = []
    for tx in existing:
        key = (tx.date, tx.amount, tx.description)
        if wanted[key] > 0:
            wanted[key] -= 1
        else:
            to_delete.append(tx.id)

    to_insert: List[InterestAccrual] = []
    for accrual in canonical:
        if wanted[accrual.key()] > 0:
            wanted[accrual.key()] -= 1
            to_insert.append(accrual)

    return InterestDelta(to_delete=to_delete, to_insert=to_insert)


class ReconciliationGuard:
    """
    In-progress guard: at most one reconciliation per loan at a time.

    Usage:
        guard = ReconciliationGuard()
        with guard.hold(loan_id) as acquired:
            if acquired:
                ...  # reconcile
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._in_progress: Set[int] = set()

    def is_running(self, loan_id) -> bool:
        with self._lock:
            return loan_id in self._in_progress

    @contextmanager
    def hold(self, loan_id) -> Iterator[bool]:
        with self._lock:
            acquired = loan_id not in self._in_progress
            if acquired:
                self._in_progress.add(loan_id)
        if not acquired:
            logger.info(f"Reconciliation already in progress for loan {loan_id}; skipping")
        try:
            yield acquired
        finally:
            if acquired:
                with self._lock:
                    self._in_progress.discard(loan_id)

