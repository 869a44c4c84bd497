"""
Ledger builder for LoanShare.

Turns loan settings plus an unordered set of transactions into a
chronological running-balance ledger. The fold always runs in ascending
date order; display order is applied afterwards and never affects balances.

Functions:
    build_ledger: Fold settings and transactions into a Ledger
    balance_before: Balance from everything dated strictly before a cutoff
    ledger_to_frame: Tabular view of a ledger for export
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

import pandas as pd

from loanshare.core.constants import EntryType, INITIAL_ENTRY_DESCRIPTION
from loanshare.core.models.loan import Ledger, LedgerEntry, LoanSettings, Transaction

ZERO = Decimal("0")


def _initial_entry(settings: LoanSettings) -> LedgerEntry:
    return LedgerEntry(
        date=settings.initial_loan_date,
        description=INITIAL_ENTRY_DESCRIPTION,
        amount=settings.initial_loan_amount,
        type=EntryType.INITIAL,
        running_balance=ZERO,
    )


def _ordered(settings: LoanSettings, transactions: Iterable[Transaction]) -> List[LedgerEntry]:
    """Initial entry plus transactions, stably sorted by date (unfolded)."""
    entries = [_initial_entry(settings)]
    for tx in transactions:
        entries.append(
            LedgerEntry(
                date=tx.date,
                description=tx.description,
                amount=tx.amount,
                type=EntryType(tx.type.value),
                running_balance=ZERO,
                transaction_id=tx.id,
                author_id=tx.author_id,
            )
        )
    # sorted() is stable: same-date entries keep input order, initial first
    return sorted(entries, key=lambda e: e.date)


def _apply(balance: Decimal, entry: LedgerEntry) -> Decimal:
    if entry.type is EntryType.PAYMENT:
        return balance - entry.amount
    return balance + entry.amount


def build_ledger(settings: Optional[LoanSettings], transactions: Iterable[Transaction]) -> Ledger:
    """
    Fold a loan's transactions into a running-balance ledger.

    Args:
        settings: Loan settings; an unconfigured loan yields an empty ledger
        transactions: Stored transactions in document order

    Returns:
        Ledger with entries in fold order, the final balance, and the
        chronologically latest payment (or None)
    """
    if settings is None or not settings.is_configured:
        return Ledger()

    balance = ZERO
    last_payment = None
    folded = []
    for entry in _ordered(settings, transactions):
        balance = _apply(balance, entry)
        entry = replace(entry, running_balance=balance)
        if entry.type is EntryType.PAYMENT:
            last_payment = entry
        folded.append(entry)

    return Ledger(entries=folded, current_balance=balance, last_payment=last_payment)


def balance_before(settings: LoanSettings, transactions: Iterable[Transaction], cutoff: date) -> Decimal:
    """Balance folded from the initial entry and transactions dated strictly before ``cutoff``."""
    if not settings.is_configured:
        return ZERO
    balance = ZERO
    for entry in _ordered(settings, transactions):
        if entry.date >= cutoff:
            break
        balance = _apply(balance, entry)
    return balance


def ledger_to_frame(ledger: Ledger, direction: str = "asc") -> pd.DataFrame:
    """
    Tabular view of a ledger.

    Returns:
        DataFrame with columns: date, type, description, amount, running_balance
    """
    rows = [
        {
            "date": entry.date,
            "type": entry.type.value,
            "description": entry.description,
            "amount": float(entry.amount),
            "running_balance": float(entry.running_balance),
        }
        for entry in ledger.for_display(direction)
    ]
    return pd.DataFrame(rows, columns=["date", "type", "description", "amount", "running_balance"])
