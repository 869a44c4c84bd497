"""
Loan domain models for LoanShare.

Plain value objects consumed and produced by the ledger engine. None of
these touch the database; ``loanshare.db.store`` converts ORM rows into
them and back.

Classes:
    LoanSettings: Per-loan configuration (amount, date, rate, title)
    Transaction: A stored, dated monetary event
    LedgerEntry: One folded row of the running-balance ledger
    Ledger: Fold result with current balance and last payment
    AmortizationRow: One projected month of a payoff schedule
    InterestAccrual: An interest transaction the reconciler wants stored
    InterestDelta: Deletes and inserts that bring stored interest in sync
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from loanshare.core.constants import (
    EntryType,
    SortDirection,
    SYSTEM_AUTHOR_ID,
    TransactionType,
)
from loanshare.utils.date_utils import parse_date
from loanshare.utils.error_utils import ValidationError
from loanshare.utils.rate_utils import to_decimal

TransactionId = Union[int, str]


@dataclass(frozen=True)
class LoanSettings:
    """
    Loan configuration owned by the loan entity.

    Attributes:
        initial_loan_amount: Starting principal; None until configured
        initial_loan_date: Date the principal was lent; None until configured
        interest_rate: Annual rate as percentage; None means "not yet configured"
        app_title: Display name of the loan
        created_at: Audit timestamp, unused in calculations
        last_updated: Audit timestamp, unused in calculations
    """

    initial_loan_amount: Optional[Decimal] = None
    initial_loan_date: Optional[date] = None
    interest_rate: Optional[Decimal] = None
    app_title: str = ""
    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @property
    def is_configured(self) -> bool:
        """Amount and date are set, so a ledger can be built."""
        return self.initial_loan_amount is not None and self.initial_loan_date is not None

    @property
    def is_setup_complete(self) -> bool:
        """Configured and carrying an interest rate, so interest can accrue."""
        return self.is_configured and self.interest_rate is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_title": self.app_title,
            "initial_loan_amount": str(self.initial_loan_amount) if self.initial_loan_amount is not None else None,
            "initial_loan_date": self.initial_loan_date.isoformat() if self.initial_loan_date else None,
            "interest_rate": str(self.interest_rate) if self.interest_rate is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoanSettings":
        amount = data.get("initial_loan_amount")
        loan_date = data.get("initial_loan_date")
        rate = data.get("interest_rate")
        return cls(
            initial_loan_amount=to_decimal(amount, "initial_loan_amount") if amount is not None else None,
            initial_loan_date=parse_date(loan_date) if loan_date is not None else None,
            interest_rate=to_decimal(rate, "interest_rate") if rate is not None else None,
            app_title=data.get("app_title") or "",
            created_at=data.get("created_at"),
            last_updated=data.get("last_updated"),
        )


@dataclass(frozen=True)
class Transaction:
    """
    A recorded financial event on a loan.

    The amount is always positive; payments reduce the balance, every other
    type increases it.
    """

    id: Optional[TransactionId]
    date: date
    type: TransactionType
    amount: Decimal
    description: str = ""
    author_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.type, TransactionType):
            try:
                object.__setattr__(self, "type", TransactionType(self.type))
            except ValueError:
                raise ValidationError(f"Unknown transaction type '{self.type}'", {"field": "type"})
        amount = to_decimal(self.amount, "amount")
        if amount <= 0:
            raise ValidationError("Transaction amount must be greater than zero", {"field": "amount"})
        object.__setattr__(self, "amount", amount)

    @property
    def is_system(self) -> bool:
        return self.author_id == SYSTEM_AUTHOR_ID

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.type is TransactionType.PAYMENT else self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "amount": str(self.amount),
            "description": self.description,
            "author_id": self.author_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            id=data.get("id"),
            date=parse_date(data["date"]),
            type=TransactionType(data["type"]),
            amount=data["amount"],
            description=data.get("description") or "",
            author_id=data.get("author_id"),
            created_at=data.get("created_at"),
        )


@dataclass(frozen=True)
class LedgerEntry:
    """One row of the folded ledger. ``transaction_id`` is None for the initial entry."""

    date: date
    description: str
    amount: Decimal
    type: EntryType
    running_balance: Decimal
    transaction_id: Optional[TransactionId] = None
    author_id: Optional[str] = None

    @property
    def is_editable(self) -> bool:
        return self.type is not EntryType.INITIAL and self.author_id != SYSTEM_AUTHOR_ID


@dataclass(frozen=True)
class Ledger:
    """
    Result of folding a loan's transactions.

    ``entries`` are always in fold order (ascending date, stable); use
    ``for_display`` for presentation order.
    """

    entries: List[LedgerEntry] = field(default_factory=list)
    current_balance: Decimal = Decimal("0")
    last_payment: Optional[LedgerEntry] = None

    def for_display(self, direction: Union[SortDirection, str] = SortDirection.DESC) -> List[LedgerEntry]:
        direction = SortDirection(direction)
        if direction is SortDirection.ASC:
            return list(self.entries)
        # reverse=True keeps same-date entries in fold order
        return sorted(self.entries, key=lambda e: e.date, reverse=True)


@dataclass(frozen=True)
class AmortizationRow:
    month: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class InterestAccrual:
    """An interest transaction the reconciler wants to exist."""

    date: date
    amount: Decimal
    description: str
    author_id: str = SYSTEM_AUTHOR_ID

    def key(self):
        return (self.date, self.amount, self.description)

    def to_transaction(self, id: Optional[TransactionId] = None) -> Transaction:
        return Transaction(
            id=id,
            date=self.date,
            type=TransactionType.INTEREST,
            amount=self.amount,
            description=self.description,
            author_id=self.author_id,
        )


@dataclass(frozen=True)
class InterestDelta:
    """Write-delta produced by one reconciliation pass."""

    to_delete: List[TransactionId] = field(default_factory=list)
    to_insert: List[InterestAccrual] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.to_delete and not self.to_insert
