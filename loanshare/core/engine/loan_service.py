"""
Loan service for LoanShare.

The operations the presentation layer calls: read the ledger, add, edit and
delete transactions, save settings, project a payoff schedule, and manage
loan membership. Every mutation is followed by an interest reconciliation
pass so stored accruals always match the current data.

The service talks to any store exposing the transaction-store contract
(``loanshare.db.store.TransactionStore`` in production); it never touches
the database directly.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pandas as pd

from loanshare.core.constants import SortDirection, TransactionType
from loanshare.core.engine.display import LoanSummary, summarize_loan
from loanshare.core.engine.interest_reconciler import ReconciliationGuard, reconcile_interest
from loanshare.core.engine.ledger_builder import build_ledger, ledger_to_frame
from loanshare.core.engine.projection_engine import project_amortization, required_payment
from loanshare.core.models.loan import AmortizationRow, InterestDelta, LoanSettings, Transaction
from loanshare.utils.date_utils import parse_date
from loanshare.utils.error_utils import (
    AccessDeniedError,
    NotFoundError,
    SystemEntryError,
    ValidationError,
    logger,
)
from loanshare.utils.friendly_id import normalize_friendly_id
from loanshare.utils.rate_utils import normalize_rate_input, quantize_cents, to_amount


def validate_transaction_input(tx_input: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize a user-entered transaction.

    Returns:
        Dict with date, type, amount and description ready to store

    Raises:
        ValidationError: On a missing/invalid date, a non-numeric or
            non-positive amount, or a type users may not enter
    """
    tx_date = parse_date(tx_input.get("date"))

    raw_type = tx_input.get("type") or TransactionType.PAYMENT.value
    try:
        tx_type = TransactionType(getattr(raw_type, "value", raw_type))
    except ValueError:
        raise ValidationError(f"Unknown transaction type '{raw_type}'", {"field": "type"})
    if not tx_type.is_user_entered:
        raise ValidationError("Interest entries are generated automatically", {"field": "type"})

    amount = to_amount(tx_input.get("amount"), "amount")
    if amount <= 0:
        raise ValidationError("Please enter a valid date and amount.", {"field": "amount"})
    amount = quantize_cents(amount)
    if amount <= 0:
        raise ValidationError("Amount must be at least one cent", {"field": "amount"})

    description = (tx_input.get("description") or "").strip()
    if not description:
        description = f"{tx_type.value} on {tx_date.isoformat()}"

    return {"date": tx_date, "type": tx_type, "amount": amount, "description": description}


def validate_settings_input(settings_input: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate a settings form.

    Raises:
        ValidationError: On a missing loan name, a non-numeric or negative
            amount, a missing/invalid date, or a missing/out-of-range rate
    """
    app_title = (settings_input.get("app_title") or "").strip()
    if not app_title:
        raise ValidationError("Please enter a name for the loan.", {"field": "app_title"})

    amount = to_amount(settings_input.get("initial_loan_amount"), "initial_loan_amount")
    if amount < 0:
        raise ValidationError("Initial loan amount cannot be negative", {"field": "initial_loan_amount"})

    if settings_input.get("interest_rate") is None:
        raise ValidationError("Please enter an interest rate", {"field": "interest_rate"})

    return {
        "app_title": app_title,
        "initial_loan_amount": quantize_cents(amount),
        "initial_loan_date": parse_date(settings_input.get("initial_loan_date")),
        "interest_rate": normalize_rate_input(settings_input.get("interest_rate")),
    }


class LoanService:
    """
    Presentation-facing loan operations over a transaction store.

    Attributes:
        store: Transaction store implementation
        guard: Per-loan in-progress guard shared by every reconciliation
        clock: Returns "today"; months ending before it accrue interest
        compound_interest: Let earlier accruals count towards later months
    """

    def __init__(
        self,
        store,
        guard: Optional[ReconciliationGuard] = None,
        clock: Callable[[], date] = date.today,
        compound_interest: bool = False,
    ):
        self.store = store
        self.guard = guard or ReconciliationGuard()
        self.clock = clock
        self.compound_interest = compound_interest

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def create_loan(self, app_title: str, user_id: int) -> Dict[str, Any]:
        app_title = (app_title or "").strip()
        if not app_title:
            raise ValidationError("Please enter a name for the loan.", {"field": "app_title"})
        return self.store.create_loan(app_title, user_id)

    def join_loan(self, code: str, user_id: int) -> Dict[str, Any]:
        friendly_id = normalize_friendly_id(code)
        if not friendly_id:
            raise ValidationError("Please enter a Loan Code to join.", {"field": "code"})
        loan = self.store.find_loan_by_code(friendly_id)
        if loan is None:
            raise NotFoundError("Loan ID not found. Please check the code and try again.")
        if self.store.add_member(loan["id"], user_id):
            logger.info(f"User {user_id} joined loan {loan['id']}")
        return loan

    def leave_loan(self, loan_id: int, user_id: int) -> None:
        self.ensure_member(loan_id, user_id)
        self.store.remove_member(loan_id, user_id)
        logger.info(f"User {user_id} left loan {loan_id}")

    def get_loan(self, loan_id: int) -> Dict[str, Any]:
        return self.store.get_loan(loan_id)

    def list_loans(self, user_id: int) -> List[Dict[str, Any]]:
        return self.store.list_loans_for_user(user_id)

    def ensure_member(self, loan_id: int, user_id: int) -> None:
        """Raise NotFoundError for unknown loans and AccessDeniedError for non-members."""
        if self.store.read_loan_settings(loan_id) is None:
            raise NotFoundError(f"Loan {loan_id} not found")
        if not self.store.is_member(loan_id, user_id):
            raise AccessDeniedError("Not authorized to access this loan")

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def _settings(self, loan_id: int) -> LoanSettings:
        settings = self.store.read_loan_settings(loan_id)
        if settings is None:
            raise NotFoundError(f"Loan {loan_id} not found")
        return settings

    def get_ledger(self, loan_id: int, direction: Union[SortDirection, str] = SortDirection.DESC) -> LoanSummary:
        """Entries, current balance, last payment and payoff figures for a loan."""
        settings = self._settings(loan_id)
        return summarize_loan(settings, self.store.read_transactions(loan_id), direction)

    def watch(self, loan_id: int, on_ledger: Callable[[LoanSummary], None]) -> Callable[[], None]:
        """
        Recompute the ledger after every committed change to ``loan_id``.

        Returns:
            Unsubscribe function
        """

        def on_change(changed_loan_id: int) -> None:
            on_ledger(self.get_ledger(changed_loan_id))

        return self.store.subscribe(loan_id, on_change)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_or_update_transaction(
        self,
        loan_id: int,
        tx_input: Mapping[str, Any],
        author_id: str,
        tx_id: Optional[int] = None,
    ) -> int:
        """
        Record a new transaction, or overwrite an existing one when ``tx_id`` is given.

        Returns:
            The transaction id

        Raises:
            ValidationError: Input rejected before any write
            NotFoundError: Unknown loan or transaction
            SystemEntryError: ``tx_id`` refers to a system-generated entry
        """
        self._settings(loan_id)
        fields = validate_transaction_input(tx_input)

        if tx_id is None:
            tx_id = self.store.write_transaction(
                loan_id,
                Transaction(id=None, author_id=str(author_id), **fields),
            )
            logger.info(f"Added {fields['type'].value} of {fields['amount']} to loan {loan_id}")
        else:
            self._editable(loan_id, tx_id)
            self.store.update_transaction(loan_id, tx_id, author_id=str(author_id), **fields)
            logger.info(f"Updated transaction {tx_id} on loan {loan_id}")

        self.reconcile(loan_id)
        return tx_id

    def delete_transaction(self, loan_id: int, tx_id: int) -> None:
        self._settings(loan_id)
        self._editable(loan_id, tx_id)
        self.store.delete_transaction(loan_id, tx_id)
        logger.info(f"Deleted transaction {tx_id} from loan {loan_id}")
        self.reconcile(loan_id)

    def _editable(self, loan_id: int, tx_id: int) -> Transaction:
        existing = self.store.read_transaction(loan_id, tx_id)
        if existing is None:
            raise NotFoundError(f"Transaction {tx_id} not found")
        if existing.is_system or existing.type is TransactionType.INTEREST:
            raise SystemEntryError("System-generated entries cannot be edited or deleted")
        return existing

    def save_settings(self, loan_id: int, settings_input: Mapping[str, Any]) -> LoanSettings:
        """Validate and merge-save settings, then reconcile interest."""
        self._settings(loan_id)
        fields = validate_settings_input(settings_input)
        settings = self.store.write_settings(loan_id, **fields)
        logger.info(f"Saved settings for loan {loan_id}")
        self.reconcile(loan_id)
        return settings

    # ------------------------------------------------------------------
    # Interest and projections
    # ------------------------------------------------------------------

    def reconcile(self, loan_id: int, today: Optional[date] = None, rewrite_all: bool = False) -> Optional[InterestDelta]:
        """
        Bring stored interest accruals in line with the current data.

        Returns:
            The applied delta, or None when a pass for this loan is already
            running in this process
        """
        with self.guard.hold(loan_id) as acquired:
            if not acquired:
                return None
            logger.debug(f"Reconciling interest for loan {loan_id}")
            settings = self._settings(loan_id)
            transactions = self.store.read_transactions(loan_id)
            delta = reconcile_interest(
                settings,
                transactions,
                today=today or self.clock(),
                rewrite_all=rewrite_all,
                compound=self.compound_interest,
            )
            if delta.is_empty:
                logger.debug(f"Interest for loan {loan_id} already up to date")
                return delta
            try:
                self.store.atomic_batch(loan_id, delta)
            except Exception:
                logger.error(f"Failed to recalculate interest for loan {loan_id}")
                raise
            return delta

    def project_amortization(self, loan_id: int, monthly_payment) -> List[AmortizationRow]:
        settings = self._settings(loan_id)
        ledger = build_ledger(settings, self.store.read_transactions(loan_id))
        return project_amortization(ledger.current_balance, settings.interest_rate or 0, monthly_payment)

    def required_payment(self, loan_id: int, months: int) -> Decimal:
        """Fixed payment that clears the current balance in ``months`` months."""
        settings = self._settings(loan_id)
        ledger = build_ledger(settings, self.store.read_transactions(loan_id))
        return required_payment(ledger.current_balance, settings.interest_rate or 0, months)

    def ledger_frame(self, loan_id: int, direction: Union[SortDirection, str] = SortDirection.ASC) -> pd.DataFrame:
        settings = self._settings(loan_id)
        return ledger_to_frame(build_ledger(settings, self.store.read_transactions(loan_id)), direction)
