"""
Transaction store for LoanShare.

Wraps the SQLAlchemy repositories behind the document-store style contract
the ledger engine consumes: read a settings/transactions snapshot, write
single records, apply an interest delta atomically, and subscribe to change
notifications for a loan.

Every public method runs in its own database transaction and converts
database failures into ``StoreError``. Subscribers are notified only after
a successful commit.
"""

import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Callable, Dict, Generator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from loanshare.core.constants import FRIENDLY_ID_MAX_ATTEMPTS
from loanshare.core.models.loan import InterestDelta, LoanSettings, Transaction
from loanshare.db import models
from loanshare.db.repositories import LoanRepository, TransactionRepository
from loanshare.utils.error_utils import NotFoundError, StoreError
from loanshare.utils.friendly_id import generate_friendly_id
from loanshare.utils.rate_utils import quantize_cents

logger = logging.getLogger(__name__)

ChangeListener = Callable[[int], None]
Unsubscribe = Callable[[], None]


def to_settings(loan: models.Loan) -> LoanSettings:
    """Convert an ORM loan row into a LoanSettings snapshot."""
    return LoanSettings(
        initial_loan_amount=Decimal(loan.initial_loan_amount) if loan.initial_loan_amount is not None else None,
        initial_loan_date=loan.initial_loan_date,
        interest_rate=Decimal(loan.interest_rate) if loan.interest_rate is not None else None,
        app_title=loan.app_title,
        created_at=loan.created_at,
        last_updated=loan.last_updated,
    )


def to_transaction(row: models.Transaction) -> Transaction:
    """Convert an ORM transaction row into a domain Transaction."""
    return Transaction(
        id=row.id,
        date=row.date,
        type=row.type,
        amount=Decimal(row.amount),
        description=row.description or "",
        author_id=row.author_id,
        created_at=row.created_at,
    )


class TransactionStore:
    """
    Loan settings and transactions persisted through SQLAlchemy.

    Usage:
        store = TransactionStore(get_session_factory())
        unsubscribe = store.subscribe(loan_id, lambda loan_id: ...)
        settings = store.read_loan_settings(loan_id)
        transactions = store.read_transactions(loan_id)
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._listeners: Dict[int, List[ChangeListener]] = {}
        self._listeners_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Session and notification plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _session(self, action: str) -> Generator[Session, None, None]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Store failure during {action}: {e}")
            raise StoreError(f"Failed to {action}", {"error": str(e)}) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def subscribe(self, loan_id: int, on_change: ChangeListener) -> Unsubscribe:
        """
        Register a callback fired after every committed write to ``loan_id``.

        Returns:
            A function that removes the callback
        """
        with self._listeners_lock:
            self._listeners.setdefault(loan_id, []).append(on_change)

        def unsubscribe() -> None:
            with self._listeners_lock:
                listeners = self._listeners.get(loan_id, [])
                if on_change in listeners:
                    listeners.remove(on_change)
                if not listeners:
                    self._listeners.pop(loan_id, None)

        return unsubscribe

    def _notify(self, loan_id: int) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners.get(loan_id, []))
        for listener in listeners:
            try:
                listener(loan_id)
            except Exception:
                # One failing subscriber must not block the others
                logger.exception(f"Change listener failed for loan {loan_id}")

    # ------------------------------------------------------------------
    # Loans and membership
    # ------------------------------------------------------------------

    def create_loan(self, app_title: str, owner_id: int) -> Dict[str, Any]:
        """
        Create a loan with a unique friendly code and its owner as first member.

        Returns:
            Dict with ``id`` and ``friendly_id``
        """
        with self._session("create loan") as session:
            repo = LoanRepository(session)
            for _ in range(FRIENDLY_ID_MAX_ATTEMPTS):
                friendly_id = generate_friendly_id()
                if repo.get_by_friendly_id(friendly_id) is None:
                    break
            else:
                raise StoreError("Could not allocate a unique loan code")

            loan = repo.create(friendly_id=friendly_id, app_title=app_title)
            repo.add_member(loan.id, owner_id)
            result = {"id": loan.id, "friendly_id": loan.friendly_id}
        logger.info(f"Created loan {result['id']} ({result['friendly_id']})")
        return result

    def get_loan(self, loan_id: int) -> Dict[str, Any]:
        with self._session("read loan") as session:
            loan = LoanRepository(session).get_by_id(loan_id)
            if loan is None:
                raise NotFoundError(f"Loan {loan_id} not found")
            return self._loan_dict(loan)

    def find_loan_by_code(self, friendly_id: str) -> Optional[Dict[str, Any]]:
        with self._session("look up loan code") as session:
            loan = LoanRepository(session).get_by_friendly_id(friendly_id)
            return self._loan_dict(loan) if loan else None

    def list_loans_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        with self._session("list loans") as session:
            return [self._loan_dict(loan) for loan in LoanRepository(session).get_for_user(user_id)]

    def is_member(self, loan_id: int, user_id: int) -> bool:
        with self._session("check membership") as session:
            return LoanRepository(session).is_member(loan_id, user_id)

    def add_member(self, loan_id: int, user_id: int) -> bool:
        with self._session("join loan") as session:
            return LoanRepository(session).add_member(loan_id, user_id)

    def remove_member(self, loan_id: int, user_id: int) -> bool:
        with self._session("leave loan") as session:
            return LoanRepository(session).remove_member(loan_id, user_id)

    @staticmethod
    def _loan_dict(loan: models.Loan) -> Dict[str, Any]:
        return {
            "id": loan.id,
            "friendly_id": loan.friendly_id,
            "settings": to_settings(loan),
        }

    # ------------------------------------------------------------------
    # Snapshot reads
    # ------------------------------------------------------------------

    def read_loan_settings(self, loan_id: int) -> Optional[LoanSettings]:
        with self._session("read loan settings") as session:
            loan = LoanRepository(session).get_by_id(loan_id)
            return to_settings(loan) if loan else None

    def read_transactions(self, loan_id: int) -> List[Transaction]:
        """All transactions of a loan, date ascending, insertion order within a date."""
        with self._session("read transactions") as session:
            return [to_transaction(row) for row in TransactionRepository(session).get_for_loan(loan_id)]

    def read_transaction(self, loan_id: int, tx_id: int) -> Optional[Transaction]:
        with self._session("read transaction") as session:
            row = TransactionRepository(session).get_in_loan(loan_id, tx_id)
            return to_transaction(row) if row else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_settings(self, loan_id: int, **fields) -> LoanSettings:
        """Merge-style update: only the given fields change."""
        allowed = {"app_title", "initial_loan_amount", "initial_loan_date", "interest_rate"}
        with self._session("save settings") as session:
            repo = LoanRepository(session)
            loan = repo.get_by_id(loan_id)
            if loan is None:
                raise NotFoundError(f"Loan {loan_id} not found")
            repo.update(loan_id, **{k: v for k, v in fields.items() if k in allowed})
            settings = to_settings(loan)
        self._notify(loan_id)
        return settings

    def write_transaction(self, loan_id: int, transaction: Transaction) -> int:
        with self._session("save transaction") as session:
            row = TransactionRepository(session).create(**self._row_fields(loan_id, transaction))
            tx_id = row.id
        self._notify(loan_id)
        return tx_id

    def update_transaction(self, loan_id: int, tx_id: int, **fields) -> Transaction:
        with self._session("update transaction") as session:
            repo = TransactionRepository(session)
            row = repo.get_in_loan(loan_id, tx_id)
            if row is None:
                raise NotFoundError(f"Transaction {tx_id} not found")
            if "amount" in fields:
                fields["amount"] = quantize_cents(fields["amount"])
            if "type" in fields and hasattr(fields["type"], "value"):
                fields["type"] = fields["type"].value
            repo.update(row.id, **fields)
            updated = to_transaction(row)
        self._notify(loan_id)
        return updated

    def delete_transaction(self, loan_id: int, tx_id: int) -> None:
        with self._session("delete transaction") as session:
            if TransactionRepository(session).delete_many(loan_id, [tx_id]) == 0:
                raise NotFoundError(f"Transaction {tx_id} not found")
        self._notify(loan_id)

    def atomic_batch(self, loan_id: int, delta: InterestDelta) -> None:
        """
        Apply an interest delta all-or-nothing.

        Deletes and inserts share one database transaction; if any statement
        fails the whole batch is rolled back and ``StoreError`` is raised.
        """
        if delta.is_empty:
            return
        with self._session("apply interest batch") as session:
            repo = TransactionRepository(session)
            deleted = repo.delete_many(loan_id, delta.to_delete)
            if deleted != len(delta.to_delete):
                # A concurrent pass already removed some rows; this snapshot is stale
                raise StoreError(
                    "Interest batch is stale",
                    {"expected_deletes": len(delta.to_delete), "deleted": deleted},
                )
            for accrual in delta.to_insert:
                repo.create(**self._row_fields(loan_id, accrual.to_transaction()))
        logger.info(
            f"Applied interest batch to loan {loan_id}: "
            f"{len(delta.to_delete)} deleted, {len(delta.to_insert)} inserted"
        )
        self._notify(loan_id)

    @staticmethod
    def _row_fields(loan_id: int, transaction: Transaction) -> Dict[str, Any]:
        return {
            "loan_id": loan_id,
            "date": transaction.date,
            "type": transaction.type.value,
            "amount": quantize_cents(transaction.amount),
            "description": transaction.description,
            "author_id": transaction.author_id,
        }
