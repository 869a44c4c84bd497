"""
Transaction repository for database operations on the transactions table.
"""

from typing import Iterable, List, Optional

from loanshare.core.constants import TransactionType
from loanshare.db.models import Transaction
from loanshare.db.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction CRUD operations."""

    def __init__(self, session):
        super().__init__(Transaction, session)

    def get_for_loan(self, loan_id: int, tx_type: Optional[str] = None) -> List[Transaction]:
        """
        Get a loan's transactions sorted by date ascending.

        Same-date rows come back in insertion order (primary key), which the
        ledger fold relies on for a deterministic tie-break.
        """
        query = self.session.query(Transaction).filter(Transaction.loan_id == loan_id)
        if tx_type is not None:
            query = query.filter(Transaction.type == tx_type)
        return query.order_by(Transaction.date, Transaction.id).all()

    def get_interest_for_loan(self, loan_id: int) -> List[Transaction]:
        return self.get_for_loan(loan_id, TransactionType.INTEREST.value)

    def get_in_loan(self, loan_id: int, tx_id: int) -> Optional[Transaction]:
        """Get a transaction only if it belongs to the given loan."""
        return (
            self.session.query(Transaction)
            .filter(Transaction.loan_id == loan_id, Transaction.id == tx_id)
            .first()
        )

    def delete_many(self, loan_id: int, ids: Iterable[int]) -> int:
        """
        Delete the given transactions of one loan.

        Returns:
            Number of rows deleted
        """
        ids = list(ids)
        if not ids:
            return 0
        deleted = (
            self.session.query(Transaction)
            .filter(Transaction.loan_id == loan_id, Transaction.id.in_(ids))
            .delete(synchronize_session="fetch")
        )
        self.session.flush()
        return deleted
