"""
Loan repository for database operations.

Provides CRUD operations, friendly-code lookup and membership queries
specific to Loan entities.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from loanshare.db.models import Loan, LoanMember
from loanshare.db.repositories.base import BaseRepository


class LoanRepository(BaseRepository[Loan]):
    """Repository for Loan database operations."""

    def __init__(self, session: Session):
        """Initialize loan repository."""
        super().__init__(Loan, session)

    def get_by_friendly_id(self, friendly_id: str) -> Optional[Loan]:
        """
        Get loan by its share code.

        Args:
            friendly_id: Code in "XXX-XXX" form (already normalized to upper case)

        Returns:
            Loan instance or None if not found
        """
        return self.session.query(Loan).filter(Loan.friendly_id == friendly_id).first()

    def get_for_user(self, user_id: int) -> List[Loan]:
        """
        Get all loans the user is a member of.

        Args:
            user_id: User ID

        Returns:
            List of Loan instances, oldest first
        """
        return (
            self.session.query(Loan)
            .join(LoanMember, LoanMember.loan_id == Loan.id)
            .filter(LoanMember.user_id == user_id)
            .order_by(Loan.id)
            .all()
        )

    def is_member(self, loan_id: int, user_id: int) -> bool:
        return (
            self.session.query(LoanMember)
            .filter(LoanMember.loan_id == loan_id, LoanMember.user_id == user_id)
            .first()
            is not None
        )

    def add_member(self, loan_id: int, user_id: int) -> bool:
        """
        Add a user to a loan's member list.

        Returns:
            True if added, False if the user was already a member
        """
        if self.is_member(loan_id, user_id):
            return False
        self.session.add(LoanMember(loan_id=loan_id, user_id=user_id))
        self.session.flush()
        return True

    def remove_member(self, loan_id: int, user_id: int) -> bool:
        """
        Remove a user from a loan's member list.

        Returns:
            True if removed, False if the user was not a member
        """
        deleted = (
            self.session.query(LoanMember)
            .filter(LoanMember.loan_id == loan_id, LoanMember.user_id == user_id)
            .delete(synchronize_session="fetch")
        )
        self.session.flush()
        return deleted > 0

    def member_ids(self, loan_id: int) -> List[int]:
        rows = self.session.query(LoanMember.user_id).filter(LoanMember.loan_id == loan_id).all()
        return [row[0] for row in rows]
