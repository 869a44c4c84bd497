"""
Database repository layer.

Provides data access patterns using the Repository Pattern.
"""

from loanshare.db.repositories.base import BaseRepository
from loanshare.db.repositories.loan_repository import LoanRepository
from loanshare.db.repositories.transaction_repository import TransactionRepository

__all__ = [
    "BaseRepository",
    "LoanRepository",
    "TransactionRepository",
]
