"""
Database layer for LoanShare.

Provides the relational schema, ORM models, connection management and the
transaction store consumed by the ledger engine.
"""

from .connection import get_db_manager, get_session_factory, init_db, check_connection
from .models import (
    Base,
    User,
    Loan,
    LoanMember,
    Transaction,
)

__all__ = [
    # Connection utilities
    "get_db_manager",
    "get_session_factory",
    "init_db",
    "check_connection",
    # Models
    "Base",
    "User",
    "Loan",
    "LoanMember",
    "Transaction",
]
