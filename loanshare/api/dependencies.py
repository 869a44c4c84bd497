"""
FastAPI dependencies shared by the routers.

Tests override ``get_session_factory`` to point every dependency below at
an in-memory database.
"""

import os
from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from loanshare.core.engine.interest_reconciler import ReconciliationGuard
from loanshare.core.engine.loan_service import LoanService
from loanshare.db.connection import get_session_factory
from loanshare.db.store import TransactionStore

# One guard per process so overlapping requests for a loan skip rather than race
_reconciliation_guard = ReconciliationGuard()

COMPOUND_INTEREST = os.getenv("LOANSHARE_COMPOUND_INTEREST", "false").lower() in ("1", "true", "yes")


def get_db_session(factory: sessionmaker = Depends(get_session_factory)) -> Generator[Session, None, None]:
    """
    Request-scoped database session, committed when the request succeeds.

    Only authentication uses it directly (to look up or create the caller's
    ``User``); ledger operations go through ``TransactionStore`` sessions.
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_loan_service(factory: sessionmaker = Depends(get_session_factory)) -> LoanService:
    return LoanService(
        TransactionStore(factory),
        guard=_reconciliation_guard,
        compound_interest=COMPOUND_INTEREST,
    )
