"""
Shared fixtures for the LoanShare test suite.

Store and service tests run against an in-memory SQLite database with
foreign keys enforced, seeded with two users.
"""

import os

# Keep test runs from writing loanshare.log into the working tree
os.environ.setdefault("LOANSHARE_NO_LOG_FILE", "1")

from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from loanshare.core.engine.interest_reconciler import ReconciliationGuard
from loanshare.core.engine.loan_service import LoanService
from loanshare.db.models import Base, User
from loanshare.db.store import TransactionStore

FIXED_TODAY = date(2024, 4, 10)


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = factory()
    try:
        session.add_all([
            User(id=1, name="Alice", email="alice@loanshare.local"),
            User(id=2, name="Bob", email="bob@loanshare.local"),
        ])
        session.commit()
    finally:
        session.close()
    return engine, factory


@pytest.fixture
def session_factory():
    engine, factory = make_session_factory()
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return TransactionStore(session_factory)


@pytest.fixture
def service(store):
    return LoanService(store, guard=ReconciliationGuard(), clock=lambda: FIXED_TODAY)
