"""
Tests for user resolution in the auth dependencies.

The shared session factory already holds user 1 ("Alice") and user 2, so a
first lookup that misses simulates a concurrent request creating the row
between the lookup and the insert.
"""

import inspect

from loanshare.api import auth
from loanshare.db.models import User


def _miss_first_lookup(monkeypatch, db, method_name):
    real = getattr(db, method_name)
    calls = []

    def lookup(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real(*args, **kwargs)

    monkeypatch.setattr(db, method_name, lookup)
    return calls


def test_default_user_is_created_once(session_factory):
    db = session_factory()
    try:
        db.delete(db.get(User, auth.DEFAULT_USER_ID))
        db.commit()

        user = auth._get_or_create_default_user(db)
        assert user.id == auth.DEFAULT_USER_ID
        assert user.name == auth.DEFAULT_USER_NAME

        assert auth._get_or_create_default_user(db).id == auth.DEFAULT_USER_ID
    finally:
        db.close()


def test_default_user_created_concurrently(session_factory, monkeypatch):
    db = session_factory()
    try:
        calls = _miss_first_lookup(monkeypatch, db, "get")

        user = auth._get_or_create_default_user(db)

        # The insert lost the race; the existing row is returned instead
        assert len(calls) == 2
        assert user.id == 1
        assert user.name == "Alice"
    finally:
        db.close()


def test_clerk_user_created_concurrently(session_factory, monkeypatch):
    other = session_factory()
    try:
        other.add(User(name="carol@example.com", clerk_id="user_carol", auth_provider="clerk"))
        other.commit()
    finally:
        other.close()

    db = session_factory()
    try:
        # Simulate a lookup that ran before the other request committed
        real_query = db.query
        calls = []

        class _EmptyQuery:
            def filter_by(self, **kwargs):
                return self

            def first(self):
                return None

        def query(*entities):
            calls.append(entities)
            return _EmptyQuery() if len(calls) == 1 else real_query(*entities)

        monkeypatch.setattr(db, "query", query)

        user = auth._get_or_create_user(db, "user_carol", "carol@example.com")
        assert user.clerk_id == "user_carol"
        assert user.name == "carol@example.com"
        assert db.query(User).filter_by(clerk_id="user_carol").count() == 1
    finally:
        db.close()


def test_get_current_user_runs_in_threadpool():
    # A plain function dependency keeps blocking database I/O off the event loop
    assert not inspect.iscoroutinefunction(auth.get_current_user)
    assert not inspect.iscoroutinefunction(auth.require_loan_member)
