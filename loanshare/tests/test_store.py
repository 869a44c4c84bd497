"""
Tests for the SQLAlchemy-backed transaction store.
"""

import re
from datetime import date
from decimal import Decimal

import pytest

from loanshare.core.constants import TransactionType
from loanshare.core.models.loan import InterestAccrual, InterestDelta, Transaction
from loanshare.utils.error_utils import NotFoundError, StoreError


def _configured_loan(store, owner_id=1):
    loan = store.create_loan("Shared car", owner_id)
    store.write_settings(
        loan["id"],
        initial_loan_amount=Decimal("1000"),
        initial_loan_date=date(2024, 1, 1),
        interest_rate=Decimal("12"),
    )
    return loan["id"]


def _payment(day, amount, author_id="1"):
    return Transaction(id=None, date=day, type=TransactionType.PAYMENT, amount=Decimal(amount), author_id=author_id)


class TestLoans:
    def test_create_loan_assigns_code_and_owner(self, store):
        loan = store.create_loan("Shared car", 1)

        assert re.fullmatch(r"[A-Z2-9]{3}-[A-Z2-9]{3}", loan["friendly_id"])
        assert store.is_member(loan["id"], 1)
        assert not store.is_member(loan["id"], 2)

        settings = store.read_loan_settings(loan["id"])
        assert settings.app_title == "Shared car"
        assert not settings.is_configured

    def test_codes_are_unique(self, store):
        codes = {store.create_loan(f"Loan {i}", 1)["friendly_id"] for i in range(20)}
        assert len(codes) == 20

    def test_find_by_code_and_membership(self, store):
        loan = store.create_loan("Trip", 1)
        found = store.find_loan_by_code(loan["friendly_id"])
        assert found["id"] == loan["id"]
        assert store.find_loan_by_code("ZZZ-ZZZ") is None

        assert store.add_member(loan["id"], 2) is True
        assert store.add_member(loan["id"], 2) is False
        assert [l["id"] for l in store.list_loans_for_user(2)] == [loan["id"]]

        assert store.remove_member(loan["id"], 2) is True
        assert store.list_loans_for_user(2) == []

    def test_get_missing_loan(self, store):
        with pytest.raises(NotFoundError):
            store.get_loan(404)
        assert store.read_loan_settings(404) is None

    def test_write_settings_merges(self, store):
        loan_id = _configured_loan(store)
        store.write_settings(loan_id, interest_rate=Decimal("5.25"))

        settings = store.read_loan_settings(loan_id)
        assert settings.initial_loan_amount == Decimal("1000")
        assert settings.initial_loan_date == date(2024, 1, 1)
        assert settings.interest_rate == Decimal("5.25")
        assert settings.is_setup_complete


class TestTransactions:
    def test_write_and_read_sorted(self, store):
        loan_id = _configured_loan(store)
        late = store.write_transaction(loan_id, _payment(date(2024, 3, 1), "50"))
        early = store.write_transaction(loan_id, _payment(date(2024, 2, 1), "25.5"))
        same_day = store.write_transaction(loan_id, _payment(date(2024, 2, 1), "10"))

        transactions = store.read_transactions(loan_id)
        assert [tx.id for tx in transactions] == [early, same_day, late]
        assert transactions[0].amount == Decimal("25.50")
        assert transactions[0].type is TransactionType.PAYMENT

    def test_update_transaction(self, store):
        loan_id = _configured_loan(store)
        tx_id = store.write_transaction(loan_id, _payment(date(2024, 2, 1), "50"))

        store.update_transaction(loan_id, tx_id, amount=Decimal("75.555"), type=TransactionType.LOAN_INCREASE)

        tx = store.read_transaction(loan_id, tx_id)
        assert tx.amount == Decimal("75.56")
        assert tx.type is TransactionType.LOAN_INCREASE

    def test_transactions_are_scoped_to_their_loan(self, store):
        loan_a = _configured_loan(store)
        loan_b = _configured_loan(store)
        tx_id = store.write_transaction(loan_a, _payment(date(2024, 2, 1), "50"))

        assert store.read_transaction(loan_b, tx_id) is None
        with pytest.raises(NotFoundError):
            store.delete_transaction(loan_b, tx_id)
        assert store.read_transactions(loan_b) == []

    def test_delete_transaction(self, store):
        loan_id = _configured_loan(store)
        tx_id = store.write_transaction(loan_id, _payment(date(2024, 2, 1), "50"))

        store.delete_transaction(loan_id, tx_id)
        assert store.read_transactions(loan_id) == []
        with pytest.raises(NotFoundError):
            store.delete_transaction(loan_id, tx_id)


class TestAtomicBatch:
    def _accrual(self, day, amount):
        return InterestAccrual(date=day, amount=Decimal(amount), description=f"Monthly Interest - {day:%B %Y}")

    def test_batch_deletes_and_inserts(self, store):
        loan_id = _configured_loan(store)
        store.atomic_batch(loan_id, InterestDelta(to_insert=[self._accrual(date(2024, 2, 29), "10.00")]))
        stored = store.read_transactions(loan_id)
        assert len(stored) == 1 and stored[0].is_system

        store.atomic_batch(
            loan_id,
            InterestDelta(
                to_delete=[stored[0].id],
                to_insert=[self._accrual(date(2024, 2, 29), "5.00"), self._accrual(date(2024, 3, 31), "5.00")],
            ),
        )
        assert [tx.amount for tx in store.read_transactions(loan_id)] == [Decimal("5.00"), Decimal("5.00")]

    def test_stale_batch_is_rolled_back(self, store):
        loan_id = _configured_loan(store)
        tx_id = store.write_transaction(loan_id, _payment(date(2024, 2, 1), "50"))

        with pytest.raises(StoreError):
            store.atomic_batch(
                loan_id,
                InterestDelta(to_delete=[tx_id, 9999], to_insert=[self._accrual(date(2024, 2, 29), "10.00")]),
            )

        # Neither the delete nor the insert survived
        assert [tx.id for tx in store.read_transactions(loan_id)] == [tx_id]

    def test_empty_batch_does_not_notify(self, store):
        loan_id = _configured_loan(store)
        calls = []
        store.subscribe(loan_id, calls.append)

        store.atomic_batch(loan_id, InterestDelta())
        assert calls == []


class TestSubscriptions:
    def test_writes_notify_subscribers(self, store):
        loan_id = _configured_loan(store)
        calls = []
        unsubscribe = store.subscribe(loan_id, calls.append)

        tx_id = store.write_transaction(loan_id, _payment(date(2024, 2, 1), "50"))
        store.delete_transaction(loan_id, tx_id)
        assert calls == [loan_id, loan_id]

        unsubscribe()
        store.write_transaction(loan_id, _payment(date(2024, 2, 1), "50"))
        assert calls == [loan_id, loan_id]

    def test_other_loans_are_not_notified(self, store):
        loan_a = _configured_loan(store)
        loan_b = _configured_loan(store)
        calls = []
        store.subscribe(loan_b, calls.append)

        store.write_transaction(loan_a, _payment(date(2024, 2, 1), "50"))
        assert calls == []

    def test_failing_listener_does_not_block_others(self, store):
        loan_id = _configured_loan(store)
        calls = []

        def broken(_loan_id):
            raise RuntimeError("listener bug")

        store.subscribe(loan_id, broken)
        store.subscribe(loan_id, calls.append)

        store.write_transaction(loan_id, _payment(date(2024, 2, 1), "50"))
        assert calls == [loan_id]

    def test_failed_write_does_not_notify(self, store):
        loan_id = _configured_loan(store)
        calls = []
        store.subscribe(loan_id, calls.append)

        with pytest.raises(NotFoundError):
            store.delete_transaction(loan_id, 12345)
        assert calls == []
