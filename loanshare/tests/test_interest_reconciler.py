"""
Tests for monthly interest accrual reconciliation.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from itertools import count

from loanshare.core.constants import TransactionType
from loanshare.core.engine.interest_reconciler import (
    ReconciliationGuard,
    accrual_description,
    planned_accruals,
    reconcile_interest,
)
from loanshare.core.models.loan import LoanSettings, Transaction


def _settings(amount="1000", start=date(2024, 1, 1), rate="12"):
    return LoanSettings(
        initial_loan_amount=Decimal(amount),
        initial_loan_date=start,
        interest_rate=Decimal(rate) if rate is not None else None,
    )


def _payment(tx_id, day, amount):
    return Transaction(id=tx_id, date=day, type=TransactionType.PAYMENT, amount=Decimal(amount), author_id="1")


def _apply(transactions, delta, ids=None):
    """Apply a delta to an in-memory snapshot the way the store would."""
    ids = ids or count(1000)
    kept = [tx for tx in transactions if tx.id not in set(delta.to_delete)]
    return kept + [accrual.to_transaction(id=next(ids)) for accrual in delta.to_insert]


def test_one_accruing_month_inserts_one_accrual():
    delta = reconcile_interest(_settings(), [], today=date(2024, 3, 1))

    assert delta.to_delete == []
    assert len(delta.to_insert) == 1
    accrual = delta.to_insert[0]
    assert accrual.amount == Decimal("10.00")
    assert accrual.date == date(2024, 2, 29)
    assert accrual.description == "Monthly Interest - February 2024"
    assert accrual.author_id == "system"


def test_first_month_has_no_prior_balance():
    assert planned_accruals(_settings(), [], today=date(2024, 2, 1)) == []


def test_current_month_never_accrues():
    accruals = planned_accruals(_settings(), [], today=date(2024, 3, 31))
    assert [a.date for a in accruals] == [date(2024, 2, 29)]


def test_accruals_use_balance_before_month_start():
    transactions = [_payment(1, date(2024, 2, 10), "500")]
    accruals = planned_accruals(_settings(), transactions, today=date(2024, 4, 1))

    # February still sees 1000; the payment only counts from March
    assert [(a.date, a.amount) for a in accruals] == [
        (date(2024, 2, 29), Decimal("10.00")),
        (date(2024, 3, 31), Decimal("5.00")),
    ]


def test_existing_interest_is_not_part_of_the_basis():
    stored = [
        Transaction(
            id=50,
            date=date(2024, 2, 29),
            type=TransactionType.INTEREST,
            amount=Decimal("999"),
            description="stale",
            author_id="system",
        )
    ]
    accruals = planned_accruals(_settings(), stored, today=date(2024, 4, 1))
    assert [a.amount for a in accruals] == [Decimal("10.00"), Decimal("10.00")]


def test_compound_mode_carries_earlier_accruals():
    accruals = planned_accruals(_settings(), [], today=date(2024, 4, 1), compound=True)
    assert [a.amount for a in accruals] == [Decimal("10.00"), Decimal("10.10")]


def test_deleting_a_payment_regenerates_dependent_accruals():
    payment = _payment(1, date(2024, 1, 15), "500")
    settings = _settings()
    today = date(2024, 4, 1)

    snapshot = _apply([payment], reconcile_interest(settings, [payment], today=today))
    assert sorted(tx.amount for tx in snapshot if tx.type is TransactionType.INTEREST) == [
        Decimal("5.00"),
        Decimal("5.00"),
    ]

    without_payment = [tx for tx in snapshot if tx.id != payment.id]
    delta = reconcile_interest(settings, without_payment, today=today)

    assert len(delta.to_delete) == 2
    assert [a.amount for a in delta.to_insert] == [Decimal("10.00"), Decimal("10.00")]

    final = _apply(without_payment, delta)
    assert sorted(tx.amount for tx in final) == [Decimal("10.00"), Decimal("10.00")]


def test_second_pass_is_a_no_op():
    settings = _settings()
    transactions = [_payment(1, date(2024, 1, 20), "300")]
    today = date(2024, 6, 5)

    snapshot = _apply(transactions, reconcile_interest(settings, transactions, today=today))
    assert reconcile_interest(settings, snapshot, today=today).is_empty


def test_converges_from_arbitrary_stored_interest():
    settings = _settings()
    today = date(2024, 5, 2)
    junk = [
        Transaction(id=90, date=date(2024, 2, 29), type=TransactionType.INTEREST, amount=Decimal("10.00"),
                    description=accrual_description(date(2024, 2, 29)), author_id="system"),
        Transaction(id=91, date=date(2024, 2, 29), type=TransactionType.INTEREST, amount=Decimal("10.00"),
                    description=accrual_description(date(2024, 2, 29)), author_id="system"),
        Transaction(id=92, date=date(2023, 7, 31), type=TransactionType.INTEREST, amount=Decimal("3.21"),
                    description="orphan", author_id="system"),
    ]

    delta = reconcile_interest(settings, junk, today=today)
    # One February duplicate survives, the other and the orphan go
    assert sorted(delta.to_delete) == [91, 92]
    assert [a.date for a in delta.to_insert] == [date(2024, 3, 31), date(2024, 4, 30)]

    converged = _apply(junk, delta)
    assert sorted(tx.date for tx in converged) == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]
    assert reconcile_interest(settings, converged, today=today).is_empty


def test_rewrite_all_replaces_everything():
    settings = _settings()
    today = date(2024, 4, 1)
    snapshot = _apply([], reconcile_interest(settings, [], today=today))

    delta = reconcile_interest(settings, snapshot, today=today, rewrite_all=True)
    assert sorted(delta.to_delete) == sorted(tx.id for tx in snapshot)
    assert len(delta.to_insert) == 2


def test_materiality_threshold():
    # 0.50 at 1%/month is exactly half a cent: not material
    assert planned_accruals(_settings(amount="0.50"), [], today=date(2024, 3, 1)) == []

    accruals = planned_accruals(_settings(amount="0.60"), [], today=date(2024, 3, 1))
    assert [a.amount for a in accruals] == [Decimal("0.01")]


def test_no_accrual_on_zero_or_negative_balance():
    transactions = [_payment(1, date(2024, 1, 10), "1000")]
    assert planned_accruals(_settings(), transactions, today=date(2024, 6, 1)) == []

    overpaid = [_payment(1, date(2024, 1, 10), "1500")]
    assert planned_accruals(_settings(), overpaid, today=date(2024, 6, 1)) == []


def test_zero_rate_removes_stored_interest():
    stored = [
        Transaction(id=5, date=date(2024, 2, 29), type=TransactionType.INTEREST, amount=Decimal("10.00"),
                    description=accrual_description(date(2024, 2, 29)), author_id="system")
    ]
    delta = reconcile_interest(_settings(rate="0"), stored, today=date(2024, 4, 1))
    assert delta.to_delete == [5]
    assert delta.to_insert == []


def test_incomplete_settings_produce_empty_delta():
    stored = [
        Transaction(id=5, date=date(2024, 2, 29), type=TransactionType.INTEREST, amount=Decimal("10.00"),
                    description="x", author_id="system")
    ]
    assert reconcile_interest(_settings(rate=None), stored, today=date(2024, 4, 1)).is_empty
    assert reconcile_interest(None, stored, today=date(2024, 4, 1)).is_empty


def test_accrual_amount_is_rounded_half_up():
    # 1000.50 * 1% = 10.005 -> 10.01
    accruals = planned_accruals(_settings(amount="1000.50"), [], today=date(2024, 3, 1))
    assert accruals[0].amount == Decimal("10.01")


def test_accrual_converts_to_system_interest_transaction():
    accrual = planned_accruals(_settings(), [], today=date(2024, 3, 1))[0]
    tx = accrual.to_transaction(id=3)

    assert tx.type is TransactionType.INTEREST
    assert tx.is_system
    assert replace(tx, id=None).amount == Decimal("10.00")


def test_guard_skips_overlapping_pass():
    guard = ReconciliationGuard()

    with guard.hold(7) as first:
        assert first is True
        assert guard.is_running(7)
        with guard.hold(7) as second:
            assert second is False
        with guard.hold(8) as other_loan:
            assert other_loan is True

    assert not guard.is_running(7)


def test_guard_releases_on_error():
    guard = ReconciliationGuard()
    try:
        with guard.hold(1):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert not guard.is_running(1)
