"""
Basic tests for LoanShare domain models.

Tests instantiation, validation and serialization of settings and
transactions.
"""

import pytest
from datetime import date
from decimal import Decimal

from loanshare.core.constants import SYSTEM_AUTHOR_ID, TransactionType
from loanshare.core.models import InterestDelta, LoanSettings, Transaction
from loanshare.utils.error_utils import ValidationError


class TestLoanSettings:
    def test_defaults_are_unconfigured(self):
        settings = LoanSettings()
        assert not settings.is_configured
        assert not settings.is_setup_complete

    def test_rate_needed_for_setup(self):
        settings = LoanSettings(initial_loan_amount=Decimal("0"), initial_loan_date=date(2024, 1, 1))
        assert settings.is_configured
        assert not settings.is_setup_complete

    def test_serialization_round_trip(self):
        settings = LoanSettings.from_dict(
            {
                "app_title": "Boat",
                "initial_loan_amount": "2500.00",
                "initial_loan_date": "2024-03-05",
                "interest_rate": 4.5,
            }
        )
        assert settings.initial_loan_amount == Decimal("2500.00")
        assert settings.initial_loan_date == date(2024, 3, 5)
        assert settings.interest_rate == Decimal("4.5")
        assert LoanSettings.from_dict(settings.to_dict()) == settings


class TestTransaction:
    def test_type_string_is_coerced(self):
        tx = Transaction(id=1, date=date(2024, 2, 1), type="loanIncrease", amount="50")
        assert tx.type is TransactionType.LOAN_INCREASE
        assert tx.amount == Decimal("50")
        assert tx.signed_amount == Decimal("50")

    def test_payment_is_signed_negative(self):
        tx = Transaction(id=1, date=date(2024, 2, 1), type=TransactionType.PAYMENT, amount=Decimal("50"))
        assert tx.signed_amount == Decimal("-50")

    @pytest.mark.parametrize("amount", [0, -1, "x"])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            Transaction(id=1, date=date(2024, 2, 1), type=TransactionType.PAYMENT, amount=amount)

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            Transaction(id=1, date=date(2024, 2, 1), type="refund", amount=5)

    def test_system_author(self):
        tx = Transaction(
            id=1, date=date(2024, 2, 29), type=TransactionType.INTEREST, amount=Decimal("1"), author_id=SYSTEM_AUTHOR_ID
        )
        assert tx.is_system

    def test_to_dict(self):
        tx = Transaction(id=9, date=date(2024, 2, 1), type=TransactionType.PAYMENT, amount=Decimal("12.50"),
                         description="Lunch", author_id="3")
        assert tx.to_dict() == {
            "id": 9,
            "date": "2024-02-01",
            "type": "payment",
            "amount": "12.50",
            "description": "Lunch",
            "author_id": "3",
        }
        assert Transaction.from_dict(tx.to_dict()) == tx


def test_empty_delta():
    assert InterestDelta().is_empty
    assert not InterestDelta(to_delete=[1]).is_empty
