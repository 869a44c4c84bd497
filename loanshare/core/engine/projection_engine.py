"""
Amortization projection engine for LoanShare.

Projects how a loan's current balance would be paid down by a fixed,
hypothetical monthly payment. Stateless: nothing here is persisted.
"""

from decimal import Decimal
from typing import Any, Dict, List

import numpy_financial as npf
import pandas as pd

from loanshare.core.constants import MAX_PROJECTION_MONTHS
from loanshare.core.models.loan import AmortizationRow
from loanshare.utils.error_utils import InvalidPayment, PaymentTooSmall, ValidationError
from loanshare.utils.rate_utils import (
    Number,
    annual_pct_to_monthly_decimal,
    quantize_cents,
    to_amount,
    to_decimal,
)

ZERO = Decimal("0")


def project_amortization(
    current_balance: Number,
    annual_rate_pct: Number,
    monthly_payment: Number,
    max_months: int = MAX_PROJECTION_MONTHS,
) -> List[AmortizationRow]:
    """
    Month-by-month payoff schedule for a fixed monthly payment.

    Args:
        current_balance: Outstanding balance the schedule starts from
        annual_rate_pct: Annual interest rate as percentage
        monthly_payment: Hypothetical fixed payment
        max_months: Runaway guard; the schedule is truncated, not failed,
            when it is reached

    Returns:
        Rows until the balance reaches zero (final ending balance clamped
        to 0) or ``max_months`` rows have been produced

    Raises:
        InvalidPayment: If the payment is not a positive number below MAX_AMOUNT
        PaymentTooSmall: If the payment does not exceed the first month's interest
    """
    try:
        payment = to_amount(monthly_payment, "monthly_payment")
    except ValidationError:
        raise InvalidPayment("Please enter a valid monthly payment amount.", {"field": "monthly_payment"})
    if payment <= 0:
        raise InvalidPayment("Please enter a valid monthly payment amount.", {"field": "monthly_payment"})

    balance = to_decimal(current_balance, "current_balance")
    monthly_rate = annual_pct_to_monthly_decimal(annual_rate_pct or 0)

    if payment <= balance * monthly_rate:
        raise PaymentTooSmall(
            "Monthly payment must be greater than the interest to pay off the loan.",
            {"monthly_payment": str(payment), "monthly_interest": str(balance * monthly_rate)},
        )

    schedule: List[AmortizationRow] = []
    month = 1
    while balance > 0 and month <= max_months:
        interest = balance * monthly_rate
        principal = payment - interest
        balance -= principal
        schedule.append(
            AmortizationRow(
                month=month,
                payment=payment,
                principal=principal,
                interest=interest,
                ending_balance=balance if balance > 0 else ZERO,
            )
        )
        month += 1

    return schedule


def required_payment(current_balance: Number, annual_rate_pct: Number, months: int) -> Decimal:
    """
    Fixed monthly payment that clears ``current_balance`` in ``months`` months.

    Uses the standard annuity formula (numpy-financial ``pmt``), rounded up
    to the next cent so the schedule actually reaches zero.
    """
    if months <= 0:
        raise ValidationError("Number of months must be positive", {"field": "months"})
    balance = to_decimal(current_balance, "current_balance")
    if balance <= 0:
        return ZERO
    monthly_rate = float(annual_pct_to_monthly_decimal(annual_rate_pct or 0))
    payment = -npf.pmt(monthly_rate, months, float(balance))
    cents = quantize_cents(Decimal(str(payment)))
    if cents < Decimal(str(payment)):
        cents += Decimal("0.01")
    return cents


def schedule_to_frame(schedule: List[AmortizationRow]) -> pd.DataFrame:
    """
    Tabular view of an amortization schedule.

    Returns:
        DataFrame with columns: month, payment, principal, interest, ending_balance
    """
    columns = ["month", "payment", "principal", "interest", "ending_balance"]
    rows = [
        {
            "month": row.month,
            "payment": float(row.payment),
            "principal": float(row.principal),
            "interest": float(row.interest),
            "ending_balance": float(row.ending_balance),
        }
        for row in schedule
    ]
    return pd.DataFrame(rows, columns=columns)


def summarize_schedule(schedule: List[AmortizationRow], max_months: int = MAX_PROJECTION_MONTHS) -> Dict[str, Any]:
    """Totals for a schedule: months, interest and principal paid, truncation flag."""
    df = schedule_to_frame(schedule)
    final_balance = schedule[-1].ending_balance if schedule else ZERO
    return {
        "months_to_payoff": int(len(df)) if final_balance <= 0 else None,
        "total_interest": round(float(df["interest"].sum()), 2),
        "total_principal": round(float(df["principal"].sum()), 2),
        "total_paid": round(float(df["payment"].sum()), 2),
        "truncated": bool(schedule) and final_balance > 0 and len(schedule) >= max_months,
    }
