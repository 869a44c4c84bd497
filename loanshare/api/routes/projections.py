"""
Projection API endpoints.

Hypothetical payoff schedules for a loan's current balance. Nothing here
is persisted.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends

from loanshare.api.auth import require_loan_member
from loanshare.api.schemas import AmortizationRowResponse, ProjectionRequest, ProjectionResponse
from loanshare.core.engine.projection_engine import summarize_schedule
from loanshare.core.engine.loan_service import LoanService
from loanshare.utils.rate_utils import quantize_cents


router = APIRouter()


@router.post("/{loan_id}/projection", response_model=ProjectionResponse)
def project_loan(
    loan_id: int,
    request: ProjectionRequest,
    service: LoanService = Depends(require_loan_member),
):
    """
    Run an amortization projection for a fixed monthly payment.

    Amounts in the schedule are rounded to cents for display; the schedule
    itself is computed unrounded.
    """
    schedule = service.project_amortization(loan_id, request.monthly_payment)
    summary = service.get_ledger(loan_id)
    settings = service.get_loan(loan_id)["settings"]
    totals = summarize_schedule(schedule)

    required = None
    if request.target_months:
        required = service.required_payment(loan_id, request.target_months)

    return ProjectionResponse(
        loan_id=loan_id,
        current_balance=summary.current_balance,
        interest_rate=settings.interest_rate or Decimal("0"),
        monthly_payment=request.monthly_payment,
        months_to_payoff=totals["months_to_payoff"],
        total_interest=Decimal(str(totals["total_interest"])),
        total_principal=Decimal(str(totals["total_principal"])),
        total_paid=Decimal(str(totals["total_paid"])),
        truncated=totals["truncated"],
        required_payment=required,
        schedule=[
            AmortizationRowResponse(
                month=row.month,
                payment=quantize_cents(row.payment),
                principal=quantize_cents(row.principal),
                interest=quantize_cents(row.interest),
                ending_balance=quantize_cents(row.ending_balance),
            )
            for row in schedule
        ],
    )
