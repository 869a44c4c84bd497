"""
Loan API endpoints.

Provides REST API for creating, joining and configuring shared loans, and
for reading their ledger.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response, status

from loanshare.api.auth import get_current_user, require_loan_member
from loanshare.api.dependencies import get_loan_service
from loanshare.api.schemas import (
    JoinLoanRequest,
    LedgerEntryResponse,
    LedgerResponse,
    LoanCreate,
    LoanResponse,
    LoanSettingsUpdate,
    ReconcileResponse,
    SortOrder,
)
from loanshare.core.engine.loan_service import LoanService
from loanshare.core.models.loan import LedgerEntry
from loanshare.db.models import User


router = APIRouter()


def _loan_response(loan: Dict[str, Any]) -> LoanResponse:
    settings = loan["settings"]
    return LoanResponse(
        id=loan["id"],
        friendly_id=loan["friendly_id"],
        app_title=settings.app_title,
        initial_loan_amount=settings.initial_loan_amount,
        initial_loan_date=settings.initial_loan_date,
        interest_rate=settings.interest_rate,
        is_configured=settings.is_configured,
        is_setup_complete=settings.is_setup_complete,
    )


def _entry_response(entry: Optional[LedgerEntry]) -> Optional[LedgerEntryResponse]:
    if entry is None:
        return None
    return LedgerEntryResponse(
        transaction_id=entry.transaction_id,
        date=entry.date,
        type=entry.type.value,
        description=entry.description,
        amount=entry.amount,
        running_balance=entry.running_balance,
        author_id=entry.author_id,
        is_editable=entry.is_editable,
    )


@router.post("/", response_model=LoanResponse, status_code=status.HTTP_201_CREATED)
def create_loan(
    loan: LoanCreate,
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
):
    created = service.create_loan(loan.app_title, current_user.id)
    return _loan_response(service.get_loan(created["id"]))


@router.get("/", response_model=List[LoanResponse])
def list_loans(
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
):
    return [_loan_response(loan) for loan in service.list_loans(current_user.id)]


@router.post("/join", response_model=LoanResponse)
def join_loan(
    request: JoinLoanRequest,
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
):
    return _loan_response(service.join_loan(request.code, current_user.id))


@router.get("/{loan_id}", response_model=LoanResponse)
def get_loan(loan_id: int, service: LoanService = Depends(require_loan_member)):
    return _loan_response(service.get_loan(loan_id))


@router.post("/{loan_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_loan(
    loan_id: int,
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
):
    service.leave_loan(loan_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{loan_id}/settings", response_model=LoanResponse)
def save_settings(
    loan_id: int,
    settings: LoanSettingsUpdate,
    service: LoanService = Depends(require_loan_member),
):
    service.save_settings(loan_id, settings.model_dump())
    return _loan_response(service.get_loan(loan_id))


@router.get("/{loan_id}/ledger", response_model=LedgerResponse)
def get_ledger(
    loan_id: int,
    sort: SortOrder = SortOrder.DESC,
    service: LoanService = Depends(require_loan_member),
):
    summary = service.get_ledger(loan_id, sort)
    return LedgerResponse(
        loan_id=loan_id,
        current_balance=summary.current_balance,
        percentage_paid_off=summary.percentage_paid_off,
        is_paid_off=summary.is_paid_off,
        last_payment=_entry_response(summary.last_payment),
        entries=[_entry_response(entry) for entry in summary.entries],
    )


@router.get("/{loan_id}/ledger/export")
def export_ledger(loan_id: int, service: LoanService = Depends(require_loan_member)):
    """Ledger as CSV, oldest entry first."""
    df = service.ledger_frame(loan_id)
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="loan-{loan_id}-ledger.csv"'},
    )


@router.post("/{loan_id}/reconcile", response_model=ReconcileResponse)
def reconcile_interest(loan_id: int, service: LoanService = Depends(require_loan_member)):
    delta = service.reconcile(loan_id)
    if delta is None:
        return ReconcileResponse(loan_id=loan_id, skipped=True)
    return ReconcileResponse(
        loan_id=loan_id,
        deleted=len(delta.to_delete),
        inserted=len(delta.to_insert),
    )
