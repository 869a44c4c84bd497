"""
Transaction API endpoints.

Users record payments and balance increases; interest entries are written
only by the reconciler and are rejected here.
"""

from fastapi import APIRouter, Depends, Response, status

from loanshare.api.auth import get_current_user, require_loan_member
from loanshare.api.schemas import TransactionCreate, TransactionResponse
from loanshare.core.engine.loan_service import LoanService
from loanshare.db.models import User


router = APIRouter()


@router.post("/{loan_id}/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def add_transaction(
    loan_id: int,
    transaction: TransactionCreate,
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(require_loan_member),
):
    tx_id = service.add_or_update_transaction(loan_id, transaction.model_dump(), str(current_user.id))
    return TransactionResponse(id=tx_id, loan_id=loan_id)


@router.put("/{loan_id}/transactions/{tx_id}", response_model=TransactionResponse)
def update_transaction(
    loan_id: int,
    tx_id: int,
    transaction: TransactionCreate,
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(require_loan_member),
):
    service.add_or_update_transaction(loan_id, transaction.model_dump(), str(current_user.id), tx_id=tx_id)
    return TransactionResponse(id=tx_id, loan_id=loan_id)


@router.delete("/{loan_id}/transactions/{tx_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    loan_id: int,
    tx_id: int,
    service: LoanService = Depends(require_loan_member),
):
    service.delete_transaction(loan_id, tx_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
