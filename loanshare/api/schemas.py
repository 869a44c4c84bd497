"""
Pydantic schemas for API request/response validation.

These schemas provide:
- Input validation for API requests
- Response serialization
- OpenAPI documentation generation
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ======================
# Enums
# ======================


class SortOrder(str, Enum):
    """Ledger presentation order."""

    ASC = "asc"
    DESC = "desc"


# ======================
# Base Schemas
# ======================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        use_enum_values=True,
        json_encoders={
            Decimal: lambda v: float(v),
            date: lambda v: v.isoformat(),
            datetime: lambda v: v.isoformat(),
        },
    )


# ======================
# Loan Schemas
# ======================


class LoanCreate(BaseSchema):
    """Schema for creating a new loan."""

    app_title: str = Field(..., max_length=255, description="Display name of the loan")


class JoinLoanRequest(BaseSchema):
    """Schema for joining a loan by its share code."""

    code: str = Field(..., max_length=16, description="Share code, e.g. K7P-2QX")


class LoanSettingsUpdate(BaseSchema):
    """
    Settings form.

    Every field is optional at the schema level so that missing values are
    reported with the same messages as other validation failures.
    """

    app_title: Optional[str] = Field(None, max_length=255)
    initial_loan_amount: Optional[Decimal] = None
    initial_loan_date: Optional[date] = None
    interest_rate: Optional[Decimal] = None

    @field_validator("interest_rate", mode="before")
    @classmethod
    def strip_percent(cls, v):
        if isinstance(v, str):
            return v.strip().rstrip("%")
        return v


class LoanResponse(BaseSchema):
    """Schema for loan responses."""

    id: int
    friendly_id: str
    app_title: str
    initial_loan_amount: Optional[Decimal] = None
    initial_loan_date: Optional[date] = None
    interest_rate: Optional[Decimal] = None
    is_configured: bool = False
    is_setup_complete: bool = False


# ======================
# Ledger Schemas
# ======================


class LedgerEntryResponse(BaseSchema):
    """One ledger row with its running balance."""

    transaction_id: Optional[int] = None
    date: date
    type: str
    description: str
    amount: Decimal
    running_balance: Decimal
    author_id: Optional[str] = None
    is_editable: bool


class LedgerResponse(BaseSchema):
    """Full ledger view for a loan."""

    loan_id: int
    current_balance: Decimal
    percentage_paid_off: Decimal
    is_paid_off: bool
    last_payment: Optional[LedgerEntryResponse] = None
    entries: List[LedgerEntryResponse] = Field(default_factory=list)


# ======================
# Transaction Schemas
# ======================


class TransactionCreate(BaseSchema):
    """Schema for adding or replacing a user-entered transaction."""

    date: date
    type: str = Field(default="payment", description="payment or loanIncrease")
    amount: Decimal
    description: Optional[str] = Field(None, max_length=500)


class TransactionResponse(BaseSchema):
    id: int
    loan_id: int


class ReconcileResponse(BaseSchema):
    """Outcome of an interest reconciliation pass."""

    loan_id: int
    skipped: bool = False
    deleted: int = 0
    inserted: int = 0


# ======================
# Projection Schemas
# ======================


class ProjectionRequest(BaseSchema):
    """Schema for an amortization projection request."""

    monthly_payment: Decimal
    target_months: Optional[int] = Field(
        None, ge=1, le=600, description="Also report the payment that clears the balance in this many months"
    )


class AmortizationRowResponse(BaseSchema):
    month: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    ending_balance: Decimal


class ProjectionResponse(BaseSchema):
    """Projected payoff schedule with totals."""

    loan_id: int
    current_balance: Decimal
    interest_rate: Decimal
    monthly_payment: Decimal
    months_to_payoff: Optional[int] = None
    total_interest: Decimal
    total_principal: Decimal
    total_paid: Decimal
    truncated: bool = False
    required_payment: Optional[Decimal] = None
    schedule: List[AmortizationRowResponse] = Field(default_factory=list)


# ======================
# Error Schemas
# ======================


class ErrorResponse(BaseSchema):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    type: Optional[str] = None
