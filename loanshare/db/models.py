"""
SQLAlchemy ORM models for the LoanShare schema.

These models back the transaction store:
- Loans with their settings and friendly share code
- Loan membership (who may read and write a loan)
- Dated transactions per loan
- Automatic timestamp management
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# ======================
# Core Tables
# ======================


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, unique=True)
    clerk_id = Column(Text, unique=True, index=True, nullable=True)
    auth_provider = Column(Text, default="clerk")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    is_active = Column(Boolean, default=True)

    # Relationships
    memberships = relationship("LoanMember", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', email='{self.email}')>"


class Loan(Base):
    __tablename__ = "loans"

    id = Column(Integer, primary_key=True)
    friendly_id = Column(Text, nullable=False, unique=True)
    app_title = Column(Text, nullable=False)
    initial_loan_amount = Column(Numeric(15, 2))
    initial_loan_date = Column(Date)
    interest_rate = Column(Numeric(7, 4))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    members = relationship("LoanMember", back_populates="loan", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="loan", cascade="all, delete-orphan")

    # Constraints
    __table_args__ = (
        CheckConstraint("initial_loan_amount IS NULL OR initial_loan_amount >= 0", name="ck_loan_initial_amount"),
        CheckConstraint(
            "interest_rate IS NULL OR (interest_rate >= 0 AND interest_rate <= 100)",
            name="ck_loan_interest_rate",
        ),
        Index("idx_loans_friendly_id", "friendly_id"),
    )

    def __repr__(self):
        return f"<Loan(id={self.id}, title='{self.app_title}', code='{self.friendly_id}')>"


class LoanMember(Base):
    __tablename__ = "loan_members"

    id = Column(Integer, primary_key=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    loan = relationship("Loan", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("loan_id", "user_id", name="uq_loan_member"),
        Index("idx_loan_members_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<LoanMember(loan_id={self.loan_id}, user_id={self.user_id})>"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    loan_id = Column(Integer, ForeignKey("loans.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    type = Column(Text, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, default="")
    author_id = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    loan = relationship("Loan", back_populates="transactions")

    # Constraints
    __table_args__ = (
        CheckConstraint("type IN ('payment', 'loanIncrease', 'interest')", name="ck_transaction_type"),
        CheckConstraint("amount > 0", name="ck_transaction_amount"),
        Index("idx_transactions_loan_date", "loan_id", "date"),
        Index("idx_transactions_type", "loan_id", "type"),
    )

    def __repr__(self):
        return f"<Transaction(id={self.id}, loan_id={self.loan_id}, type='{self.type}', amount={self.amount})>"
