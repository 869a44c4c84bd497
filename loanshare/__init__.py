"""
LoanShare - Collaborative Loan Tracking

Shared loan ledgers backed by a relational transaction store:
- Running-balance ledger over dated payments and balance increases
- Monthly interest accrual kept in sync with every edit
- Amortization projections for a hypothetical fixed payment
- Friendly share codes for joining a loan
"""

__version__ = "1.0.0"
__author__ = "LoanShare Contributors"
