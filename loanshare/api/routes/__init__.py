"""
API route modules.

Contains FastAPI routers for loans, their transactions and projections.
"""

from loanshare.api.routes import loans, transactions, projections

__all__ = ["loans", "transactions", "projections"]
