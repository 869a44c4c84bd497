"""
Error handling utilities for LoanShare.

This module provides centralized error handling and logging for the loan
tracking application. It includes the domain exception hierarchy and a
decorator for consistent error reporting across the codebase.
"""

import os
import traceback
import logging
from functools import wraps
import sys
from datetime import datetime

# Configure logging; no file handler on serverless (read-only filesystem)
_handlers = [logging.StreamHandler(sys.stdout)]
if not os.getenv("VERCEL") and not os.getenv("LOANSHARE_NO_LOG_FILE"):
    _handlers.append(logging.FileHandler("loanshare.log"))

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=_handlers,
)

logger = logging.getLogger(__name__)


class LoanShareError(Exception):
    """Base exception class for LoanShare errors"""

    def __init__(self, message, details=None):
        self.message = message
        self.details = details
        self.timestamp = datetime.now()
        super().__init__(self.message)


class ValidationError(LoanShareError):
    """Input rejected before any write (bad amount, date, name or rate)"""


class StoreError(LoanShareError):
    """Read or write against the transaction store failed"""


class NotFoundError(LoanShareError):
    """Loan, transaction or friendly code does not exist"""


class AccessDeniedError(LoanShareError):
    """User is not a member of the loan"""


class SystemEntryError(LoanShareError):
    """Attempt to edit or delete a system-generated entry"""


class ProjectionError(LoanShareError):
    """Amortization projection cannot be computed for the given input"""


class InvalidPayment(ProjectionError):
    """Monthly payment is not a positive number"""


class PaymentTooSmall(ProjectionError):
    """Monthly payment does not cover the first month's interest"""


def error_handler(func):
    """Decorator for handling errors and providing detailed information.

    Domain errors (LoanShareError subclasses) propagate unchanged so callers
    can tell validation, store and projection failures apart. Anything else
    is logged and wrapped in a LoanShareError.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LoanShareError:
            raise
        except Exception as e:
            exc_type, exc_value, exc_tb = sys.exc_info()
            tb = traceback.extract_tb(exc_tb)

            # Get the most relevant parts of the traceback
            error_location = f"{tb[-1].filename}:{tb[-1].lineno}"
            error_function = tb[-1].name

            error_details = {
                "error_type": exc_type.__name__,
                "location": error_location,
                "function": error_function,
                "arguments": {"args": str(args), "kwargs": str(kwargs)},
                "traceback": traceback.format_exc(),
            }

            logger.error(f"Error in {error_location} - {error_function}: {str(e)}")
            logger.debug(f"Detailed error information: {error_details}")

            raise LoanShareError(
                f"Error in {error_function} at {error_location}: {str(e)}",
                error_details,
            ) from e

    return wrapper


# Module metadata
__version__ = "1.0.0"
__author__ = "LoanShare Development Team"
__description__ = "Error handling utilities for LoanShare"
