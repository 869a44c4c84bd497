"""
FastAPI application for LoanShare.

Provides REST API endpoints for:
- Loan creation, sharing by code, and settings
- Ledger with running balance and CSV export
- Payments and balance increases (interest is reconciled automatically)
- Amortization projections
"""

import os
import logging
import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from loanshare import __version__
from loanshare.db.connection import check_connection, get_db_manager, get_session_factory, init_db
from loanshare.api.routes import loans, transactions, projections
from loanshare.utils.error_utils import (
    AccessDeniedError,
    LoanShareError,
    NotFoundError,
    ProjectionError,
    StoreError,
    SystemEntryError,
    ValidationError,
)

logger = logging.getLogger("loanshare")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    is_serverless = bool(os.getenv("VERCEL"))
    if not is_serverless:
        # Tables are pre-created on Vercel
        logger.info("Initializing database connection...")
        init_db()
    yield
    if not is_serverless:
        logger.info("Shutting down...")
        get_db_manager().dispose()


app = FastAPI(
    title="LoanShare API",
    description="Shared loan ledger with automatic monthly interest and payoff projections",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS configuration for the web frontend
_default_origins = "http://localhost:3000,http://localhost:5173"
_cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _default_origins).split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain errors -> HTTP status
_ERROR_STATUS = {
    ValidationError: 400,
    ProjectionError: 400,
    NotFoundError: 404,
    AccessDeniedError: 403,
    SystemEntryError: 403,
    StoreError: 503,
}


def _domain_error_response(exc: LoanShareError, status_code: int) -> JSONResponse:
    content = {"error": exc.message, "type": type(exc).__name__}
    if isinstance(exc.details, dict) and "field" in exc.details:
        content["field"] = exc.details["field"]
    return JSONResponse(status_code=status_code, content=content)


def _register_domain_handler(exc_class, status_code: int):
    @app.exception_handler(exc_class)
    async def handler(request: Request, exc: LoanShareError):
        if status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return _domain_error_response(exc, status_code)


for _exc_class, _status_code in _ERROR_STATUS.items():
    _register_domain_handler(_exc_class, _status_code)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all uncaught exceptions."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
            "type": type(exc).__name__,
        },
    )


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """API health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "service": "loanshare-api",
    }


@app.get("/health/db")
def health_check_db(factory: sessionmaker = Depends(get_session_factory)):
    """Check database connection health and latency."""
    start = time.time()
    healthy = check_connection(factory)
    latency_ms = (time.time() - start) * 1000
    return {
        "status": "healthy" if healthy else "unhealthy",
        "latency_ms": round(latency_ms, 2),
    }


app.include_router(loans.router, prefix="/api/loans", tags=["Loans"])
app.include_router(transactions.router, prefix="/api/loans", tags=["Transactions"])
app.include_router(projections.router, prefix="/api/loans", tags=["Projections"])


@app.get("/")
async def root() -> Dict[str, Any]:
    """API root endpoint with service information."""
    return {
        "service": "LoanShare API",
        "version": __version__,
        "docs": "/api/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "loanshare.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
