"""
Clerk JWT authentication for FastAPI.

Supports two modes:
1. Clerk mode: Verifies JWT tokens from Clerk (when CLERK_SECRET_KEY is set)
2. Single-user mode: Falls back to user_id=1 for self-hosted usage
"""

import os
from typing import Optional

import jwt
from jwt import PyJWKClient
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from loanshare.api.dependencies import get_db_session, get_loan_service
from loanshare.core.engine.loan_service import LoanService
from loanshare.db.models import User


# Clerk configuration from environment
CLERK_SECRET_KEY = os.getenv("CLERK_SECRET_KEY")
CLERK_ISSUER = os.getenv("CLERK_ISSUER")  # e.g., https://clerk.your-domain.com
CLERK_JWKS_URL = f"{CLERK_ISSUER}/.well-known/jwks.json" if CLERK_ISSUER else None

DEFAULT_USER_ID = 1
DEFAULT_USER_NAME = "Local User"

# Security scheme - optional so it doesn't fail when no auth is configured
security = HTTPBearer(auto_error=False)

# Cache JWKS client
_jwks_client: Optional[PyJWKClient] = None


def _get_jwks_client() -> Optional[PyJWKClient]:
    """Get or create cached JWKS client."""
    global _jwks_client
    if _jwks_client is None and CLERK_JWKS_URL:
        _jwks_client = PyJWKClient(CLERK_JWKS_URL)
    return _jwks_client


def _verify_clerk_token(token: str) -> dict:
    """
    Verify a Clerk JWT token and return the decoded payload.

    Raises:
        HTTPException: If token is invalid or expired
    """
    jwks_client = _get_jwks_client()
    if not jwks_client:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Clerk JWKS not configured",
        )

    try:
        signing_key = jwks_client.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=CLERK_ISSUER,
            options={"verify_aud": False},  # Clerk doesn't always set audience
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )


def _get_or_create_user(db: Session, clerk_id: str, email: Optional[str] = None) -> User:
    """
    Get existing user by clerk_id or create a new one.

    Args:
        db: Database session
        clerk_id: Clerk user ID (from JWT 'sub' claim)
        email: Optional email from JWT

    Returns:
        User instance
    """
    user = db.query(User).filter_by(clerk_id=clerk_id).first()
    if user:
        return user

    # Auto-create user on first authentication
    user = User(
        name=email or f"user_{clerk_id[:8]}",
        email=email,
        clerk_id=clerk_id,
        auth_provider="clerk",
    )
    db.add(user)
    try:
        # Committed now: the store writes memberships in its own sessions
        db.commit()
    except IntegrityError:
        # A concurrent first request created it
        db.rollback()
        return db.query(User).filter_by(clerk_id=clerk_id).one()
    return user


def _get_or_create_default_user(db: Session) -> User:
    user = db.get(User, DEFAULT_USER_ID)
    if user:
        return user
    user = User(id=DEFAULT_USER_ID, name=DEFAULT_USER_NAME, auth_provider="local")
    db.add(user)
    try:
        # Committed now: the store writes memberships in its own sessions
        db.commit()
    except IntegrityError:
        # A concurrent first request created it
        db.rollback()
        return db.get(User, DEFAULT_USER_ID)
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db_session),
) -> User:
    """
    FastAPI dependency that returns the current authenticated user.

    In Clerk mode (CLERK_SECRET_KEY set):
        - Verifies JWT from Authorization header
        - Returns user mapped to Clerk ID (auto-creates on first auth)

    In single-user mode (no CLERK_SECRET_KEY):
        - Returns user with id=1, created on first use
        - No authentication required
    """
    if not CLERK_SECRET_KEY:
        return _get_or_create_default_user(db)

    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = _verify_clerk_token(credentials.credentials)
    clerk_id = payload.get("sub")
    if not clerk_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject",
        )

    return _get_or_create_user(db, clerk_id, payload.get("email"))


def require_loan_member(
    loan_id: int,
    current_user: User = Depends(get_current_user),
    service: LoanService = Depends(get_loan_service),
) -> LoanService:
    """
    Dependency for loan-scoped routes: resolves the service after checking
    that the loan exists and the current user is one of its members.
    """
    service.ensure_member(loan_id, current_user.id)
    return service
