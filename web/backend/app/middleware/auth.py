"""Auth middleware -- FastAPI dependencies for the store handle and the current user.

Authentication is an ``Authorization: Bearer <session_token>`` header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from blotter.auth.models import User
from blotter.auth.permissions import is_admin
from blotter.services.accounts import AccountService
from blotter.services.reports import ReportService
from blotter.storage import RecordStore


def get_records(request: Request) -> RecordStore:
    """Return the RecordStore opened by the app's lifespan handler."""
    return request.app.state.records


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_reports(request: Request) -> ReportService:
    return request.app.state.reports


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    accounts: AccountService = Depends(get_accounts),
) -> User:
    """FastAPI dependency that extracts and validates the current user.

    Raises ``401 Unauthorized`` if no valid session token is provided.
    """
    token = bearer_token(authorization)
    if token:
        user = accounts.resolve_session(token)
        if user is not None:
            return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as ``get_current_user`` but raises 403 unless the user is an admin."""
    if not is_admin(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
