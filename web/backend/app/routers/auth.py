"""Auth router -- Discord verification, signup, login, logout and profile endpoints."""

from __future__ import annotations

import logging
import secrets
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from blotter.auth.models import User
from blotter.auth.oauth import exchange_discord_code, get_discord_auth_url, is_demo_mode
from blotter.services.accounts import AccountService
from web.backend.app.middleware.auth import bearer_token, get_accounts, get_current_user
from web.backend.app.models.api import (
    AuthStatusResponse,
    DiscordUrlResponse,
    DiscordVerificationResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    SignupRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Discord verification
# ---------------------------------------------------------------------------


@router.get(
    "/discord/url",
    response_model=DiscordUrlResponse,
    summary="Get the Discord authorization URL",
)
async def discord_url(state: Optional[str] = None):
    """Return the URL the client should open to verify a Discord account.

    **Demo mode** (no ``DISCORD_CLIENT_ID``): the URL is empty and the
    callback accepts any code.
    """
    return DiscordUrlResponse(
        url=get_discord_auth_url(state or secrets.token_urlsafe(16)),
        demo_mode=is_demo_mode(),
    )


@router.get(
    "/discord/callback",
    response_model=DiscordVerificationResponse,
    summary="Handle the Discord OAuth callback",
)
async def discord_callback(request: Request, code: str, state: Optional[str] = None):
    """Exchange the code and issue a verification token for ``POST /signup``."""
    try:
        identity = await exchange_discord_code(code)
    except (httpx.HTTPError, ValueError, KeyError) as exc:
        logger.warning("Discord OAuth exchange failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Discord authentication failed",
        )
    token = request.app.state.verifications.issue(identity)
    return DiscordVerificationResponse(
        verification_token=token,
        discord_id=identity["id"],
        discord_username=identity["username"],
    )


# ---------------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------------


@router.post(
    "/signup",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an officer account",
)
async def signup(
    body: SignupRequest,
    request: Request,
    accounts: AccountService = Depends(get_accounts),
):
    """Create an account for a verified Discord identity and log it in."""
    verifications = request.app.state.verifications
    identity = verifications.peek(body.verification_token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Discord verification required. Please complete Discord authentication first.",
        )
    user = accounts.signup(
        username=body.username or identity["username"],
        password=body.password,
        badge_number=body.badge_number,
        rp_name=body.rp_name,
        rank=body.rank,
        discord_id=identity["id"],
    )
    verifications.consume(body.verification_token)
    _, session = accounts.login(user.username, body.password)
    return LoginResponse(token=session.token, expires_at=session.expires_at, user=UserResponse.from_user(user))


@router.post("/login", response_model=LoginResponse, summary="Login with username and password")
async def login(body: LoginRequest, accounts: AccountService = Depends(get_accounts)):
    user, session = accounts.login(body.username, body.password)
    return LoginResponse(token=session.token, expires_at=session.expires_at, user=UserResponse.from_user(user))


# ---------------------------------------------------------------------------
# Session management
# ---------------------------------------------------------------------------


@router.post("/logout", response_model=MessageResponse, summary="Logout / invalidate session")
async def logout(
    authorization: Optional[str] = Header(None),
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    """Invalidate the current session."""
    accounts.logout(bearer_token(authorization) or "")
    return MessageResponse(message="Logged out")


@router.get(
    "/me",
    response_model=AuthStatusResponse,
    summary="Get current user info",
)
async def me(user: User = Depends(get_current_user)):
    """Return the currently authenticated user."""
    return AuthStatusResponse(authenticated=True, user=UserResponse.from_user(user))


@router.put("/profile", response_model=UserResponse, summary="Update your profile")
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    updated = accounts.update_profile(
        user,
        rp_name=body.rp_name,
        rank=body.rank,
        discord_id=body.discord_id,
        badge_number=body.badge_number,
    )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.from_user(updated)


@router.put("/password", response_model=MessageResponse, summary="Change your password")
async def change_password(
    body: PasswordChangeRequest,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_accounts),
):
    accounts.change_password(user, body.current_password, body.new_password)
    return MessageResponse(message="Password changed")
