"""Discord OAuth2 helpers used to verify an officer before signup.

When ``DISCORD_CLIENT_ID`` / ``DISCORD_CLIENT_SECRET`` are not set, the
helpers fall back to a **demo mode** that returns a synthetic Discord
identity without hitting Discord.
"""

from __future__ import annotations

import secrets
import time
import uuid
from typing import Optional
from urllib.parse import urlencode

import httpx

from blotter import settings

AUTHORIZE_URL = "https://discord.com/api/oauth2/authorize"
TOKEN_URL = "https://discord.com/api/oauth2/token"
USER_URL = "https://discord.com/api/users/@me"

# How long a completed verification may wait before it is used for signup.
VERIFICATION_TTL_SECONDS = 15 * 60


def is_demo_mode() -> bool:
    """Return True when OAuth credentials are not configured."""
    return not (settings.DISCORD_CLIENT_ID and settings.DISCORD_CLIENT_SECRET)


# ---------------------------------------------------------------------------
# Discord OAuth
# ---------------------------------------------------------------------------

def get_discord_auth_url(state: str) -> str:
    """Return the Discord authorization URL.

    In demo mode, returns an empty string (caller should use the demo flow).
    """
    if is_demo_mode():
        return ""
    params = {
        "client_id": settings.DISCORD_CLIENT_ID,
        "redirect_uri": settings.DISCORD_REDIRECT_URI,
        "response_type": "code",
        "scope": "identify",
        "state": state,
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def exchange_discord_code(
    code: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> dict:
    """Exchange a Discord OAuth code for the user's identity.

    Returns a dict with keys ``id`` and ``username``. In demo mode, returns a
    synthetic demo identity.
    """
    if is_demo_mode():
        return _demo_identity()

    async with httpx.AsyncClient(transport=transport, timeout=settings.DISCORD_TIMEOUT) as client:
        token_resp = await client.post(
            TOKEN_URL,
            data={
                "client_id": settings.DISCORD_CLIENT_ID,
                "client_secret": settings.DISCORD_CLIENT_SECRET,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": settings.DISCORD_REDIRECT_URI,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        token_data = token_resp.json()
        access_token = token_data.get("access_token", "")

        if not access_token:
            raise ValueError(f"Discord OAuth error: {token_data}")

        user_resp = await client.get(USER_URL, headers={"Authorization": f"Bearer {access_token}"})
        user_data = user_resp.json()

    return {
        "id": str(user_data.get("id", "")),
        "username": user_data.get("username", ""),
    }


def _demo_identity() -> dict:
    """Return a deterministic demo identity for local development."""
    return {
        "id": str(uuid.uuid5(uuid.NAMESPACE_DNS, "blotter-demo-officer").int)[:18],
        "username": "demo-officer",
    }


# ---------------------------------------------------------------------------
# Verification tokens
# ---------------------------------------------------------------------------


class VerificationLedger:
    """Short-lived tokens proving a Discord identity was verified.

    The callback ``issue``s a token; a successful signup ``consume``s it
    exactly once. A refused signup leaves the token usable.
    """

    def __init__(self, ttl_seconds: float = VERIFICATION_TTL_SECONDS) -> None:
        self.ttl_seconds = ttl_seconds
        self._pending: dict[str, tuple[float, dict]] = {}

    def issue(self, identity: dict) -> str:
        self._prune()
        token = secrets.token_urlsafe(32)
        self._pending[token] = (time.monotonic() + self.ttl_seconds, dict(identity))
        return token

    def peek(self, token: str) -> Optional[dict]:
        """Return the identity behind a live token without using it up."""
        entry = self._pending.get(token)
        if entry is None:
            return None
        expires, identity = entry
        if expires < time.monotonic():
            del self._pending[token]
            return None
        return dict(identity)

    def consume(self, token: str) -> Optional[dict]:
        identity = self.peek(token)
        if identity is not None:
            del self._pending[token]
        return identity

    def _prune(self) -> None:
        now = time.monotonic()
        for token in [t for t, (exp, _) in self._pending.items() if exp < now]:
            del self._pending[token]
