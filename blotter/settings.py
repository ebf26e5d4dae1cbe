"""Centralized environment-driven settings.

Keep this module lightweight: stdlib only, no app imports, to avoid circular deps.
"""

from __future__ import annotations

import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _list_env(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

# Directory holding users.json, citations.json, arrests.json, ...
DATA_DIR: Path = Path(os.getenv("BLOTTER_DATA_DIR", "") or Path.home() / ".blotter" / "data")

# ---------------------------------------------------------------------------
# Discord bot (notification sink)
# ---------------------------------------------------------------------------

DISCORD_BOT_TOKEN: str = os.getenv("DISCORD_BOT_TOKEN", "")
DISCORD_CHANNEL_ID: str = os.getenv("DISCORD_CHANNEL_ID", "")
DISCORD_API_BASE: str = os.getenv("DISCORD_API_BASE", "https://discord.com/api/v10")

# Upper bound on a single post/retract round trip, in seconds.
DISCORD_TIMEOUT: float = _float_env("BLOTTER_DISCORD_TIMEOUT", 10.0)

# ---------------------------------------------------------------------------
# Discord OAuth (signup verification)
# ---------------------------------------------------------------------------

DISCORD_CLIENT_ID: str = os.getenv("DISCORD_CLIENT_ID", "")
DISCORD_CLIENT_SECRET: str = os.getenv("DISCORD_CLIENT_SECRET", "")
DISCORD_REDIRECT_URI: str = os.getenv(
    "DISCORD_REDIRECT_URI", "http://localhost:5000/api/auth/discord/callback"
)

# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

# Usernames that are granted admin when they sign up.
ADMIN_USERNAMES: list[str] = _list_env("BLOTTER_ADMIN_USERNAMES", ["popfork1", "admin", "administrator"])

# Usernames that can never be deleted, demoted, blocked or terminated.
PROTECTED_USERNAMES: list[str] = _list_env("BLOTTER_PROTECTED_USERNAMES", ["popfork1"])

SESSION_HOURS: int = _int_env("BLOTTER_SESSION_HOURS", 24 * 7)

# bcrypt work factor for new password hashes.
BCRYPT_ROUNDS: int = _int_env("BLOTTER_BCRYPT_ROUNDS", 12)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_LEVEL: str = os.getenv("BLOTTER_LOG_LEVEL", "INFO")


def discord_sink_configured() -> bool:
    """Return True when both the bot token and the report channel are set."""
    return bool(DISCORD_BOT_TOKEN and DISCORD_CHANNEL_ID)
