"""Account domain models: users, sessions, and blocked/terminated usernames."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Optional


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class User:
    """An officer account."""

    id: int = 0
    username: str = ""
    password_hash: str = ""
    badge_number: str = ""
    is_admin: bool = False
    rp_name: Optional[str] = None
    rank: Optional[str] = None
    discord_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.rp_name or self.username

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "User":
        d = dict(d)
        # Files written by the original portal used ``password`` and "true"/"false" strings.
        if "password_hash" not in d and "password" in d:
            d["password_hash"] = d["password"]
        if isinstance(d.get("is_admin"), str):
            d["is_admin"] = d["is_admin"].lower() == "true"
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass
class Session:
    """An issued bearer token."""

    token: str
    user_id: int
    created_at: str = ""
    expires_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()

    def is_expired(self, now: Optional[str] = None) -> bool:
        return bool(self.expires_at) and self.expires_at < (now or _now())


@dataclass
class UsernameMark:
    """An entry in the blocked or terminated username lists."""

    id: int
    username: str
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = _now()
