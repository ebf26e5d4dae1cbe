"""Bearer session tokens persisted in ``sessions.json``."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from blotter.auth.models import Session
from blotter.records.persistence import JsonDocument, as_int, as_list, camelize, snakify

logger = logging.getLogger(__name__)


class SessionStore:
    """Issue, resolve and revoke session tokens."""

    def __init__(self, path: Path, expires_in_hours: int = 24 * 7) -> None:
        self._doc = JsonDocument(path)
        self.expires_in_hours = expires_in_hours
        self._sessions: dict[str, Session] = {}
        for raw in as_list(self._doc.load(default=[]), "sessions"):
            if isinstance(raw, dict) and isinstance(raw.get("token"), str):
                d = snakify(raw)
                session = Session(
                    token=d["token"],
                    user_id=as_int(d.get("user_id"), 0, "session user id"),
                    created_at=str(d.get("created_at") or ""),
                    expires_at=str(d.get("expires_at") or ""),
                )
                self._sessions[session.token] = session

    def _save(self) -> None:
        self._doc.save(
            [
                camelize(
                    {
                        "token": s.token,
                        "user_id": s.user_id,
                        "created_at": s.created_at,
                        "expires_at": s.expires_at,
                    }
                )
                for s in self._sessions.values()
            ]
        )

    def create(self, user_id: int) -> Session:
        now = datetime.now(timezone.utc)
        session = Session(
            token=secrets.token_urlsafe(48),
            user_id=user_id,
            created_at=now.isoformat(),
            expires_at=(now + timedelta(hours=self.expires_in_hours)).isoformat(),
        )
        self._prune()
        self._sessions[session.token] = session
        self._save()
        return session

    def _prune(self) -> int:
        """Drop expired sessions from memory; the next save writes them out."""
        now = datetime.now(timezone.utc).isoformat()
        expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.info("Pruned %d expired session(s)", len(expired))
        return len(expired)

    def resolve(self, token: str) -> Optional[int]:
        """Return the user id for a live token; expired tokens are dropped."""
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired():
            self.revoke(token)
            return None
        return session.user_id

    def revoke(self, token: str) -> bool:
        if self._sessions.pop(token, None) is None:
            return False
        self._save()
        return True

    def revoke_user(self, user_id: int) -> int:
        """Drop every session belonging to ``user_id`` (used on delete/terminate)."""
        tokens = [t for t, s in self._sessions.items() if s.user_id == user_id]
        for token in tokens:
            del self._sessions[token]
        if tokens:
            self._save()
            logger.info("Revoked %d session(s) for user %s", len(tokens), user_id)
        return len(tokens)

    def flush(self) -> None:
        self._save()
