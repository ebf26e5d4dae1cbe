"""File-based JSON storage for officer accounts.

The users file also carries the permanent "deleted usernames" set and the
lifetime citation/arrest counters::

    {"users": [[id, user], ...], "nextUserId": n, "deletedUsernames": [...],
     "citationCount": n, "arrestCount": n}
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from blotter.auth.models import User
from blotter.errors import AdmissionError, StorageError
from blotter.records.counters import CountReconciler
from blotter.records.ids import IdStrategy, SequentialIds
from blotter.records.persistence import JsonDocument, as_int, as_list, camelize, snakify

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"password_hash", "badge_number", "is_admin", "rp_name", "rank", "discord_id"}


class UserStore:
    """In-memory user map mirrored to ``users.json``."""

    def __init__(self, path: Path, ids: Optional[IdStrategy] = None) -> None:
        self._doc = JsonDocument(path)
        self._users: dict[int, User] = {}
        self._deleted: set[str] = set()
        self._ids = ids or SequentialIds()
        self.citation_counter = CountReconciler("citations")
        self.arrest_counter = CountReconciler("arrests")
        self._load()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> None:
        data = self._doc.load(default={})
        if not isinstance(data, dict):
            data = {}
        for entry in as_list(data.get("users"), "users"):
            if isinstance(entry, list) and len(entry) == 2 and isinstance(entry[1], dict):
                raw, raw_id = entry[1], entry[0]
            elif isinstance(entry, dict) and "id" in entry:
                raw, raw_id = entry, entry["id"]
            else:
                logger.warning("Skipping malformed user entry in %s", self._doc.path.name)
                continue
            user_id = as_int(raw_id, 0, "user id")
            if user_id <= 0 or not isinstance(raw.get("username"), str):
                logger.warning("Skipping user entry without a usable id or username: %r", raw_id)
                continue
            user = User.from_dict(snakify(raw))
            user.id = user_id
            self._users[user.id] = user
            self._ids.observe(user.id)
        if isinstance(self._ids, SequentialIds):
            self._ids.next_value = max(self._ids.next_value, as_int(data.get("nextUserId"), 1, "nextUserId"))
        self._deleted = {str(u).lower() for u in as_list(data.get("deletedUsernames"), "deletedUsernames")}
        self.citation_counter.value = max(0, as_int(data.get("citationCount"), 0, "citationCount"))
        self.arrest_counter.value = max(0, as_int(data.get("arrestCount"), 0, "arrestCount"))
        logger.info("Loaded %d users from %s", len(self._users), self._doc.path.name)

    def _document(self) -> dict[str, Any]:
        return {
            "users": [[uid, camelize(u.to_dict())] for uid, u in self._users.items()],
            "nextUserId": getattr(self._ids, "next_value", None),
            "deletedUsernames": sorted(self._deleted),
            "citationCount": self.citation_counter.value,
            "arrestCount": self.arrest_counter.value,
        }

    def _persist(self, undo: Callable[[], None]) -> None:
        try:
            self._doc.save(self._document())
        except StorageError:
            undo()
            raise

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, user_id: int) -> Optional[User]:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user is not None else None

    def get_by_username(self, username: str) -> Optional[User]:
        wanted = username.lower()
        for user in self._users.values():
            if user.username.lower() == wanted:
                return copy.deepcopy(user)
        return None

    def list(self) -> list[User]:
        return [copy.deepcopy(u) for u in self._users.values()]

    def __len__(self) -> int:
        return len(self._users)

    def is_deleted_username(self, username: str) -> bool:
        return username.lower() in self._deleted

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, user: User) -> User:
        """Assign the next id, insert, persist. Usernames are unique ignoring case."""
        if self.get_by_username(user.username) is not None:
            raise AdmissionError("Username already exists", reason="taken")
        stored = copy.deepcopy(user)
        stored.id = self._ids.next_id(lambda candidate: candidate in self._users)
        self._users[stored.id] = stored
        self._persist(lambda: self._users.pop(stored.id, None))
        return copy.deepcopy(stored)

    def update(self, user_id: int, **changes: Any) -> Optional[User]:
        """Apply only the given fields (``None`` clears). ``None`` if not found."""
        current = self._users.get(user_id)
        if current is None:
            return None
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user field(s): {', '.join(sorted(unknown))}")
        before = copy.deepcopy(current)
        for name, value in changes.items():
            setattr(current, name, value)

        def undo() -> None:
            self._users[user_id] = before

        self._persist(undo)
        return copy.deepcopy(current)

    def delete(self, user_id: int) -> bool:
        """Remove a user and remember the username so it cannot sign up again."""
        removed = self._users.pop(user_id, None)
        if removed is None:
            return False
        name = removed.username.lower()
        newly_deleted = name not in self._deleted
        self._deleted.add(name)

        def undo() -> None:
            self._users[user_id] = removed
            if newly_deleted:
                self._deleted.discard(name)

        self._persist(undo)
        return True

    def forget_deleted_username(self, username: str) -> bool:
        name = username.lower()
        if name not in self._deleted:
            return False
        self._deleted.discard(name)
        self._persist(lambda: self._deleted.add(name))
        return True

    def save(self) -> None:
        """Persist the current state (used when only the counters changed)."""
        self._doc.save(self._document())

    flush = save
