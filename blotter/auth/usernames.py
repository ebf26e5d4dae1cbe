"""Blocked and terminated username lists.

Both lists are stored and compared lower-cased. File layout is a bare list::

    [{"id": 1, "username": "someone", "timestamp": "..."}, ...]
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Optional

from blotter.auth.models import UsernameMark
from blotter.errors import StorageError
from blotter.records.ids import SequentialIds
from blotter.records.persistence import JsonDocument, as_int, as_list

logger = logging.getLogger(__name__)


def normalize(username: str) -> str:
    return username.strip().lower()


class UsernameListStore:
    """A persisted set of usernames with ids and timestamps."""

    def __init__(self, path: Path, label: str = "usernames") -> None:
        self._doc = JsonDocument(path)
        self.label = label
        self._ids = SequentialIds()
        self._entries: dict[str, UsernameMark] = {}
        self._load()

    def _load(self) -> None:
        unnumbered = []
        for raw in as_list(self._doc.load(default=[]), self.label):
            if not isinstance(raw, dict) or not isinstance(raw.get("username"), str) or not raw["username"].strip():
                logger.warning("Skipping malformed entry in %s", self._doc.path.name)
                continue
            timestamp = raw.get("timestamp") or raw.get("deletedAt") or raw.get("terminatedAt") or ""
            mark = UsernameMark(
                id=as_int(raw.get("id"), 0, f"{self.label} id"),
                username=normalize(raw["username"]),
                timestamp=str(timestamp),
            )
            self._entries[mark.username] = mark
            if mark.id > 0:
                self._ids.observe(mark.id)
            else:
                unnumbered.append(mark)
        # Numbered only once every existing id has been seen.
        for mark in unnumbered:
            mark.id = self._ids.next_id(lambda _: False)
        logger.info("Loaded %d %s from %s", len(self._entries), self.label, self._doc.path.name)

    def _document(self) -> list[dict]:
        return [
            {"id": m.id, "username": m.username, "timestamp": m.timestamp}
            for m in self._entries.values()
        ]

    def contains(self, username: str) -> bool:
        return normalize(username) in self._entries

    __contains__ = contains

    def get(self, username: str) -> Optional[UsernameMark]:
        mark = self._entries.get(normalize(username))
        return copy.deepcopy(mark) if mark is not None else None

    def list(self) -> list[UsernameMark]:
        return [copy.deepcopy(m) for m in self._entries.values()]

    def add(self, username: str) -> UsernameMark:
        """Add a username; adding one that is already present returns the existing entry."""
        name = normalize(username)
        if not name:
            raise ValueError("Username is required")
        existing = self._entries.get(name)
        if existing is not None:
            return copy.deepcopy(existing)
        mark = UsernameMark(id=self._ids.next_id(lambda _: False), username=name)
        self._entries[name] = mark
        try:
            self._doc.save(self._document())
        except StorageError:
            self._entries.pop(name, None)
            raise
        return copy.deepcopy(mark)

    def remove(self, username: str) -> bool:
        name = normalize(username)
        removed = self._entries.pop(name, None)
        if removed is None:
            return False
        try:
            self._doc.save(self._document())
        except StorageError:
            self._entries[name] = removed
            raise
        return True

    def flush(self) -> None:
        self._doc.save(self._document())
