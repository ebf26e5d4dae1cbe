"""The store handle: every collection opened from one data directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from blotter import settings
from blotter.auth.sessions import SessionStore
from blotter.auth.store import UserStore
from blotter.auth.usernames import UsernameListStore
from blotter.records.models import Arrest, Citation
from blotter.records.store import ReportStore

logger = logging.getLogger(__name__)

USERS_FILE = "users.json"
CITATIONS_FILE = "citations.json"
ARRESTS_FILE = "arrests.json"
BLOCKED_FILE = "blocked_usernames.json"
TERMINATED_FILE = "terminated_usernames.json"
SESSIONS_FILE = "sessions.json"


class RecordStore:
    """Open users, citations, arrests, blocked/terminated lists and sessions.

    The citation and arrest counters live in the users file, so both report
    collections share the user store's counters and persist them through it.
    """

    def __init__(self, base_dir: Optional[Path] = None, session_hours: Optional[int] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else settings.DATA_DIR
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._closed = False

        self.users = UserStore(self.base_dir / USERS_FILE)
        self.citations: ReportStore[Citation] = ReportStore(
            self.base_dir / CITATIONS_FILE,
            Citation,
            "citations",
            counter=self.users.citation_counter,
            on_counter_change=self.users.save,
        )
        self.arrests: ReportStore[Arrest] = ReportStore(
            self.base_dir / ARRESTS_FILE,
            Arrest,
            "arrests",
            counter=self.users.arrest_counter,
            on_counter_change=self.users.save,
        )
        self.blocked = UsernameListStore(self.base_dir / BLOCKED_FILE, label="blocked usernames")
        self.terminated = UsernameListStore(self.base_dir / TERMINATED_FILE, label="terminated usernames")
        self.sessions = SessionStore(
            self.base_dir / SESSIONS_FILE,
            expires_in_hours=session_hours if session_hours is not None else settings.SESSION_HOURS,
        )
        self.reconcile_counts()

    @classmethod
    def open(cls, base_dir: Optional[Path] = None, **kwargs) -> "RecordStore":
        return cls(base_dir, **kwargs)

    def reconcile_counts(self) -> None:
        """Raise stored counters that fell below the loaded collection sizes."""
        before = (self.users.citation_counter.value, self.users.arrest_counter.value)
        after = (self.citations.get_count(), self.arrests.get_count())
        if after != before:
            logger.info(
                "Reconciled counters: citations %d -> %d, arrests %d -> %d",
                before[0], after[0], before[1], after[1],
            )
            self.users.save()

    def flush(self) -> None:
        for store in (self.users, self.citations, self.arrests, self.blocked, self.terminated, self.sessions):
            store.flush()

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True
        logger.info("Closed record store at %s", self.base_dir)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
