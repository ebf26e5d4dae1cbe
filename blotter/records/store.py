"""In-memory report collections mirrored to whole-file JSON documents.

The map is the source of truth while the process runs; every mutation
rewrites the collection file. If the write fails the mutation is undone and
:class:`StorageError` propagates, so memory and disk never drift apart.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar

from blotter.errors import RecordValidationError, StorageError
from blotter.records.counters import CountReconciler
from blotter.records.ids import IdStrategy, RandomTokenIds
from blotter.records.models import Report, finalize_report, format_jail_time, parse_jail_time
from blotter.records.persistence import JsonDocument, as_list, camelize, snakify

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Report)

# Charges, rosters and amounts are fixed once filed.
_UPDATABLE_FIELDS = {"total_jail_time", "time_served", "discord_message_id", "additional_notes", "description"}


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class ReportStore(Generic[R]):
    """One collection of citations or arrests.

    File layout: ``{"<document_key>": [record, ...]}`` with camelCase keys.
    The lifetime counter is held by a :class:`CountReconciler` owned
    elsewhere (the users file); ``on_counter_change`` persists it.
    """

    def __init__(
        self,
        path: Path,
        record_type: type[R],
        document_key: str,
        counter: Optional[CountReconciler] = None,
        ids: Optional[IdStrategy] = None,
        on_counter_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self._doc = JsonDocument(path)
        self._type = record_type
        self._key = document_key
        self._ids = ids or RandomTokenIds()
        self.counter = counter or CountReconciler(document_key)
        self._on_counter_change = on_counter_change
        self._records: dict[str, R] = {}
        self._load()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _load(self) -> None:
        data = self._doc.load(default={})
        items = as_list(data.get(self._key) if isinstance(data, dict) else None, self._key)
        for raw in items:
            if not isinstance(raw, dict) or not raw.get("id"):
                logger.warning("Skipping malformed entry in %s", self._doc.path.name)
                continue
            try:
                record = self._type.from_dict(snakify(raw))
            except TypeError as exc:
                logger.warning("Skipping unreadable record %r in %s: %s", raw.get("id"), self._doc.path.name, exc)
                continue
            record.id = str(record.id)
            self._records[record.id] = record
            self._ids.observe(record.id)
        logger.info("Loaded %d %s from %s", len(self._records), self._key, self._doc.path.name)

    def _document(self) -> dict[str, Any]:
        return {self._key: [camelize(r.to_dict()) for r in self._records.values()]}

    def _persist(self, undo: Callable[[], None]) -> None:
        try:
            self._doc.save(self._document())
        except StorageError:
            undo()
            raise

    def _persist_counter(self) -> None:
        if self._on_counter_change is None:
            return
        try:
            self._on_counter_change()
        except StorageError as exc:
            # The count self-heals from the collection size on the next load.
            logger.error("Could not persist %s counter: %s", self._key, exc)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._doc.path

    def get(self, record_id: str) -> Optional[R]:
        record = self._records.get(str(record_id))
        return copy.deepcopy(record) if record is not None else None

    def list(self) -> list[R]:
        return [copy.deepcopy(r) for r in self._records.values()]

    def __len__(self) -> int:
        return len(self._records)

    def create(self, record: R) -> R:
        """Validate, assign an id and timestamps, insert, persist.

        Raises :class:`RecordValidationError` before anything is stored.
        """
        stored = finalize_report(copy.deepcopy(record))
        stored.id = self._ids.next_id(lambda candidate: str(candidate) in self._records)
        now = utcnow()
        stored.created_at = stored.created_at or now
        stored.updated_at = now

        previous_count = self.counter.value
        self._records[stored.id] = stored
        self.counter.on_create(len(self._records))

        def undo() -> None:
            self._records.pop(stored.id, None)
            self.counter.value = previous_count

        self._persist(undo)
        self._persist_counter()
        return copy.deepcopy(stored)

    def update(self, record_id: str, **changes: Any) -> Optional[R]:
        """Apply only the given fields (``None`` clears). ``None`` if not found.

        Only the jail total, the time-served flag, the Discord message id and
        the free-text notes may change after filing; anything else raises
        :class:`RecordValidationError` and nothing is stored.
        """
        current = self._records.get(str(record_id))
        if current is None:
            return None
        allowed = _UPDATABLE_FIELDS & set(current.to_dict())
        unknown = set(changes) - allowed
        if unknown:
            raise RecordValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
            )
        if "total_jail_time" in changes:
            if changes["total_jail_time"] is None:
                raise RecordValidationError("total_jail_time cannot be cleared", field="total_jail_time")
            changes["total_jail_time"] = format_jail_time(parse_jail_time(changes["total_jail_time"]))

        before = copy.deepcopy(current)
        for name, value in changes.items():
            setattr(current, name, value)
        current.updated_at = utcnow()

        def undo() -> None:
            self._records[before.id] = before

        self._persist(undo)
        return copy.deepcopy(current)

    def delete(self, record_id: str) -> bool:
        """Remove one record. The lifetime counter is left untouched."""
        removed = self._records.pop(str(record_id), None)
        if removed is None:
            return False

        def undo() -> None:
            self._records[removed.id] = removed

        self._persist(undo)
        return True

    def delete_all(self) -> int:
        """Remove every record, reset the counter, and return how many were removed."""
        removed = dict(self._records)
        previous_count = self.counter.value
        self._records.clear()
        self.counter.on_delete_all()

        def undo() -> None:
            self._records.update(removed)
            self.counter.value = previous_count

        self._persist(undo)
        self._persist_counter()
        return len(removed)

    def get_count(self) -> int:
        return self.counter.get_count(len(self._records))

    def flush(self) -> None:
        self._doc.save(self._document())
