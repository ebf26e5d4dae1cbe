"""Filing and removing reports across the local store and the Discord channel.

Create is post-then-persist: the Discord message id is attached to the record
before it is written, and a failed post never fails the filing. Deletes are
local-first in effect: retraction is attempted, its failures are logged, and
the local removal always happens.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Optional

from blotter.auth.models import User
from blotter.discord.messages import render_report
from blotter.discord.sink import NotificationSink
from blotter.errors import SinkError, StorageError
from blotter.records.models import Arrest, Citation, Report, finalize_report, format_jail_time, parse_jail_time
from blotter.records.store import ReportStore
from blotter.storage import RecordStore

logger = logging.getLogger(__name__)


class ReportService:
    """Owns the dual-write and cascade-delete protocol for both report kinds."""

    def __init__(
        self,
        records: RecordStore,
        sink: Optional[NotificationSink] = None,
        timeout: float = 10.0,
    ) -> None:
        self.records = records
        self.sink = sink
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Sink helpers
    # ------------------------------------------------------------------

    async def _post(self, report: Report) -> Optional[str]:
        if self.sink is None:
            return None
        try:
            return await asyncio.wait_for(self.sink.post(render_report(report)), self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out posting %s to Discord after %.1fs", report.kind, self.timeout)
        except SinkError as exc:
            logger.warning("Failed to post %s to Discord: %s", report.kind, exc)
        except Exception:
            logger.exception("Unexpected error posting %s to Discord", report.kind)
        return None

    async def _retract(self, report: Report) -> bool:
        """Best-effort removal of the report's Discord message. True if gone."""
        if self.sink is None or not report.discord_message_id:
            return True
        try:
            await asyncio.wait_for(self.sink.retract(report.discord_message_id), self.timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out deleting Discord message %s for %s %s",
                report.discord_message_id, report.kind, report.id,
            )
        except SinkError as exc:
            logger.warning(
                "Failed to delete Discord message %s for %s %s: %s",
                report.discord_message_id, report.kind, report.id, exc,
            )
        except Exception:
            logger.exception("Unexpected error deleting Discord message %s", report.discord_message_id)
        return False

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def _file(self, store: ReportStore, draft: Report, filer: Optional[User]) -> Report:
        report = copy.deepcopy(draft)
        report.id = ""
        report.discord_message_id = None
        if filer is not None:
            report.issued_by = filer.id
        # Validation errors surface here, before anything leaves the process.
        finalize_report(report)

        report.discord_message_id = await self._post(report)
        try:
            stored = store.create(report)
        except StorageError:
            if report.discord_message_id:
                await self._retract(report)
            raise
        logger.info(
            "Filed %s %s (%s)", stored.kind, stored.id,
            "posted to Discord" if stored.discord_message_id else "stored locally only",
        )
        return stored

    async def file_citation(self, draft: Citation, filer: Optional[User] = None) -> Citation:
        return await self._file(self.records.citations, draft, filer)  # type: ignore[return-value]

    async def file_arrest(self, draft: Arrest, filer: Optional[User] = None) -> Arrest:
        return await self._file(self.records.arrests, draft, filer)  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def _delete(self, store: ReportStore, record_id: str) -> bool:
        report = store.get(record_id)
        if report is None:
            return False
        await self._retract(report)
        return store.delete(record_id)

    async def delete_citation(self, citation_id: str) -> bool:
        return await self._delete(self.records.citations, citation_id)

    async def delete_arrest(self, arrest_id: str) -> bool:
        return await self._delete(self.records.arrests, arrest_id)

    async def _delete_all(self, store: ReportStore) -> int:
        snapshot = store.list()
        deleted_count = store.delete_all()
        failures = 0
        for report in snapshot:
            if not await self._retract(report):
                failures += 1
        if failures:
            logger.warning("%d of %d Discord messages could not be deleted", failures, len(snapshot))
        logger.info("Deleted all %d record(s) from %s", deleted_count, store.path.name)
        return deleted_count

    async def delete_all_citations(self) -> int:
        return await self._delete_all(self.records.citations)

    async def delete_all_arrests(self) -> int:
        return await self._delete_all(self.records.arrests)

    # ------------------------------------------------------------------
    # Admin adjustments
    # ------------------------------------------------------------------

    def adjust_arrest(
        self,
        arrest_id: str,
        total_jail_time: Optional[str] = None,
        time_served: Optional[bool] = None,
    ) -> Optional[Arrest]:
        """Override an arrest's jail total and/or time-served flag.

        The warrant status follows from the adjusted values. ``None`` if the
        arrest does not exist.
        """
        changes: dict = {}
        if total_jail_time is not None:
            changes["total_jail_time"] = format_jail_time(parse_jail_time(total_jail_time))
        if time_served is not None:
            changes["time_served"] = bool(time_served)
        if not changes:
            return self.records.arrests.get(arrest_id)
        return self.records.arrests.update(arrest_id, **changes)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def citations_for(self, user: User) -> list[Citation]:
        return _newest_first(c for c in self.records.citations.list() if c.issued_by == user.id)

    def arrests_for(self, user: User) -> list[Arrest]:
        return _newest_first(a for a in self.records.arrests.list() if a.issued_by == user.id)

    def all_citations(self) -> list[Citation]:
        return _newest_first(self.records.citations.list())

    def all_arrests(self) -> list[Arrest]:
        return _newest_first(self.records.arrests.list())


def _newest_first(reports):
    return sorted(reports, key=lambda r: r.created_at, reverse=True)
