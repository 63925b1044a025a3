"""
Sync Service.

One-way, destructive, full-replace synchronisation from the local active
records to the remote mirror collection:

1. Fetch the ids of every remote record.
2. Delete every remote record, concurrently, and wait for all deletions.
3. Create every local **active** record, concurrently, and wait for all
   creations.  Trashed records are never uploaded.

Each blocking HTTP call runs on the default executor through
``asyncio.to_thread``; a phase is joined with ``asyncio.gather``, so the
first failure surfaces immediately while calls already in flight are left
to finish.  All deletes complete before any create starts; within a phase
there is no ordering.

Any failure fails the whole run as a single :class:`SyncError`.  Partial
completion is **not** rolled back: the remote collection may be left with
some records deleted or uploaded and others not.  There are no retries and
no merge or conflict detection.
"""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Callable, Sequence
from typing import TypeVar

from expense_tracker.exceptions import RemoteError, SyncError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.remote_record import RemoteRecordDraft
from expense_tracker.models.service_models import SyncReport
from expense_tracker.repositories.record_repository import RecordRepository
from expense_tracker.services.base_service import BaseService
from expense_tracker.services.remote_mirror import RemoteMirrorClient

T = TypeVar("T")


class SyncService(BaseService):
    """Replaces the remote collection with the local active records.

    Parameters
    ----------
    repo:
        Local record store; only :meth:`RecordRepository.list_active`
        output is uploaded.
    remote:
        Client for the configured remote collection.
    logger:
        Structured logger instance.
    """

    def __init__(
        self,
        repo: RecordRepository,
        remote: RemoteMirrorClient,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._remote = remote

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def sync(self) -> SyncReport:
        """Run one full sync.

        Raises:
            SyncError: any remote or local failure; ``__cause__`` holds the
                first failure observed.
        """
        endpoint = self._remote.configured_endpoint()
        self._logger.info("Sync started against %s", endpoint)

        try:
            local_records = self._repo.list_active()

            remote_ids = await asyncio.to_thread(
                self._remote.fetch_ids, endpoint,
            )

            await self._fan_out(
                self._remote.delete,
                [(remote_id, endpoint) for remote_id in remote_ids],
            )
            self._logger.info(
                "Sync phase 1 complete: %d remote record(s) deleted.",
                len(remote_ids),
            )

            drafts = [RemoteRecordDraft.from_record(record) for record in local_records]
            await self._fan_out(
                self._remote.create,
                [(draft, endpoint) for draft in drafts],
            )
        except (RemoteError, sqlite3.Error) as exc:
            self._logger.error("Sync failed: %s", exc, exc_info=True)
            raise SyncError("Sync failed; the remote data may be incomplete.") from exc

        report = SyncReport(
            endpoint=endpoint,
            deleted=len(remote_ids),
            uploaded=len(drafts),
        )
        self._logger.info(
            "Sync complete: %d deleted, %d uploaded.",
            report.deleted,
            report.uploaded,
        )
        return report

    def sync_blocking(self) -> SyncReport:
        """Run :meth:`sync` to completion from synchronous code.

        Must not be called from inside a running event loop.
        """
        return asyncio.run(self.sync())

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _fan_out(
        func: Callable[..., T],
        calls: Sequence[tuple[object, ...]],
    ) -> list[T]:
        """Start every call at once and wait for all of them.

        Raises the first exception observed; the remaining calls are not
        cancelled.
        """
        if not calls:
            return []
        return await asyncio.gather(
            *(asyncio.to_thread(func, *args) for args in calls)
        )
