"""
Base Repository.

Provides shared infrastructure for all repositories:
- DatabaseManager reference (SQLite)
- Logger reference
- Commit handling that cooperates with ``DatabaseManager.batch_write``
"""

from __future__ import annotations

import sqlite3

from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Returns the SQLite connection."""
        return self._db.sqlite

    def _commit(self) -> None:
        """Commit the SQLite transaction unless a batch is active.

        When :meth:`DatabaseManager.batch_write` is active, this is a
        no-op -- the batch context manager issues a single commit (or
        rollback) when the ``with`` block exits.

        All repository code should call ``self._commit()`` instead of
        ``self.sqlite.commit()`` so that batch writes work transparently.
        """
        if not self._db.in_batch:
            self.sqlite.commit()

    def _rollback(self) -> None:
        """Roll back a failed write unless a batch owns the transaction."""
        if not self._db.in_batch:
            self.sqlite.rollback()
