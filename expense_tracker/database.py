"""
Database Abstraction Layer.

Owns the single local SQLite connection used by the Expense Tracker core.
The database is the durable home of every record; the remote mirror is only
ever a copy pushed by the sync service.

Data access is performed through the Repository pattern.  This module only
manages the raw database *connection*; it contains no query logic.

There is no module-level handle: the application constructs one
``DatabaseManager`` at startup, injects it into the repositories and
services that need it, and closes it on shutdown.

Usage (dependency injection at app startup)::

    from expense_tracker.database import DatabaseManager
    from expense_tracker.logger import StructuredLogger
    from expense_tracker.schema import initialize_schema

    db = DatabaseManager(
        sqlite_path=Path("expense_tracker.db"),
        logger=StructuredLogger(name="database"),
    )
    initialize_schema(db.sqlite, StructuredLogger(name="schema"))
    ...
    db.close()
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Union

from expense_tracker.logger import StructuredLogger


class DatabaseManager:
    """Manages the connection to the local SQLite database.

    Fully configured at construction time via dependency injection.

    Parameters
    ----------
    sqlite_path:
        Filesystem path for the local SQLite database file.  Parent
        directories must already exist.  ``":memory:"`` opens a private
        in-memory database.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    """

    def __init__(
        self,
        sqlite_path: Union[Path, str],
        logger: StructuredLogger,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._write_lock: threading.RLock = threading.RLock()
        self._in_batch: bool = False
        self._closed: bool = False
        self._sqlite_conn: sqlite3.Connection = self._connect_sqlite(sqlite_path)

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def sqlite(self) -> sqlite3.Connection:
        """Return the initialised SQLite connection.

        Raises
        ------
        RuntimeError
            If :meth:`close` has already been called.
        """
        if self._closed:
            raise RuntimeError("The local database has been closed.")
        return self._sqlite_conn

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def write_lock(self) -> threading.RLock:
        """Return the write lock for thread-safe SQLite operations.

        All code that performs SQLite writes (INSERT, UPDATE, DELETE,
        or any operation followed by ``commit()``) should acquire this
        lock first::

            with db.write_lock:
                db.sqlite.execute("INSERT ...")
                db.sqlite.commit()
        """
        return self._write_lock

    @property
    def in_batch(self) -> bool:
        """``True`` when a :meth:`batch_write` context is active.

        Repository code checks this flag before issuing ``commit()``
        so that bulk operations can defer the commit to a single call
        at the end of the batch.
        """
        return self._in_batch

    @contextmanager
    def batch_write(self) -> Generator[None, None, None]:
        """Context manager that defers SQLite commits for bulk operations.

        While the context is active, :pyattr:`in_batch` is ``True`` and
        repository ``_commit()`` calls become no-ops.  On normal exit
        a single ``commit()`` is issued.  On exception the transaction
        is rolled back and the error re-raised.

        Example::

            with db_manager.batch_write():
                for title, amount, kind in rows:
                    repo.add(title, amount, kind)  # no commit per row
            # single commit happens here
        """
        with self._write_lock:
            if self._in_batch:
                # Re-entrant: already in a batch.
                yield
                return

            self._in_batch = True
            try:
                yield
                self.sqlite.commit()
                self._logger.debug("Batch write committed.")
            except Exception:
                self.sqlite.rollback()
                self._logger.error(
                    "Batch write rolled back due to exception.", exc_info=True,
                )
                raise
            finally:
                self._in_batch = False

    # ------------------------------------------------------------------
    # Lifecycle helpers
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the local SQLite connection.

        Safe to call multiple times; subsequent calls are no-ops.
        """
        with self._write_lock:
            if self._closed:
                return
            try:
                self._sqlite_conn.close()
                self._logger.info("SQLite connection closed.")
            except sqlite3.ProgrammingError:
                # Connection was already closed.
                pass
            self._closed = True

    def __enter__(self) -> "DatabaseManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _connect_sqlite(self, path: Union[Path, str]) -> sqlite3.Connection:
        """Open (or create) a SQLite database.

        Re-raises ``PermissionError`` with a user-facing message when the
        file or its parent directory is locked or read-only.

        Returns
        -------
        sqlite3.Connection
            A configured connection with ``row_factory`` set to
            ``sqlite3.Row`` for dict-like row access.
        """
        try:
            # Sync may run off the main thread; all access still goes
            # through ``write_lock``.
            conn = sqlite3.connect(str(path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if str(path) != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL;")
            self._logger.info("SQLite database opened at %s", path)
            return conn
        except PermissionError as exc:
            msg = (
                f"Cannot open the local database at '{path}'. "
                "The file or its directory may be read-only or locked by "
                "another process.  Please check file permissions and try again."
            )
            self._logger.error(msg)
            raise PermissionError(msg) from exc
