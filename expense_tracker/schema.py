"""
Centralized SQLite Schema Initialization.

Defines the canonical schema for the Expense Tracker local database and
provides a single entry-point -- :func:`initialize_schema` -- that creates
all required tables idempotently.  A lightweight ``schema_version`` table
tracks applied migrations so that schema changes roll forward without
data loss.

Migration Strategy
~~~~~~~~~~~~~~~~~~
- **Fresh or unversioned databases** (version 0): every table is created
  from :data:`_TABLE_DEFINITIONS` with ``CREATE TABLE IF NOT EXISTS``, then
  every registered migration runs.  Migrations are guarded by
  :func:`_column_exists`, so a ``transactions`` table left behind by an
  older install (for example one without ``is_deleted``) is upgraded in
  place while a brand-new table is left untouched.
- **Existing databases** (version N > 0): only migrations registered in
  :data:`_MIGRATIONS` for versions in ``(N, CURRENT_SCHEMA_VERSION]`` run.
- The entire upgrade (migrations + version bump) is wrapped in a single
  SQLite transaction.  On failure the database rolls back to version N
  and the next startup retries.

Adding a New Migration
~~~~~~~~~~~~~~~~~~~~~~
1. Bump :data:`CURRENT_SCHEMA_VERSION`.
2. Update the relevant DDL in :data:`_TABLE_DEFINITIONS` (for fresh installs).
3. Write a ``_migrate_vN_to_vN+1()`` function (use ``ALTER TABLE`` with a
   :func:`_column_exists` guard for idempotency).
4. Register the function in :data:`_MIGRATIONS`.

Usage::

    from expense_tracker.logger import StructuredLogger
    from expense_tracker.schema import initialize_schema

    initialize_schema(db.sqlite, StructuredLogger(name="schema"))
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable

from expense_tracker.logger import StructuredLogger

__all__ = ["CURRENT_SCHEMA_VERSION", "initialize_schema"]

# ---------------------------------------------------------------------------
# Schema version -- bump this whenever a migration is added.
# ---------------------------------------------------------------------------
CURRENT_SCHEMA_VERSION: int = 2

# ---------------------------------------------------------------------------
# DDL statements for every table in the local database.
# ---------------------------------------------------------------------------
_TABLE_DEFINITIONS: list[str] = [
    # -- single-row version tracker -------------------------------------------
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        version INTEGER NOT NULL,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    # -- income / expense records ---------------------------------------------
    # AUTOINCREMENT guarantees ids are never reused after a purge.
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        amount REAL NOT NULL,
        created_at TEXT NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('income', 'expense')),
        is_deleted INTEGER NOT NULL DEFAULT 0
    )
    """,
    # -- app_settings (key-value local preferences) ---------------------------
    """
    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the ``schema_version`` table if it does not yet exist.

    This is executed *before* any version check so that a brand-new
    database can be bootstrapped cleanly.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_version (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            version INTEGER NOT NULL,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    conn.commit()


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version, or ``0`` if unset."""
    cursor: sqlite3.Cursor = conn.execute(
        "SELECT version FROM schema_version WHERE id = 1"
    )
    row: tuple[int] | None = cursor.fetchone()
    return row[0] if row is not None else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    """Upsert the single-row version tracker to *version*.

    Does **not** commit -- the caller is responsible for transaction
    management so that version updates are atomic with schema changes.
    """
    conn.execute(
        """
        INSERT INTO schema_version (id, version) VALUES (1, ?)
        ON CONFLICT(id) DO UPDATE SET version = excluded.version,
                                      applied_at = CURRENT_TIMESTAMP
        """,
        (version,),
    )


def _create_all_tables(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Execute every DDL statement in :data:`_TABLE_DEFINITIONS`.

    Does **not** commit -- the caller is responsible for transaction
    management.
    """
    for ddl in _TABLE_DEFINITIONS:
        conn.execute(ddl)
    logger.info(
        f"All {len(_TABLE_DEFINITIONS)} tables created or verified successfully."
    )


_ALLOWED_TABLES: frozenset[str] = frozenset({
    "schema_version",
    "transactions",
    "app_settings",
})
"""Tables that may be referenced in dynamic PRAGMA queries.

Every table defined in :data:`_TABLE_DEFINITIONS` must be listed here.
"""


def _column_exists(
    conn: sqlite3.Connection, table: str, column: str,
) -> bool:
    """Check whether *column* already exists in *table*.

    Raises:
        ValueError: If *table* is not in :data:`_ALLOWED_TABLES`.
    """
    if table not in _ALLOWED_TABLES:
        raise ValueError(
            f"Invalid table name: {table!r}. "
            f"Allowed tables: {sorted(_ALLOWED_TABLES)}"
        )
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return any(row[1] == column for row in rows)


# ---------------------------------------------------------------------------
# Migrations
# ---------------------------------------------------------------------------

def _migrate_v0_to_v1(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Introduce the ``app_settings`` key-value table.

    Installs that predate versioning only had ``transactions``.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )
    logger.info("Migration v0→v1: app_settings table created or verified.")


def _migrate_v1_to_v2(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Bring ``transactions`` to the snake_case layout with a soft-delete flag.

    Tables written by the mobile app use ``createdAt``/``isDeleted`` and
    JavaScript ``toISOString()`` timestamps; both are renamed and the
    timestamps rewritten to the fixed-width form the listings sort on.
    Existing rows without a flag become active (``is_deleted = 0``).
    """
    if (
        _column_exists(conn, "transactions", "createdAt")
        and not _column_exists(conn, "transactions", "created_at")
    ):
        conn.execute("ALTER TABLE transactions RENAME COLUMN createdAt TO created_at")
        # 2025-10-01T08:00:00.000Z -> 2025-10-01T08:00:00.000000+00:00
        conn.execute(
            "UPDATE transactions "
            "SET created_at = substr(created_at, 1, 23) || '000+00:00' "
            "WHERE length(created_at) = 24 AND substr(created_at, 24, 1) = 'Z'"
        )
        logger.info("Migration v1→v2: renamed createdAt to created_at.")

    if (
        _column_exists(conn, "transactions", "isDeleted")
        and not _column_exists(conn, "transactions", "is_deleted")
    ):
        conn.execute("ALTER TABLE transactions RENAME COLUMN isDeleted TO is_deleted")
        logger.info("Migration v1→v2: renamed isDeleted to is_deleted.")

    if not _column_exists(conn, "transactions", "is_deleted"):
        conn.execute(
            "ALTER TABLE transactions ADD COLUMN is_deleted INTEGER NOT NULL DEFAULT 0"
        )
        logger.info("Migration v1→v2: added is_deleted column to transactions.")

    # The mobile app's flag column allowed NULL.
    conn.execute("UPDATE transactions SET is_deleted = 0 WHERE is_deleted IS NULL")

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_transactions_deleted_created "
        "ON transactions(is_deleted, created_at)"
    )


# ---------------------------------------------------------------------------
# Migration registry -- maps *target* version to its migration function.
# ---------------------------------------------------------------------------

MigrationFunc = Callable[[sqlite3.Connection, StructuredLogger], None]

_MIGRATIONS: dict[int, MigrationFunc] = {
    1: _migrate_v0_to_v1,
    2: _migrate_v1_to_v2,
}


def _run_incremental_migrations(
    conn: sqlite3.Connection,
    logger: StructuredLogger,
    from_version: int,
    to_version: int,
) -> None:
    """Run all registered migrations between *from_version* and *to_version*.

    Migrations are executed in ascending version order.  Only versions
    in the half-open range ``(from_version, to_version]`` are applied.
    Each migration function must be idempotent.

    Does **not** commit -- the caller is responsible for transaction
    management.
    """
    versions_to_apply: list[int] = sorted(
        v for v in _MIGRATIONS if from_version < v <= to_version
    )

    if not versions_to_apply:
        logger.info("No incremental migrations to apply.")
        return

    logger.info(
        f"Applying {len(versions_to_apply)} migration(s): "
        f"{' → '.join(str(v) for v in versions_to_apply)}"
    )
    for version in versions_to_apply:
        logger.info(f"Running migration to version {version} …")
        _MIGRATIONS[version](conn, logger)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def initialize_schema(conn: sqlite3.Connection, logger: StructuredLogger) -> None:
    """Ensure the local SQLite database matches the current schema version.

    Workflow:
        1. Guarantee the ``schema_version`` table exists (separate commit).
        2. Read the stored version number (``0`` for a fresh database).
        3. If the stored version equals or exceeds
           :data:`CURRENT_SCHEMA_VERSION`, return immediately.
        4. Otherwise, upgrade within a **single atomic transaction**:

           - **Version 0**: create all tables from
             :data:`_TABLE_DEFINITIONS`, then run every migration so that
             tables left by an unversioned install gain any missing
             columns.
           - **Version N > 0**: run migrations for versions in
             ``(N, CURRENT_SCHEMA_VERSION]``.
           - Update the version tracker.
           - Commit.  On failure the entire upgrade is rolled back so the
             version number stays at N and the next startup retries.

    Designed to be called on every application startup; fully idempotent.

    Args:
        conn: An open SQLite connection.
        logger: A :class:`~expense_tracker.logger.StructuredLogger` instance.
    """
    _ensure_version_table(conn)
    current: int = _get_schema_version(conn)

    if current >= CURRENT_SCHEMA_VERSION:
        logger.info(f"Schema is up to date (version {current}).")
        return

    logger.info(
        f"Upgrading schema from version {current} "
        f"to {CURRENT_SCHEMA_VERSION} …"
    )

    try:
        if current == 0:
            _create_all_tables(conn, logger)
        _run_incremental_migrations(
            conn, logger, current, CURRENT_SCHEMA_VERSION,
        )

        _set_schema_version(conn, CURRENT_SCHEMA_VERSION)
        conn.commit()
    except Exception:
        conn.rollback()
        logger.error(
            f"Schema migration failed; rolled back to version {current}."
        )
        raise

    logger.info(f"Schema initialised at version {CURRENT_SCHEMA_VERSION}.")
