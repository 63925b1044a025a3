"""
Application Settings Service.

Read/write access to the ``app_settings`` key-value table in the local
SQLite database.  Provides typed getters for known settings and a
generic get/set for future extensibility.

This is a documented exception to the Repository pattern because
``app_settings`` stores infrastructure state, not domain data::

    CREATE TABLE IF NOT EXISTS app_settings (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from expense_tracker.database import DatabaseManager
from expense_tracker.logger import StructuredLogger

_KEY_REMOTE_ENDPOINT: str = "remote_endpoint_url"


class AppSettingsService:
    """Manages persistent application preferences in local SQLite.

    Parameters
    ----------
    db:
        Initialised ``DatabaseManager`` with active SQLite connection.
    logger:
        Structured logger instance.
    """

    def __init__(self, db: DatabaseManager, logger: StructuredLogger) -> None:
        self._db = db
        self._logger = logger

    # ------------------------------------------------------------------
    # Generic key-value access
    # ------------------------------------------------------------------

    def get(self, key: str) -> Optional[str]:
        """Read a setting value by key.  Returns ``None`` if not found."""
        try:
            with self._db.write_lock:
                row = self._db.sqlite.execute(
                    "SELECT value FROM app_settings WHERE key = ?",
                    (key,),
                ).fetchone()
            return row["value"] if row is not None else None
        except sqlite3.Error as exc:
            self._logger.warning("Failed to read app_settings[%s]: %s", key, exc)
            return None

    def set(self, key: str, value: str) -> bool:
        """Upsert a setting value.  Returns ``True`` on success."""
        try:
            with self._db.write_lock:
                self._db.sqlite.execute(
                    """
                    INSERT INTO app_settings (key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value      = excluded.value,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (key, value),
                )
                self._db.sqlite.commit()
            self._logger.info("app_settings[%s] updated.", key)
            return True
        except sqlite3.Error as exc:
            self._logger.error("Failed to write app_settings[%s]: %s", key, exc)
            return False

    # ------------------------------------------------------------------
    # Typed convenience -- remote mirror endpoint
    # ------------------------------------------------------------------

    def get_remote_endpoint(self) -> Optional[str]:
        """Return the stored remote endpoint URL, or ``None``."""
        return self.get(_KEY_REMOTE_ENDPOINT)

    def set_remote_endpoint(self, url: str) -> bool:
        """Persist the user-configured remote endpoint URL."""
        return self.set(_KEY_REMOTE_ENDPOINT, url)
