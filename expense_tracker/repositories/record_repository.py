"""
Record Repository.

Durable CRUD and soft-delete lifecycle for income/expense records in the
local SQLite ``transactions`` table.

A record is either *active* (``is_deleted = 0``) or *trashed*
(``is_deleted = 1``).  Trashing and restoring flip the flag on the same
row, so a record keeps its id for its whole lifetime.  :meth:`purge` is
the only operation that removes a row.

Input is validated here through :class:`RecordInput` even though the
presentation layer validates too; invalid input never reaches SQLite.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from expense_tracker.database import DatabaseManager
from expense_tracker.exceptions import NotFoundError, ValidationError
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.enums import RecordKind
from expense_tracker.models.record import Record, RecordInput
from expense_tracker.repositories.base_repository import BaseRepository
from expense_tracker.schema import initialize_schema

RecordId = Union[str, int]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_timestamp(value: datetime) -> str:
    # Fixed-width UTC strings sort chronologically as text.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RecordRepository(BaseRepository):
    """Data access layer for :class:`Record` entities.

    Parameters
    ----------
    db:
        Initialised ``DatabaseManager``.
    logger:
        Structured logger instance.
    clock:
        Zero-argument callable returning the creation timestamp for
        :meth:`add`.  Defaults to the current UTC time.
    """

    TABLE = "transactions"

    _SELECT_COLUMNS: str = "id, title, amount, created_at, type, is_deleted"

    def __init__(
        self,
        db: DatabaseManager,
        logger: StructuredLogger,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(db, logger)
        self._clock: Clock = clock or _utc_now

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Create or upgrade the schema.  Safe to call on every start."""
        with self._db.write_lock:
            initialize_schema(self.sqlite, self._logger)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, title: str, amount: Union[Decimal, float, int, str], kind: Union[RecordKind, str]) -> Record:
        """Insert a new active record timestamped now.

        Raises:
            ValidationError: blank title, non-positive amount, or unknown kind.
        """
        data = self._validate(title, amount, kind, action="add")
        created_at = _format_timestamp(self._clock())

        with self._db.write_lock:
            try:
                cursor = self.sqlite.execute(
                    f"""
                    INSERT INTO {self.TABLE} (title, amount, created_at, type, is_deleted)
                    VALUES (?, ?, ?, ?, 0)
                    """,
                    (data.title, float(data.amount), created_at, str(data.kind)),
                )
                self._commit()
            except sqlite3.Error as exc:
                self._rollback()
                self._logger.error("Failed to add record: %s", exc)
                raise

            record_id = str(cursor.lastrowid)
            record = self.get_by_id(record_id)

        self._logger.info(
            "Record added: %s", record_id, extra={"kind": str(data.kind)},
        )
        return record

    def update(
        self,
        record_id: RecordId,
        title: str,
        amount: Union[Decimal, float, int, str],
        kind: Union[RecordKind, str],
    ) -> None:
        """Replace title, amount and kind.  ``created_at`` and the
        soft-delete flag are left untouched.

        Raises:
            ValidationError: invalid field values.
            NotFoundError: no record with *record_id*.
        """
        data = self._validate(title, amount, kind, action="update")
        self._execute_by_id(
            f"UPDATE {self.TABLE} SET title = ?, amount = ?, type = ? WHERE id = ?",
            (data.title, float(data.amount), str(data.kind)),
            record_id,
            action="update",
        )
        self._logger.info("Record updated: %s", record_id)

    def soft_delete(self, record_id: RecordId) -> None:
        """Move a record to the trash.  No-op if already trashed."""
        self._execute_by_id(
            f"UPDATE {self.TABLE} SET is_deleted = 1 WHERE id = ?",
            (),
            record_id,
            action="soft_delete",
        )
        self._logger.info("Record moved to trash: %s", record_id)

    def restore(self, record_id: RecordId) -> None:
        """Bring a trashed record back.  No-op if already active."""
        self._execute_by_id(
            f"UPDATE {self.TABLE} SET is_deleted = 0 WHERE id = ?",
            (),
            record_id,
            action="restore",
        )
        self._logger.info("Record restored: %s", record_id)

    def purge(self, record_id: RecordId) -> None:
        """Permanently delete a record in any state.  Irreversible."""
        self._execute_by_id(
            f"DELETE FROM {self.TABLE} WHERE id = ?",
            (),
            record_id,
            action="purge",
        )
        self._logger.info("Record permanently deleted: %s", record_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, record_id: RecordId) -> Record:
        """Fetch one record regardless of its lifecycle state.

        Raises:
            NotFoundError: no record with *record_id*.
        """
        row_id = self._parse_id(record_id)
        with self._db.write_lock:
            row = self.sqlite.execute(
                f"SELECT {self._SELECT_COLUMNS} FROM {self.TABLE} WHERE id = ?",
                (row_id,),
            ).fetchone()
        if row is None:
            raise NotFoundError(str(record_id))
        return self._parse_row(row)

    def list_active(self) -> list[Record]:
        """All active records, newest first."""
        return self._list_by_flag(deleted=False)

    def list_trashed(self) -> list[Record]:
        """All trashed records, newest first."""
        return self._list_by_flag(deleted=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _list_by_flag(self, deleted: bool) -> list[Record]:
        with self._db.write_lock:
            rows = self.sqlite.execute(
                f"""
                SELECT {self._SELECT_COLUMNS} FROM {self.TABLE}
                WHERE is_deleted = ?
                ORDER BY created_at DESC, id DESC
                """,
                (1 if deleted else 0,),
            ).fetchall()
        return [self._parse_row(row) for row in rows]

    def _execute_by_id(
        self,
        sql: str,
        params: tuple[object, ...],
        record_id: RecordId,
        *,
        action: str,
    ) -> None:
        """Run a single-row write keyed by id, raising if no row matched."""
        row_id = self._parse_id(record_id)
        with self._db.write_lock:
            try:
                cursor = self.sqlite.execute(sql, (*params, row_id))
                self._commit()
            except sqlite3.Error as exc:
                self._rollback()
                self._logger.error(
                    "Failed to %s record %s: %s", action, record_id, exc,
                )
                raise
        if cursor.rowcount == 0:
            self._logger.warning(
                "Cannot %s record %s: not found.", action, record_id,
            )
            raise NotFoundError(str(record_id))

    def _validate(
        self,
        title: object,
        amount: object,
        kind: object,
        *,
        action: str,
    ) -> RecordInput:
        try:
            return RecordInput(title=title, amount=amount, kind=kind)
        except PydanticValidationError as exc:
            message = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            self._logger.warning("Rejected %s: %s", action, message)
            raise ValidationError(message) from exc

    @staticmethod
    def _parse_id(record_id: RecordId) -> int:
        """Convert an external id to the integer primary key.

        Ids that cannot be integers cannot exist in the table.
        """
        try:
            return int(str(record_id).strip())
        except ValueError as exc:
            raise NotFoundError(str(record_id)) from exc

    @staticmethod
    def _parse_row(row: sqlite3.Row) -> Record:
        return Record(
            id=str(row["id"]),
            title=row["title"],
            amount=Decimal(str(row["amount"])),
            kind=RecordKind.parse(row["type"]),
            created_at=_parse_timestamp(row["created_at"]),
            deleted=bool(row["is_deleted"]),
        )
