"""
Domain Exceptions.

Every failure the record store, remote mirror client, and sync service
raise derives from :class:`ExpenseTrackerError`, so the presentation layer
can catch one base class and show a message naming the attempted action.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "ExpenseTrackerError",
    "InvalidConfigError",
    "NotFoundError",
    "RemoteError",
    "SyncError",
    "ValidationError",
]


class ExpenseTrackerError(Exception):
    """Base class for all Expense Tracker failures."""

    def __init__(self, message: str) -> None:
        self.message: str = message
        super().__init__(self.message)


class ValidationError(ExpenseTrackerError):
    """Caller supplied an out-of-contract value.  No state was changed."""


class InvalidConfigError(ValidationError):
    """The remote endpoint URL is malformed or could not be persisted."""


class NotFoundError(ExpenseTrackerError):
    """The referenced record id does not exist in the store."""

    def __init__(self, record_id: str) -> None:
        self.record_id: str = str(record_id)
        super().__init__(f"Record {self.record_id} not found.")


class RemoteError(ExpenseTrackerError):
    """Non-success HTTP response or transport failure from the remote mirror.

    ``status_code`` is ``None`` when no response was received.
    """

    def __init__(
        self,
        message: str,
        url: str,
        status_code: Optional[int] = None,
    ) -> None:
        self.url: str = url
        self.status_code: Optional[int] = status_code
        super().__init__(message)


class SyncError(ExpenseTrackerError):
    """Aggregate failure of a sync run.

    The remote collection may have been left partially updated; the
    underlying failure is chained as ``__cause__``.
    """

    HINT: str = "Check your network connection and the configured API URL, then try again."

    def __init__(self, message: str) -> None:
        super().__init__(f"{message} {self.HINT}")
