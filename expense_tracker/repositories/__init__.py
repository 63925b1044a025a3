"""
Repository Layer Package.

Provides data-access abstractions over the local SQLite database.
All record persistence flows through repositories -- services never
access ``db.sqlite`` directly (``AppSettingsService`` is the documented
exception for infrastructure state).

Usage:
    from expense_tracker.repositories import RecordRepository
"""

from expense_tracker.repositories.base_repository import BaseRepository
from expense_tracker.repositories.record_repository import RecordRepository

__all__ = [
    "BaseRepository",
    "RecordRepository",
]
