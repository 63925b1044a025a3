from __future__ import annotations

"""
Data Models Package.

Re-exports all Pydantic models:
    from expense_tracker.models import Record, RecordInput, RecordKind
    from expense_tracker.models import RemoteRecord, RemoteRecordDraft
    from expense_tracker.models import MonthlyRollup, StatisticsSummary, SyncReport
"""

from expense_tracker.models.enums import RecordKind
from expense_tracker.models.record import AMOUNT_MAX_DIGITS, TITLE_MAX_LENGTH, Record, RecordInput
from expense_tracker.models.remote_record import RemoteRecord, RemoteRecordDraft
from expense_tracker.models.service_models import (
    MonthlyRollup,
    StatisticsSummary,
    SyncReport,
)

__all__ = [
    "AMOUNT_MAX_DIGITS",
    "TITLE_MAX_LENGTH",
    "RecordKind",
    "Record",
    "RecordInput",
    "RemoteRecord",
    "RemoteRecordDraft",
    "MonthlyRollup",
    "StatisticsSummary",
    "SyncReport",
]
