"""
Statistics Service.

Derives monthly income/expense rollups from the active records for the
statistics screen.  Purely a read-side computation: nothing is persisted.

Algorithm:
    1. Group active records by ``(year, month)`` of ``created_at`` in
       local calendar terms.
    2. Per group, sum income and expense separately.
    3. Keep the most recent ``STATS_MONTH_WINDOW`` groups and present
       them oldest first, ready for charting.
    4. Grand totals cover *all* active records, not just the window.

No active records yields an empty summary (``is_empty=True``); failures
reading the store propagate as exceptions instead.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import tzinfo
from decimal import Decimal
from typing import Optional

from expense_tracker.config import AppConfig
from expense_tracker.logger import StructuredLogger
from expense_tracker.models.enums import RecordKind
from expense_tracker.models.record import Record
from expense_tracker.models.service_models import MonthlyRollup, StatisticsSummary
from expense_tracker.repositories.record_repository import RecordRepository
from expense_tracker.services.base_service import BaseService


def summarize_records(
    records: Iterable[Record],
    window: int = 6,
    tz: Optional[tzinfo] = None,
) -> StatisticsSummary:
    """Build a :class:`StatisticsSummary` from *records*.

    Trashed records are ignored.  *tz* selects the calendar used for
    month grouping; ``None`` means the system's local timezone.
    """
    if window < 1:
        raise ValueError(f"window must be at least 1, got {window}")

    buckets: dict[tuple[int, int], dict[RecordKind, Decimal]] = {}
    totals: dict[RecordKind, Decimal] = {
        RecordKind.INCOME: Decimal("0"),
        RecordKind.EXPENSE: Decimal("0"),
    }
    seen = False

    for record in records:
        if record.deleted:
            continue
        seen = True
        local = record.created_at.astimezone(tz)
        bucket = buckets.setdefault(
            (local.year, local.month),
            {RecordKind.INCOME: Decimal("0"), RecordKind.EXPENSE: Decimal("0")},
        )
        bucket[record.kind] += record.amount
        totals[record.kind] += record.amount

    if not seen:
        return StatisticsSummary()

    recent = sorted(buckets, reverse=True)[:window]
    months = [
        MonthlyRollup(
            year=year,
            month=month,
            income=buckets[(year, month)][RecordKind.INCOME],
            expense=buckets[(year, month)][RecordKind.EXPENSE],
        )
        for year, month in reversed(recent)
    ]

    return StatisticsSummary(
        months=months,
        total_income=totals[RecordKind.INCOME],
        total_expense=totals[RecordKind.EXPENSE],
        is_empty=False,
    )


class StatisticsService(BaseService):
    """Monthly rollups and grand totals over the active record set.

    Parameters
    ----------
    repo:
        Local record store.
    config:
        Supplies ``STATS_MONTH_WINDOW``.
    logger:
        Structured logger instance.
    tz:
        Calendar timezone for month grouping; defaults to system local.
    """

    def __init__(
        self,
        repo: RecordRepository,
        config: AppConfig,
        logger: StructuredLogger,
        tz: Optional[tzinfo] = None,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._window = config.STATS_MONTH_WINDOW
        self._tz = tz

    def get_summary(self) -> StatisticsSummary:
        """Compute the summary from the current active records."""
        try:
            records = self._repo.list_active()
        except Exception as exc:
            self._logger.error(
                "Failed to load records for statistics: %s", exc, exc_info=True,
            )
            raise

        summary = summarize_records(records, window=self._window, tz=self._tz)
        self._logger.debug(
            "Statistics computed: %d month(s), empty=%s",
            len(summary.months),
            summary.is_empty,
        )
        return summary
