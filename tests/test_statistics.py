from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from expense_tracker.models import Record, RecordKind
from expense_tracker.services.statistics import StatisticsService, summarize_records


def _record(record_id: int, amount: str, kind: str, when: datetime, deleted: bool = False) -> Record:
    return Record(
        id=str(record_id),
        title=f"Record {record_id}",
        amount=Decimal(amount),
        kind=RecordKind(kind),
        created_at=when,
        deleted=deleted,
    )


def _utc(year: int, month: int, day: int = 15) -> datetime:
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


def test_two_month_rollup(repo, clock, app_config, logger):
    clock.set(_utc(2025, 10, 5))
    repo.add("Salary", 100, "income")
    clock.set(_utc(2025, 10, 20))
    repo.add("Groceries", 30, "expense")
    clock.set(_utc(2025, 11, 3))
    repo.add("Rent", 50, "expense")

    service = StatisticsService(repo=repo, config=app_config, logger=logger, tz=timezone.utc)
    summary = service.get_summary()

    assert [(m.label, m.income, m.expense) for m in summary.months] == [
        ("10/2025", Decimal("100"), Decimal("30")),
        ("11/2025", Decimal("0"), Decimal("50")),
    ]
    assert summary.total_income == Decimal("100")
    assert summary.total_expense == Decimal("80")
    assert summary.balance == Decimal("20")
    assert summary.is_empty is False


def test_single_month_totals(repo, clock, app_config, logger):
    clock.set(_utc(2025, 8, 1))
    repo.add("Salary", 100, "income")
    repo.add("Bonus", 200, "income")
    repo.add("Dinner", 50, "expense")

    summary = StatisticsService(
        repo=repo, config=app_config, logger=logger, tz=timezone.utc,
    ).get_summary()

    (month,) = summary.months
    assert (month.label, month.income, month.expense) == ("8/2025", Decimal("300"), Decimal("50"))
    assert summary.total_income == Decimal("300")
    assert summary.total_expense == Decimal("50")
    assert summary.balance == Decimal("250")


def test_empty_store_yields_empty_summary(repo, app_config, logger):
    summary = StatisticsService(repo=repo, config=app_config, logger=logger).get_summary()

    assert summary.is_empty is True
    assert summary.months == []
    assert summary.total_income == Decimal("0")
    assert summary.total_expense == Decimal("0")


def test_only_trashed_records_counts_as_empty(repo, app_config, logger):
    record = repo.add("Gone", 10, "income")
    repo.soft_delete(record.id)

    summary = StatisticsService(repo=repo, config=app_config, logger=logger).get_summary()

    assert summary.is_empty is True


def test_window_keeps_most_recent_months_oldest_first():
    records = [
        _record(i, "10", "expense", _utc(2025, month))
        for i, month in enumerate(range(1, 10), start=1)
    ]

    summary = summarize_records(records, window=6, tz=timezone.utc)

    assert [m.label for m in summary.months] == [
        "4/2025", "5/2025", "6/2025", "7/2025", "8/2025", "9/2025",
    ]
    # Grand totals still cover every month.
    assert summary.total_expense == Decimal("90")


def test_months_without_records_are_skipped():
    records = [
        _record(1, "5", "income", _utc(2024, 12)),
        _record(2, "7", "income", _utc(2025, 3)),
    ]

    summary = summarize_records(records, tz=timezone.utc)

    assert [m.label for m in summary.months] == ["12/2024", "3/2025"]


def test_trashed_records_are_ignored():
    records = [
        _record(1, "40", "income", _utc(2025, 5)),
        _record(2, "999", "income", _utc(2025, 5), deleted=True),
        _record(3, "999", "expense", _utc(2025, 6), deleted=True),
    ]

    summary = summarize_records(records, tz=timezone.utc)

    assert [m.label for m in summary.months] == ["5/2025"]
    assert summary.total_income == Decimal("40")
    assert summary.total_expense == Decimal("0")


def test_month_grouping_follows_given_timezone():
    late_night_utc = datetime(2025, 1, 31, 23, 30, tzinfo=timezone.utc)
    records = [_record(1, "10", "expense", late_night_utc)]

    plus_two = timezone(timedelta(hours=2))

    assert summarize_records(records, tz=timezone.utc).months[0].label == "1/2025"
    assert summarize_records(records, tz=plus_two).months[0].label == "2/2025"


def test_month_rollup_net():
    summary = summarize_records(
        [
            _record(1, "100.50", "income", _utc(2025, 2)),
            _record(2, "20.25", "expense", _utc(2025, 2)),
        ],
        tz=timezone.utc,
    )

    assert summary.months[0].net == Decimal("80.25")


def test_window_must_be_positive():
    with pytest.raises(ValueError):
        summarize_records([], window=0)
