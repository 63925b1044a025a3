from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from expense_tracker.models import Record, RecordKind
from expense_tracker.services import filter_records, matches_query

_WHEN = datetime(2025, 11, 1, tzinfo=timezone.utc)


@pytest.fixture()
def records() -> list[Record]:
    return [
        Record(id="1", title="Lunch at Pho 24", amount=Decimal("50000"), kind=RecordKind.EXPENSE, created_at=_WHEN),
        Record(id="2", title="Monthly salary", amount=Decimal("1500.5"), kind=RecordKind.INCOME, created_at=_WHEN),
        Record(id="3", title="Coffee", amount=Decimal("3"), kind=RecordKind.EXPENSE, created_at=_WHEN),
    ]


def test_blank_query_matches_everything(records):
    assert filter_records(records, "   ") == records


def test_title_match_is_case_insensitive(records):
    assert [r.id for r in filter_records(records, "LUNCH")] == ["1"]


def test_amount_match_uses_plain_digits(records):
    assert [r.id for r in filter_records(records, "5000")] == ["1"]
    assert [r.id for r in filter_records(records, "1500.5")] == ["2"]


def test_kind_label_matches(records):
    assert [r.id for r in filter_records(records, "income")] == ["2"]


def test_kind_filter_combines_with_query(records):
    assert [r.id for r in filter_records(records, "", kind="expense")] == ["1", "3"]
    assert [r.id for r in filter_records(records, "coffee", kind=RecordKind.INCOME)] == []


def test_unknown_kind_filter_raises(records):
    with pytest.raises(ValueError):
        filter_records(records, kind="transfer")


def test_matches_query_on_large_amount_without_exponent():
    record = Record(
        id="9", title="Car", amount=Decimal("2E+4"), kind=RecordKind.EXPENSE, created_at=_WHEN,
    )

    assert matches_query(record, "20000")
