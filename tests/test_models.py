from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from expense_tracker.models import (
    MonthlyRollup,
    Record,
    RecordInput,
    RecordKind,
    RemoteRecord,
    RemoteRecordDraft,
    SyncReport,
)
from expense_tracker.utils import convert_to_json_safe


def test_record_input_normalizes_values():
    data = RecordInput(title="  Taxi ", amount="12.40", kind=" Expense ")

    assert data.title == "Taxi"
    assert data.amount == Decimal("12.40")
    assert data.kind is RecordKind.EXPENSE


@pytest.mark.parametrize("amount", [True, 0, "-1", "NaN-ish"])
def test_record_input_rejects_bad_amounts(amount):
    with pytest.raises(PydanticValidationError):
        RecordInput(title="Taxi", amount=amount, kind="expense")


def test_record_input_title_limit():
    RecordInput(title="x" * 100, amount=1, kind="income")
    with pytest.raises(PydanticValidationError):
        RecordInput(title="x" * 101, amount=1, kind="income")


def test_record_kind_is_string_compatible():
    assert RecordKind.INCOME == "income"
    assert RecordKind.parse("EXPENSE") is RecordKind.EXPENSE
    with pytest.raises(ValueError):
        RecordKind.parse("refund")


def test_record_is_active_mirrors_deleted_flag():
    when = datetime(2025, 1, 1, tzinfo=timezone.utc)
    record = Record(id="1", title="A", amount=Decimal("1"), kind=RecordKind.INCOME, created_at=when)

    assert record.is_active
    assert not record.model_copy(update={"deleted": True}).is_active


def test_remote_record_reads_wire_aliases():
    remote = RemoteRecord.model_validate({
        "id": 12,
        "title": "Bonus",
        "amount": "250",
        "type": "INCOME",
        "createdAt": "2025-06-30T22:15:00Z",
    })

    assert remote.id == "12"
    assert remote.kind is RecordKind.INCOME
    assert remote.created_at == datetime(2025, 6, 30, 22, 15, tzinfo=timezone.utc)


def test_draft_payload_uses_wire_names():
    when = datetime(2025, 6, 30, 22, 15, tzinfo=timezone.utc)
    record = Record(id="4", title="Bonus", amount=Decimal("250.75"), kind=RecordKind.INCOME, created_at=when)

    payload = RemoteRecordDraft.from_record(record).to_payload()

    assert payload == {
        "title": "Bonus",
        "amount": 250.75,
        "type": "income",
        "createdAt": "2025-06-30T22:15:00+00:00",
    }


def test_monthly_rollup_label_has_no_zero_padding():
    assert MonthlyRollup(year=2025, month=3).label == "3/2025"
    with pytest.raises(PydanticValidationError):
        MonthlyRollup(year=2025, month=13)


def test_sync_report_counts_are_non_negative():
    with pytest.raises(PydanticValidationError):
        SyncReport(endpoint="https://example.test", deleted=-1)


def test_convert_to_json_safe_handles_domain_types():
    result = convert_to_json_safe({
        "kind": RecordKind.EXPENSE,
        "amount": Decimal("1.5"),
        "bad": Decimal("NaN"),
        "when": datetime(2025, 1, 2, 3, 4, tzinfo=timezone.utc),
        "items": (1, "a"),
    })

    assert result == {
        "kind": "expense",
        "amount": 1.5,
        "bad": None,
        "when": "2025-01-02T03:04:00+00:00",
        "items": [1, "a"],
    }
