"""Free-text and kind filtering for record listings."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional, Union

from expense_tracker.models.enums import RecordKind
from expense_tracker.models.record import Record


def _plain_amount(amount: Decimal) -> str:
    """``50000`` rather than ``5E+4`` or ``50000.0``."""
    return format(amount.normalize(), "f")


def matches_query(record: Record, query: str) -> bool:
    """Case-insensitive substring match on title, amount, or kind label."""
    needle = query.strip().lower()
    if not needle:
        return True
    return (
        needle in record.title.lower()
        or needle in _plain_amount(record.amount)
        or needle in str(record.kind)
    )


def filter_records(
    records: Iterable[Record],
    query: str = "",
    kind: Optional[Union[RecordKind, str]] = None,
) -> list[Record]:
    """Return the records matching *query* and *kind*, preserving order."""
    wanted = RecordKind.parse(kind) if kind is not None else None
    return [
        record
        for record in records
        if (wanted is None or record.kind == wanted) and matches_query(record, query)
    ]
