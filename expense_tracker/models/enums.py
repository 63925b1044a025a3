"""
Shared Enumerations for Expense Tracker Models.

StrEnum values compare equal to their string equivalents,
so code like ``if kind == 'income'`` continues to work.
"""

from __future__ import annotations
from enum import StrEnum


class RecordKind(StrEnum):
    """Direction of a record.  Fixed, closed set."""

    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: object) -> "RecordKind":
        """Coerce arbitrary casing and surrounding whitespace into a kind.

        Raises ``ValueError`` for anything outside the closed set.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported record kind: {value!r}") from exc
