"""
Service Layer Data Transfer Objects.

Pydantic models returned by the statistics and sync services.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, computed_field

__all__ = [
    "MonthlyRollup",
    "StatisticsSummary",
    "SyncReport",
]


# ---------------------------------------------------------------------------
# Statistics models
# ---------------------------------------------------------------------------

class MonthlyRollup(BaseModel):
    """Income and expense sums for one calendar month."""

    year: int
    month: int = Field(ge=1, le=12)
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        """Chart label, ``M/YYYY``."""
        return f"{self.month}/{self.year}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class StatisticsSummary(BaseModel):
    """Monthly window plus grand totals over every active record.

    ``months`` is ordered oldest first.  ``is_empty`` is ``True`` only when
    there were no active records at all.
    """

    months: list[MonthlyRollup] = Field(default_factory=list)
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    is_empty: bool = True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense


# ---------------------------------------------------------------------------
# Sync models
# ---------------------------------------------------------------------------

class SyncReport(BaseModel):
    """Outcome of a successful sync run."""

    endpoint: str
    deleted: int = Field(default=0, ge=0)
    uploaded: int = Field(default=0, ge=0)
