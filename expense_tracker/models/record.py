"""
Record Model.

Pydantic models for the single persisted entity: one income or expense
entry.  ``RecordInput`` validates caller-supplied values at the store
boundary; ``Record`` is what the repository hands back.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from expense_tracker.models.enums import RecordKind

TITLE_MAX_LENGTH: int = 100
# Amounts live in a REAL column; 15 significant digits survive a double exactly.
AMOUNT_MAX_DIGITS: int = 15


class RecordInput(BaseModel):
    """Validated mutable fields of a record (used by ``add`` and ``update``)."""

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    amount: Decimal = Field(gt=0, max_digits=AMOUNT_MAX_DIGITS)
    kind: RecordKind

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls: type[RecordInput], v: object) -> object:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Title must not be blank.")
        return v

    @field_validator("amount", mode="before")
    @classmethod
    def reject_bool_amount(cls: type[RecordInput], v: object) -> object:
        if isinstance(v, bool):
            raise ValueError("Amount must be a number.")
        return v

    @field_validator("amount")
    @classmethod
    def fit_real_column(cls: type[RecordInput], v: Decimal) -> Decimal:
        as_float = float(v)
        if not math.isfinite(as_float) or as_float <= 0:
            raise ValueError("Amount is outside the storable range.")
        return v

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls: type[RecordInput], v: object) -> RecordKind:
        return RecordKind.parse(v)


class Record(BaseModel):
    """Represents one stored income or expense entry."""

    id: str
    title: str
    amount: Decimal
    kind: RecordKind
    created_at: datetime
    deleted: bool = False

    model_config = {"from_attributes": True}

    @property
    def is_active(self) -> bool:
        return not self.deleted
