"""
Remote Record Models.

Wire representation of a record in the remote mirror collection.  The
remote side uses ``type`` for the kind and camelCase ``createdAt``; the
aliases keep the Python side in snake_case.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expense_tracker.models.enums import RecordKind
from expense_tracker.models.record import Record
from expense_tracker.utils.general import JsonSafeType, convert_to_json_safe


class RemoteRecordDraft(BaseModel):
    """A record as uploaded to the remote collection (no ``id``)."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    amount: Decimal
    kind: RecordKind = Field(alias="type")
    created_at: datetime = Field(alias="createdAt")

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, v: object) -> RecordKind:
        return RecordKind.parse(v)

    @classmethod
    def from_record(cls, record: Record) -> "RemoteRecordDraft":
        return cls(
            title=record.title,
            amount=record.amount,
            kind=record.kind,
            created_at=record.created_at,
        )

    def to_payload(self) -> dict[str, JsonSafeType]:
        """JSON body for ``POST <endpoint>``."""
        return {
            "title": self.title,
            "amount": convert_to_json_safe(self.amount),
            "type": str(self.kind),
            "createdAt": convert_to_json_safe(self.created_at),
        }


class RemoteRecord(RemoteRecordDraft):
    """A record as returned by the remote collection, with its server id."""

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> object:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v
