from __future__ import annotations

import json
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

Row = List[str]
RawRecord = Dict[str, str]
MappedRecord = Dict[str, str]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FieldDescriptor(_Model):
    label: str
    api_name: str


class MappingRow(_Model):
    header: str = ""
    api_name: str = ""
    sample: str = ""

    @field_validator("header", "api_name", "sample", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        if v is None:
            return ""
        return str(v)


def _flatten(errors) -> List[str]:
    if errors is None:
        return []
    if isinstance(errors, (str, dict)):
        errors = [errors]
    return [e if isinstance(e, str) else json.dumps(e, sort_keys=True, default=str) for e in errors]


class BatchResult(_Model):
    success: bool
    inserted_counts: Dict[str, int] = {}
    errors: List[str] = []

    @field_validator("errors", mode="before")
    @classmethod
    def _flatten_errors(cls, v):
        return _flatten(v)


class ImportOutcome(_Model):
    success: bool
    inserted_counts: Dict[str, int] = {}
    errors: List[str] = []
    processed: int = 0
    total: int = 0
    cancelled: bool = False


class ImportSession(_Model):
    """One upload's state. Every wizard step returns a new instance."""

    file_name: str = ""
    headers: Tuple[str, ...] = ()
    records: Tuple[RawRecord, ...] = ()
    fields: Tuple[FieldDescriptor, ...] = ()
    mapping: Tuple[MappingRow, ...] = ()
    confirmed: bool = False
    outcome: Optional[ImportOutcome] = None

    @property
    def has_data(self) -> bool:
        return len(self.records) > 0

    def evolve(self, **changes) -> "ImportSession":
        return self.model_copy(update=changes)
