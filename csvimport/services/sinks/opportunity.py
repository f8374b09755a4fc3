from __future__ import annotations

from typing import Dict

from sqlalchemy.orm import Session

from csvimport.db.models import Opportunity
from csvimport.services.mapping.fields import describe_fields
from csvimport.services.normalize.schema import MappedRecord
from .base import DatabaseSink, RecordInvalid, parse_date, parse_decimal

_CONVERTERS = {
    "amount": parse_decimal,
    "close_date": parse_date,
}


class OpportunitySink(DatabaseSink):
    """Creates one Opportunity per record."""

    categories = ("opportunities",)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.labels = {f.api_name: f.label for f in describe_fields(Opportunity)}

    def store(self, session: Session, record: MappedRecord, counts: Dict[str, int]) -> None:
        name = (record.get("name") or "").strip()
        if not name:
            raise RecordInvalid(f"Opportunity Name is required (row values: {_summary(record)})")

        values = {}
        for api_name, raw in record.items():
            label = self.labels.get(api_name)
            if label is None:
                raise RecordInvalid(f"Opportunity '{name}': unknown field '{api_name}'")
            convert = _CONVERTERS.get(api_name)
            if convert is not None:
                try:
                    values[api_name] = convert(raw, label.lower())
                except RecordInvalid as exc:
                    raise RecordInvalid(f"Opportunity '{name}': {exc}")
            else:
                values[api_name] = (raw or "").strip() or None
        values["name"] = name

        exists = session.query(Opportunity.id).filter_by(name=name).first()
        if exists:
            raise RecordInvalid(f"Opportunity '{name}' already exists")

        session.add(Opportunity(**values))
        session.flush()
        counts["opportunities"] += 1


def _summary(record: MappedRecord) -> str:
    return ", ".join(v for v in record.values() if v) or "<empty>"
