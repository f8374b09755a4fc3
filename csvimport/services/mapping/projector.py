from __future__ import annotations

from typing import List, Sequence

from csvimport.services.normalize.schema import MappedRecord, MappingRow, RawRecord


def project(raw_records: Sequence[RawRecord], mapping: Sequence[MappingRow]) -> List[MappedRecord]:
    """Re-key raw CSV records by target field name.

    Unmapped rows are skipped; when two rows target the same field the later
    one wins.
    """
    bound = [m for m in mapping if m.api_name]
    out = []
    for raw in raw_records:
        record: MappedRecord = {}
        for m in bound:
            value = raw.get(m.header)
            record[m.api_name] = "" if value is None else value
        out.append(record)
    return out
