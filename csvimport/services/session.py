from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from csvimport.services.ingest.base import EmptyCsvError, FieldSource, ProgressSink, RemoteSink
from csvimport.services.ingest.batch_importer import import_all
from csvimport.services.ingest.csv_text import parse, to_raw_records
from csvimport.services.mapping.header_mapper import MappingStrategy
from csvimport.services.mapping.projector import project
from csvimport.services.normalize.schema import ImportSession, MappingRow, RawRecord


class MappingError(ValueError):
    """Raised when a confirmed mapping refers to unknown headers or fields."""


class SessionStateError(RuntimeError):
    """Raised when a step is taken out of order."""


def load_csv(text: str, file_name: str = "") -> ImportSession:
    headers, records = to_raw_records(parse(text))
    if not headers:
        raise EmptyCsvError("CSV has no header row or is empty")
    return ImportSession(file_name=file_name, headers=tuple(headers), records=tuple(records))


def preview(session: ImportSession, limit: int) -> List[RawRecord]:
    return list(session.records[:limit])


def propose_mapping(
    session: ImportSession,
    strategy: MappingStrategy,
    load_fields: FieldSource,
) -> ImportSession:
    try:
        fields = tuple(load_fields())
    except Exception as exc:
        logging.warning("mapping-fields=unavailable error=%s", exc)
        fields = ()
    rows = strategy.propose(session.headers, fields, session.records)
    return session.evolve(fields=fields, mapping=tuple(rows), confirmed=False, outcome=None)


def confirm_mapping(session: ImportSession, rows: Sequence[MappingRow]) -> ImportSession:
    """Accept operator-edited mapping rows after checking every binding."""
    known_fields = {f.api_name for f in session.fields}
    known_headers = set(session.headers)
    for row in rows:
        if row.api_name and row.api_name not in known_fields:
            raise MappingError(f"Unknown target field '{row.api_name}'")
        if row.header and row.header not in known_headers:
            raise MappingError(f"Header '{row.header}' is not in {session.file_name or 'the file'}")
    return session.evolve(mapping=tuple(rows), confirmed=True, outcome=None)


def run_import(
    session: ImportSession,
    submit: RemoteSink,
    batch_size: Optional[int] = None,
    *,
    on_progress: Optional[ProgressSink] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
    **options,
) -> ImportSession:
    if not session.confirmed:
        raise SessionStateError("Mapping must be confirmed before importing")
    records = project(session.records, session.mapping)
    outcome = import_all(
        records,
        submit,
        batch_size,
        on_progress=on_progress,
        should_cancel=should_cancel,
        **options,
    )
    return session.evolve(outcome=outcome)
