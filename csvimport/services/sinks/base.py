from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from dateutil import parser as dtparser
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from csvimport.db import SessionLocal
from csvimport.services.normalize.schema import BatchResult, MappedRecord


class RecordInvalid(ValueError):
    """Raised when a single record cannot be stored; the batch carries on."""


def parse_decimal(raw: Optional[str], label: str) -> Optional[Decimal]:
    if raw is None or not raw.strip():
        return None
    try:
        value = Decimal(raw.strip().replace(",", ""))
    except InvalidOperation:
        raise RecordInvalid(f"invalid {label} '{raw}'")
    if not value.is_finite():
        raise RecordInvalid(f"invalid {label} '{raw}'")
    return value


def parse_date(raw: Optional[str], label: str) -> Optional[date]:
    if raw is None or not raw.strip():
        return None
    try:
        return dtparser.parse(raw).date()
    except (ValueError, OverflowError):
        raise RecordInvalid(f"invalid {label} '{raw}'")


class DatabaseSink:
    """Stores one batch per call in a single transaction.

    Subclasses implement ``store``. Record-level problems are reported in the
    BatchResult; database errors roll the batch back and propagate.
    """

    categories: tuple = ()

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def __call__(self, batch: List[MappedRecord]) -> BatchResult:
        counts: Dict[str, int] = {c: 0 for c in self.categories}
        errors: List[str] = []
        with self.session_factory() as session:
            try:
                for record in batch:
                    try:
                        self.store(session, record, counts)
                    except RecordInvalid as exc:
                        errors.append(str(exc))
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logging.exception("sink=%s status=rolled-back size=%s", type(self).__name__, len(batch))
                raise
        return BatchResult(success=not errors, inserted_counts=counts, errors=errors)

    def store(self, session: Session, record: MappedRecord, counts: Dict[str, int]) -> None:
        raise NotImplementedError
