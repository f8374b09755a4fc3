from __future__ import annotations

import logging
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from csvimport import config
from csvimport.services.normalize.schema import BatchResult, ImportOutcome, MappedRecord
from .base import ProgressSink, RemoteSink


def percent(processed: int, total: int) -> int:
    """Whole-number progress, rounding halves up."""
    if total <= 0:
        return 100
    ratio = Decimal(processed) * 100 / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def chunked(records: Sequence[MappedRecord], size: int) -> Iterator[List[MappedRecord]]:
    for start in range(0, len(records), size):
        yield list(records[start:start + size])


def _describe(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


class BatchImporter:
    def __init__(
        self,
        submit: RemoteSink,
        batch_size: Optional[int] = None,
        *,
        on_progress: Optional[ProgressSink] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        pause: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if batch_size is None:
            batch_size = config.BATCH_SIZE
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.submit = submit
        self.batch_size = batch_size
        self.on_progress = on_progress
        self.should_cancel = should_cancel
        self.pause = config.BATCH_PAUSE if pause is None else pause
        self.sleep = sleep

    def run(self, records: Sequence[MappedRecord]) -> ImportOutcome:
        records = list(records)
        total = len(records)
        processed = 0
        counts: Dict[str, int] = {}
        errors: List[str] = []

        def outcome(cancelled: bool = False, failed: bool = False) -> ImportOutcome:
            return ImportOutcome(
                success=not (errors or cancelled or failed),
                inserted_counts=dict(counts),
                errors=list(errors),
                processed=processed,
                total=total,
                cancelled=cancelled,
            )

        for number, batch in enumerate(chunked(records, self.batch_size), start=1):
            if number > 1 and self.pause > 0:
                self.sleep(self.pause)

            if self.should_cancel is not None and self.should_cancel():
                logging.info("import-cancelled processed=%s total=%s", processed, total)
                errors.append(f"Import cancelled after {processed} of {total} records")
                return outcome(cancelled=True)

            try:
                result = self.submit(batch)
                if not isinstance(result, BatchResult):
                    result = BatchResult.model_validate(result)
            except Exception as exc:
                logging.warning("import-batch=%s status=failed error=%s", number, _describe(exc))
                errors.append(f"Batch {number} failed: {_describe(exc)}")
                return outcome(failed=True)

            for category, inserted in result.inserted_counts.items():
                counts[category] = counts.get(category, 0) + inserted
            if not result.success:
                logging.info("import-batch=%s status=partial errors=%s", number, len(result.errors))
                errors.extend(result.errors or [f"Batch {number} reported a failure"])

            processed += len(batch)
            if self.on_progress is not None:
                self.on_progress(processed, total)

        return outcome()


def import_all(
    records: Sequence[MappedRecord],
    submit: RemoteSink,
    batch_size: Optional[int] = None,
    **options,
) -> ImportOutcome:
    return BatchImporter(submit, batch_size, **options).run(records)
