from __future__ import annotations

from typing import Any, List, Mapping, Protocol, Sequence, Union

from csvimport.services.normalize.schema import BatchResult, FieldDescriptor, MappedRecord


class EmptyCsvError(ValueError):
    """Raised when an upload has no header row."""


class RemoteSink(Protocol):
    def __call__(self, batch: List[MappedRecord]) -> Union[BatchResult, Mapping[str, Any]]:
        ...


class ProgressSink(Protocol):
    def __call__(self, processed: int, total: int) -> None:
        ...


class FieldSource(Protocol):
    def __call__(self) -> Sequence[FieldDescriptor]:
        ...
