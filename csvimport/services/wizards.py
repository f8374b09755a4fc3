"""The upload wizards: which fields, matching strategy and sink each one uses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from csvimport.db.models import Opportunity
from csvimport.services.ingest.base import FieldSource, RemoteSink
from csvimport.services.mapping.fields import describe_fields, quote_line_fields
from csvimport.services.mapping.header_mapper import (
    CanonicalKeyStrategy,
    FuzzyHeaderStrategy,
    MappingStrategy,
)
from csvimport.services.sinks.opportunity import OpportunitySink
from csvimport.services.sinks.quote_hierarchy import QuoteHierarchySink


@dataclass(frozen=True)
class Wizard:
    name: str
    strategy: MappingStrategy
    load_fields: FieldSource
    make_sink: Callable[[], RemoteSink]
    preview_rows: int
    requires_data: bool


WIZARDS: Dict[str, Wizard] = {
    "opportunity": Wizard(
        name="opportunity",
        strategy=FuzzyHeaderStrategy(),
        load_fields=lambda: describe_fields(Opportunity),
        make_sink=OpportunitySink,
        preview_rows=20,
        requires_data=False,
    ),
    "quote": Wizard(
        name="quote",
        strategy=CanonicalKeyStrategy(),
        load_fields=quote_line_fields,
        make_sink=QuoteHierarchySink,
        preview_rows=10,
        requires_data=True,
    ),
}


def get_wizard(name: str) -> Optional[Wizard]:
    return WIZARDS.get(name)
