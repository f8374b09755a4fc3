from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from csvimport.services.normalize.schema import FieldDescriptor, MappingRow, RawRecord

_WHITESPACE_RE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Trim, lower-case and remove all whitespace."""
    return _WHITESPACE_RE.sub("", (text or "").strip().lower())


def sample_for(header: str, records: Sequence[RawRecord]) -> str:
    if not records:
        return ""
    return records[0].get(header, "")


class MappingStrategy(Protocol):
    def propose(
        self,
        headers: Sequence[str],
        fields: Sequence[FieldDescriptor],
        records: Sequence[RawRecord] = (),
    ) -> List[MappingRow]:
        ...


_Rule = Callable[[str, str, str], bool]

# Tried in order; the first rule with any matching field wins.
_FUZZY_RULES: List[_Rule] = [
    lambda hdr, label, api: hdr == label,
    lambda hdr, label, api: hdr == api,
    lambda hdr, label, api: hdr in label,
    lambda hdr, label, api: hdr in api,
]


class FuzzyHeaderStrategy:
    """Header-driven mapping with exact then substring matching."""

    name = "fuzzy"

    def propose(self, headers, fields, records=()):
        normalized_fields = [(f, normalize(f.label), normalize(f.api_name)) for f in fields]
        rows = []
        for header in headers:
            field = self.match(header, normalized_fields)
            rows.append(
                MappingRow(
                    header=header,
                    api_name=field.api_name if field else "",
                    sample=sample_for(header, records),
                )
            )
        return rows

    @staticmethod
    def match(header: str, normalized_fields) -> Optional[FieldDescriptor]:
        key = normalize(header)
        if not key:
            return None
        for rule in _FUZZY_RULES:
            for field, label, api in normalized_fields:
                if rule(key, label, api):
                    return field
        return None


class CanonicalKeyStrategy:
    """Field-driven mapping: each field's key must equal a normalized header."""

    name = "canonical"

    def propose(self, headers, fields, records=()):
        by_key: Dict[str, str] = {}
        for header in headers:
            by_key[normalize(header)] = header

        rows = []
        for field in fields:
            header = by_key.get(normalize(field.api_name))
            rows.append(
                MappingRow(
                    header=header or "",
                    api_name=field.api_name,
                    sample="" if header is None else sample_for(header, records),
                )
            )
        return rows
