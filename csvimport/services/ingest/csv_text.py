from __future__ import annotations

from typing import List, Sequence, Tuple, Union

from csvimport.services.normalize.schema import RawRecord, Row


def decode(raw: Union[str, bytes]) -> str:
    """Uploaded bytes are UTF-8; a leading BOM is not part of the first header."""
    text = raw.decode("utf-8-sig", errors="replace") if isinstance(raw, bytes) else raw
    return text[1:] if text[:1] == "\ufeff" else text


def parse(text: str) -> List[Row]:
    """Split CSV text into rows of trimmed cells.

    The first row returned is the header row. Blank lines produce no row.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == '"':
            # Doubled quote inside a quoted field is a literal quote
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue

        if ch == "," and not in_quotes:
            row.append("".join(current))
            current = []
            i += 1
            continue

        if ch in "\r\n" and not in_quotes:
            if ch == "\r" and i + 1 < n and text[i + 1] == "\n":
                i += 1
            if current or row:
                row.append("".join(current))
                rows.append(row)
            row = []
            current = []
            i += 1
            continue

        current.append(ch)
        i += 1

    if current or row:
        row.append("".join(current))
        rows.append(row)

    return [[("" if cell is None else str(cell)).strip() for cell in r] for r in rows]


def to_raw_records(rows: Sequence[Row]) -> Tuple[List[str], List[RawRecord]]:
    """Split parsed rows into (headers, records).

    Short rows are padded with empty cells and cells beyond the header count
    are dropped. A repeated header keeps the value of its last column.
    """
    if not rows:
        return [], []

    headers = list(rows[0])
    width = len(headers)
    records = []
    for row in rows[1:]:
        cells = list(row[:width]) + [""] * (width - len(row))
        records.append(dict(zip(headers, cells)))
    return headers, records
