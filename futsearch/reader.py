"""Streaming CSV reader and record parser for FUT player data."""

import csv
import logging
import re
from pathlib import Path
from typing import Iterator, Mapping, Optional

from futsearch import (
    COLUMN_ALIASES,
    COLUMNS,
    FIELDS,
    INVALID_NUMBER,
    NUMERIC_FIELDS,
    STRING_FIELDS,
    Player,
    QueryError,
    RecordDecodeError,
    UnknownFieldError,
)

log = logging.getLogger(__name__)

# Matches any sequence of whitespace (including Unicode whitespace like U+2006)
_WHITESPACE_RE = re.compile(r'\s+')

# Leading integer of a cell: optional whitespace and sign, then ASCII digits
_LEADING_INT_RE = re.compile(r'\s*([+-]?[0-9]+)')


def detect_encoding(path: Path) -> str:
    """Detect file encoding by checking for BOM bytes.

    Args:
        path: Path to the CSV file.

    Returns:
        Encoding string suitable for open().
    """
    with open(path, 'rb') as f:
        bom = f.read(2)
    if bom == b'\xff\xfe':
        return 'utf-16-le'
    return 'utf-8-sig'


def normalize_whitespace(value: str) -> str:
    """Normalize whitespace in a string value.

    Collapses any sequence of whitespace (including Unicode whitespace)
    into a single space and strips leading/trailing whitespace.

    Args:
        value: Raw string value from CSV.

    Returns:
        Normalized string.
    """
    return _WHITESPACE_RE.sub(' ', value).strip()


def normalize_header(key: str) -> str:
    """Normalize a column header for case-insensitive lookup."""
    return normalize_whitespace(key.lstrip('\ufeff')).lower()


def _lookup(cleaned: Mapping[str, object], field: str) -> object:
    """Get a field from a normalized record, falling back to its alias."""
    if field in cleaned:
        return cleaned[field]
    alias = COLUMN_ALIASES.get(field)
    if alias is not None:
        return cleaned.get(alias)
    return None


def parse_int(value: object) -> Optional[int]:
    """Parse a base-10 integer cell.

    Leading whitespace and a sign are accepted and anything after the
    leading digits is ignored, so ``'83*'`` and ``'83.5'`` both give 83.

    Args:
        value: Raw cell value (may be None for missing cells).

    Returns:
        The integer, or INVALID_NUMBER if the cell has no leading digits.
    """
    if value is None:
        return INVALID_NUMBER
    m = _LEADING_INT_RE.match(str(value))
    if m is None:
        return INVALID_NUMBER
    try:
        return int(m.group(1))
    except ValueError:
        # Digit strings beyond the interpreter's int conversion limit
        return INVALID_NUMBER


def parse_player(record: Mapping[Optional[str], object]) -> Player:
    """Parse a raw CSV record as a Player.

    Header casing is irrelevant. String fields are copied verbatim,
    numeric fields that fail to parse hold INVALID_NUMBER.

    Args:
        record: Mapping of column header to raw cell text.

    Returns:
        Parsed Player.
    """
    cleaned = {normalize_header(k): v for k, v in record.items() if k is not None}

    values: dict[str, object] = {}
    for field in STRING_FIELDS:
        raw = _lookup(cleaned, field)
        values[field] = '' if raw is None else str(raw)
    for field in NUMERIC_FIELDS:
        values[field] = parse_int(_lookup(cleaned, field))
    return Player(**values)


def format_record(player: Player) -> dict[str, str]:
    """Serialize a Player back to a raw record keyed by canonical headers."""
    record: dict[str, str] = {}
    for field in FIELDS:
        value = getattr(player, field)
        record[COLUMNS[field]] = '' if value is INVALID_NUMBER else str(value)
    return record


def _missing_columns(fieldnames: list[str]) -> list[str]:
    headers = {normalize_header(h) for h in fieldnames if h is not None}
    missing = []
    for field in FIELDS:
        if field not in headers and COLUMN_ALIASES.get(field) not in headers:
            missing.append(COLUMNS[field])
    return missing


def iter_records(
    path: str | Path,
    delimiter: str = ',',
    check_columns: bool = True,
) -> Iterator[dict]:
    """Lazily read raw records from a delimited file.

    The header row is consumed first; every following row is yielded as a
    mapping of header to raw cell text. The file is opened on the first
    ``next()`` and closed as soon as the generator is exhausted, closed,
    or fails.

    Args:
        path: Path to the CSV file.
        delimiter: Field delimiter.
        check_columns: Warn about missing player columns in the header.

    Yields:
        One dict per data row.

    Raises:
        OSError: If the file cannot be opened or read.
        RecordDecodeError: If a row cannot be decoded.
    """
    path = Path(path)
    encoding = detect_encoding(path)
    count = 0
    line_num = 0

    with open(path, 'r', encoding=encoding, newline='') as f:
        try:
            # Strip BOM if present
            if f.read(1) != '\ufeff':
                f.seek(0)

            reader = csv.DictReader(f, delimiter=delimiter)
            if reader.fieldnames is None:
                log.warning("Datei %s ist leer oder hat keine Header-Zeile.", path)
                return

            missing = _missing_columns(list(reader.fieldnames)) if check_columns else []
            if missing:
                log.warning("Fehlende Spalten in %s: %s", path, ', '.join(missing))

            for row in reader:
                line_num = reader.line_num
                count += 1
                yield row
        except (csv.Error, UnicodeDecodeError) as exc:
            # Decoding happens in chunks, so a failure can precede the first row
            where = f" (nach Zeile {line_num})" if line_num else ""
            raise RecordDecodeError(
                f"Fehler beim Lesen von {path}{where}: {exc}"
            ) from exc

    log.info("%d Datensaetze gelesen aus %s", count, path)


def parse_query(record: Mapping[Optional[str], object]) -> dict[str, object]:
    """Convert a row of a query CSV into a partial query.

    Empty cells leave the field unconstrained. Numeric columns must hold a
    plain integer.

    Args:
        record: Mapping of column header to raw cell text.

    Returns:
        Partial query dict.

    Raises:
        UnknownFieldError: If a column is not a Player field.
        QueryError: If a numeric cell is not an integer.
    """
    aliases = {alias: field for field, alias in COLUMN_ALIASES.items()}
    query: dict[str, object] = {}
    for key, raw in record.items():
        if key is None:
            continue
        header = normalize_header(key)
        field = aliases.get(header, header)
        if field not in FIELDS:
            raise UnknownFieldError(f"Unbekannte Spalte in Suchanfrage: {key!r}")
        value = normalize_whitespace(str(raw)) if raw is not None else ''
        if not value:
            continue
        if field in NUMERIC_FIELDS:
            try:
                query[field] = int(value)
            except ValueError as exc:
                raise QueryError(
                    f"Ungueltiger Zahlenwert fuer {field!r}: {value!r}"
                ) from exc
        else:
            query[field] = value
    return query


def read_queries(path: str | Path, delimiter: str = ',') -> list[dict[str, object]]:
    """Read a batch of partial queries from a query CSV file.

    Args:
        path: Path to the query CSV file.
        delimiter: Field delimiter.

    Returns:
        List of partial queries in file order.
    """
    records = iter_records(path, delimiter, check_columns=False)
    queries = [parse_query(row) for row in records]
    log.info("%d Suchanfragen gelesen aus %s", len(queries), path)
    return queries
