"""Partial-query matching of parsed player records."""

import re
import unicodedata
from typing import Mapping

from futsearch import (
    COLUMN_ALIASES,
    FIELDS,
    INVALID_NUMBER,
    Player,
    QueryError,
    UnknownFieldError,
)

# Everything except word characters, whitespace and . - _ /
_STRIP_RE = re.compile(r'[^\w\s.\-_/]')


def normalize_text(text: str) -> str:
    """Normalize text for tolerant substring comparison.

    Case-folds, removes accents/diacritics via NFD decomposition and strips
    punctuation other than ``. - _ /``.

    Args:
        text: Raw field or query value.

    Returns:
        Normalized string for comparison.
    """
    # NFD splits base characters from combining marks, which the
    # strip pattern then drops (they are not word characters)
    decomposed = unicodedata.normalize('NFD', text.casefold())
    return _STRIP_RE.sub('', decomposed)


def _is_number(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# Query keys of older exports mapped to their Player field
_FIELD_FOR_ALIAS = {alias: field for field, alias in COLUMN_ALIASES.items()}


def _resolve_field(key: str) -> str:
    field = _FIELD_FOR_ALIAS.get(key, key)
    if field not in FIELDS:
        raise UnknownFieldError(
            f"Unbekanntes Feld {key!r} in Suchanfrage, erlaubt: {', '.join(FIELDS)}"
        )
    return field


def validate_query(query: Mapping[str, object]) -> None:
    """Check that a partial query only uses Player fields and sane values.

    The old column names ``tier`` and ``physical`` are accepted for
    ``revision`` and ``physicality``.

    Raises:
        UnknownFieldError: If a key is not a Player field.
        QueryError: If a value is neither text nor an integer.
    """
    for key, value in query.items():
        _resolve_field(key)
        if not (isinstance(value, str) or _is_number(value)):
            raise QueryError(
                f"Ungueltiger Wert fuer {key!r}: {value!r} (erwartet Text oder Ganzzahl)"
            )


def canonical_query(query: Mapping[str, object]) -> dict[str, object]:
    """Validate a partial query and key it by Player field names.

    Raises:
        UnknownFieldError: If a key is not a Player field.
        QueryError: If a value is invalid or a field is given twice.
    """
    validate_query(query)
    canonical: dict[str, object] = {}
    for key, value in query.items():
        field = _resolve_field(key)
        if field in canonical:
            raise QueryError(f"Feld {field!r} mehrfach in Suchanfrage angegeben")
        canonical[field] = value
    return canonical


def field_matches(expected: object, actual: object) -> bool:
    """Compare one query value against one player value.

    Integers must be equal; everything else is a normalized substring test.
    """
    if _is_number(expected):
        return actual is not INVALID_NUMBER and actual == expected
    actual_text = '' if actual is INVALID_NUMBER else str(actual)
    return normalize_text(str(expected)) in normalize_text(actual_text)


def player_matches(query: Mapping[str, object], player: Player) -> bool:
    """Compare a partial query to a complete player.

    Every key of the query must match; keys absent from the query are
    unconstrained, so an empty query matches every player.

    Args:
        query: Partial player stats.
        player: A parsed player.

    Returns:
        True if the player is a candidate match.

    Raises:
        UnknownFieldError: If the query references an unknown field.
    """
    for key, expected in query.items():
        if not field_matches(expected, getattr(player, _resolve_field(key))):
            return False
    return True
