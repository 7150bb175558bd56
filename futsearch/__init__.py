"""Core module for fut-search."""

from dataclasses import dataclass
from typing import Optional

# Marker stored in numeric fields whose cell could not be parsed
INVALID_NUMBER = None

STRING_FIELDS = ('name', 'club', 'position', 'revision', 'league')
NUMERIC_FIELDS = (
    'rating', 'pace', 'shooting', 'passing',
    'dribbling', 'defending', 'physicality',
)
FIELDS = STRING_FIELDS + NUMERIC_FIELDS

# Canonical header text per field, in column order
COLUMNS: dict[str, str] = {f: f.capitalize() for f in FIELDS}

# Older exports use different header names for some columns
COLUMN_ALIASES: dict[str, str] = {
    'revision': 'tier',
    'physicality': 'physical',
}


@dataclass(frozen=True)
class Player:
    """Represents a player record from a FUT CSV file."""

    name: str
    club: str
    position: str
    revision: str           # Card tier (Gold, TOTW, Icon, ...)
    league: str
    rating: Optional[int]
    pace: Optional[int]
    shooting: Optional[int]
    passing: Optional[int]
    dribbling: Optional[int]
    defending: Optional[int]
    physicality: Optional[int]


class FUTSearchError(Exception):
    """Base class for all fut-search errors."""


class ConfigurationError(FUTSearchError, ValueError):
    """Invalid data path or game year."""


class QueryError(FUTSearchError, ValueError):
    """Malformed partial query."""


class UnknownFieldError(QueryError, KeyError):
    """Partial query references a field a Player does not have."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ''


class RecordDecodeError(FUTSearchError):
    """A CSV row could not be decoded into a column mapping."""
