"""Streaming search engine over FUT player CSV files."""

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping, Optional, Sequence

from futsearch import ConfigurationError, Player
from futsearch.matching import canonical_query, player_matches
from futsearch.reader import iter_records, parse_player

log = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / 'data'
DEFAULT_GAME_YEAR = '20'

_GAME_YEAR_RE = re.compile(r'^(\d{2}|\d{4})$')

# Session states
IDLE = 'IDLE'
STREAMING = 'STREAMING'
EARLY_TERMINATED = 'EARLY_TERMINATED'
EXHAUSTED = 'EXHAUSTED'
FAILED = 'FAILED'


class QuerySession:
    """One single-pass search of a record stream for a batch of queries.

    Every record is parsed once and the resulting Player is checked against
    all queries. With ``first_match_only`` each result set holds at most one
    player and reading stops as soon as all of them are filled.
    """

    def __init__(
        self,
        queries: Sequence[Mapping[str, object]],
        first_match_only: bool = False,
    ) -> None:
        self.queries = [canonical_query(q) for q in queries]
        self.first_match_only = first_match_only
        self.state = IDLE
        self.records_read = 0

    def _satisfied(self, results: list[list[Player]]) -> bool:
        return self.first_match_only and all(results)

    def run(self, records: Iterable[Mapping]) -> list[list[Player]]:
        """Stream the records and collect matches.

        The record iterator is closed on every exit path.

        Args:
            records: Raw records (header -> cell text), read once in order.

        Returns:
            One list of matching players per query, aligned with the queries.
        """
        if self.state != IDLE:
            raise RuntimeError(f"Suche bereits ausgefuehrt (Status {self.state})")

        results: list[list[Player]] = [[] for _ in self.queries]
        iterator = iter(records)
        self.state = STREAMING
        try:
            if self._satisfied(results):
                self.state = EARLY_TERMINATED
                return results

            for record in iterator:
                self.records_read += 1
                player = parse_player(record)
                for query, matches in zip(self.queries, results):
                    if self.first_match_only and matches:
                        continue
                    if player_matches(query, player):
                        matches.append(player)

                if self._satisfied(results):
                    self.state = EARLY_TERMINATED
                    log.debug(
                        "Alle Suchanfragen erfuellt nach %d Datensaetzen, Abbruch",
                        self.records_read,
                    )
                    return results

            self.state = EXHAUSTED
            return results
        except Exception:
            self.state = FAILED
            raise
        finally:
            close = getattr(iterator, 'close', None)
            if close is not None:
                close()


def search_records(
    records: Iterable[Mapping],
    queries: Sequence[Mapping[str, object]],
    first_match_only: bool = False,
) -> list[list[Player]]:
    """Search a record stream for a batch of partial queries.

    Args:
        records: Raw records (header -> cell text).
        queries: Partial queries.
        first_match_only: Keep only the first match per query and stop early.

    Returns:
        One list of matching players per query.
    """
    return QuerySession(queries, first_match_only).run(records)


class FUTSearch:
    """Search a FUT CSV file for players.

    The data path is validated on construction and cannot be changed
    afterwards. Each search opens its own stream of the file.
    """

    def __init__(self, data_path: str | Path | None = None, delimiter: str = ',') -> None:
        if data_path is None:
            data_path = DEFAULT_DATA_DIR / f'FIFA{DEFAULT_GAME_YEAR}.csv'
        data_path = Path(data_path)
        if data_path.suffix != '.csv':
            raise ConfigurationError(
                f"Datenpfad muss auf eine CSV-Datei zeigen: {data_path}"
            )
        self._data_path = data_path
        self.delimiter = delimiter

    @classmethod
    def for_game_year(
        cls,
        game_year: str | int,
        data_dir: str | Path = DEFAULT_DATA_DIR,
        delimiter: str = ',',
    ) -> 'FUTSearch':
        """Create a search over ``<data_dir>/FIFA<game_year>.csv``."""
        game_year = str(game_year)
        if not _GAME_YEAR_RE.match(game_year):
            raise ConfigurationError(f"Ungueltiges Spieljahr: {game_year!r}")
        return cls(Path(data_dir) / f'FIFA{game_year}.csv', delimiter)

    @property
    def data_path(self) -> Path:
        """Path to the CSV file being searched."""
        return self._data_path

    def __repr__(self) -> str:
        return f'FUTSearch({str(self._data_path)!r})'

    def find_batch(
        self,
        queries: Sequence[Mapping[str, object]],
        first_match_only: bool = False,
    ) -> list[list[Player]]:
        """Find matching players for a batch of partial players.

        Args:
            queries: Partial player stats, one per search target.
            first_match_only: Return only the first match for each query.

        Returns:
            List of matching players for each query, in query order.
        """
        session = QuerySession(queries, first_match_only)
        log.debug("Suche %d Anfrage(n) in %s", len(session.queries), self._data_path)
        results = session.run(iter_records(self._data_path, self.delimiter))
        log.info(
            "Suche beendet (%s): %d Datensaetze gelesen, %d/%d Anfragen mit Treffer",
            session.state, session.records_read,
            sum(1 for r in results if r), len(results),
        )
        return results

    def find_many(self, query: Optional[Mapping[str, object]] = None) -> list[Player]:
        """Find all players matching a partial player (every player if empty)."""
        return self.find_batch([query or {}])[0]

    def find_one(self, query: Mapping[str, object]) -> Optional[Player]:
        """Find the first player matching a partial player.

        Returns:
            The player, or None if nobody matches.
        """
        matches = self.find_batch([query], first_match_only=True)[0]
        return matches[0] if matches else None
