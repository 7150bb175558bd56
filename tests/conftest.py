"""Shared test fixtures."""

import csv
from pathlib import Path

import pytest

from futsearch.search import FUTSearch


DATA_DIR = Path(__file__).resolve().parent / 'data'


@pytest.fixture(scope='session')
def data_dir() -> Path:
    """Path to the test data directory."""
    return DATA_DIR


@pytest.fixture(scope='session')
def players_csv() -> Path:
    """Sample FUT data file."""
    return DATA_DIR / 'FIFA20.csv'


@pytest.fixture(scope='session')
def raw_records(players_csv):
    """All raw rows of the sample data file."""
    with open(players_csv, 'r', encoding='utf-8', newline='') as f:
        return list(csv.DictReader(f))


@pytest.fixture
def search(players_csv) -> FUTSearch:
    """Search over the sample data file."""
    return FUTSearch(players_csv)


@pytest.fixture
def make_csv(tmp_path):
    """Write a CSV file from text and return its path."""
    def _make(text: str, name: str = 'players.csv', encoding: str = 'utf-8') -> Path:
        path = tmp_path / name
        path.write_text(text, encoding=encoding)
        return path
    return _make


class TrackingSource:
    """Record iterator that counts reads and remembers being closed."""

    def __init__(self, records, fail_at=None):
        self._records = list(records)
        self._fail_at = fail_at
        self.read = 0
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        if self._fail_at is not None and self.read == self._fail_at:
            raise OSError('Lesefehler')
        if self.read >= len(self._records):
            raise StopIteration
        record = self._records[self.read]
        self.read += 1
        return record

    def close(self):
        self.closed = True


@pytest.fixture
def tracking_source():
    """Factory for TrackingSource instances."""
    return TrackingSource
