"""Report generation for search results (CSV, HTML, summary)."""

import csv
import logging
from pathlib import Path
from typing import Mapping, Sequence

from jinja2 import Environment, FileSystemLoader

from futsearch import COLUMNS, Player
from futsearch.reader import format_record

log = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'

CSV_COLUMNS = ['Query_Index', 'Query'] + list(COLUMNS.values())


def format_query(query: Mapping[str, object]) -> str:
    """Render a partial query as ``field=value`` pairs."""
    if not query:
        return '(alle)'
    return ', '.join(f'{k}={v}' for k, v in query.items())


def _result_rows(
    queries: Sequence[Mapping[str, object]],
    results: Sequence[Sequence[Player]],
) -> list[dict]:
    """Flatten result sets into one row per matched player."""
    rows = []
    for index, (query, players) in enumerate(zip(queries, results), start=1):
        for player in players:
            row = {'Query_Index': str(index), 'Query': format_query(query)}
            row.update(format_record(player))
            rows.append(row)
    return rows


def write_csv_report(
    queries: Sequence[Mapping[str, object]],
    results: Sequence[Sequence[Player]],
    output_path: Path,
) -> None:
    """Write search results as a CSV report.

    Uses UTF-8 with BOM (utf-8-sig) and semicolon delimiter for
    compatibility with German Excel.

    Args:
        queries: The partial queries that were searched.
        results: Matching players per query.
        output_path: Path for the output CSV file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rows = _result_rows(queries, results)
    with open(output_path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS, delimiter=';')
        writer.writeheader()
        writer.writerows(rows)

    log.info("CSV-Report geschrieben: %s (%d Zeilen)", output_path, len(rows))


def write_html_report(
    queries: Sequence[Mapping[str, object]],
    results: Sequence[Sequence[Player]],
    output_path: Path,
    title: str = '',
) -> None:
    """Write search results as an HTML report using Jinja2.

    Args:
        queries: The partial queries that were searched.
        results: Matching players per query.
        output_path: Path for the output HTML file.
        title: Report title (usually the data file name).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )
    template = env.get_template('results.html')

    groups = [
        {
            'index': index,
            'query': format_query(query),
            'rows': [format_record(p) for p in players],
        }
        for index, (query, players) in enumerate(zip(queries, results), start=1)
    ]

    html = template.render(
        title=title,
        groups=groups,
        stats=compute_stats(results),
        columns=list(COLUMNS.values()),
    )

    output_path.write_text(html, encoding='utf-8')
    log.info("HTML-Report geschrieben: %s", output_path)


def compute_stats(results: Sequence[Sequence[Player]]) -> dict:
    """Compute summary statistics from search results."""
    found = sum(1 for r in results if r)
    return {
        'queries': len(results),
        'found': found,
        'not_found': len(results) - found,
        'players': sum(len(r) for r in results),
    }


def print_summary(
    queries: Sequence[Mapping[str, object]],
    results: Sequence[Sequence[Player]],
    title: str = '',
) -> None:
    """Print a summary of search results to stdout.

    Args:
        queries: The partial queries that were searched.
        results: Matching players per query.
        title: Name of the data file.
    """
    stats = compute_stats(results)

    print(f"\n=== Suche: {title} ===")
    print(f"Suchanfragen:              {stats['queries']:>5}")
    print(f"  - mit Treffer:           {stats['found']:>5}")
    print(f"  - ohne Treffer:          {stats['not_found']:>5}")
    print(f"Gefundene Spieler gesamt:  {stats['players']:>5}")
    print("---")
    for index, (query, players) in enumerate(zip(queries, results), start=1):
        print(f"{index:>3}. {format_query(query)}: {len(players)} Treffer")
    print()
