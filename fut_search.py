"""fut-search – CLI-Tool zur Spielersuche in FUT-CSV-Dateien."""

import argparse
import logging
import sys
from pathlib import Path

from futsearch import NUMERIC_FIELDS, STRING_FIELDS, FUTSearchError, ConfigurationError, QueryError
from futsearch.reader import format_record, read_queries
from futsearch.reporter import print_summary, write_csv_report, write_html_report
from futsearch.search import DEFAULT_DATA_DIR, DEFAULT_GAME_YEAR, FUTSearch


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        description='Sucht Spieler in einer FUT-CSV-Datei anhand unvollstaendiger Angaben.',
        prog='fut_search.py',
    )
    parser.add_argument(
        '--data', type=Path,
        help='Pfad zur FUT-CSV-Datei',
    )
    parser.add_argument(
        '--data-dir', type=Path, default=DEFAULT_DATA_DIR,
        help='Verzeichnis mit FIFA<Jahr>.csv-Dateien (ohne --data)',
    )
    parser.add_argument(
        '--year', default=DEFAULT_GAME_YEAR,
        help=f'Spieljahr der Daten (Standard: {DEFAULT_GAME_YEAR})',
    )
    parser.add_argument(
        '--delimiter', default=',',
        help='Trennzeichen der CSV-Datei (Standard: ",")',
    )

    fields = parser.add_argument_group('Suchfelder')
    for name in STRING_FIELDS:
        fields.add_argument(f'--{name}', help=f'Text, der in {name} vorkommen muss')
    for name in NUMERIC_FIELDS:
        fields.add_argument(f'--{name}', type=int, help=f'Exakter Wert fuer {name}')

    parser.add_argument(
        '--batch', type=Path,
        help='CSV-Datei mit einer Suchanfrage pro Zeile (Batch-Modus)',
    )
    parser.add_argument(
        '--first', action='store_true',
        help='Nur den ersten Treffer pro Suchanfrage liefern',
    )
    parser.add_argument(
        '--output', type=Path,
        help='Pfad fuer die Report-Ausgabe (CSV)',
    )
    parser.add_argument(
        '--html', action='store_true',
        help='Zusaetzlich einen HTML-Report erzeugen',
    )
    parser.add_argument(
        '--summary', action='store_true',
        help='Zusammenfassung auf stdout ausgeben',
    )
    return parser


def query_from_args(args: argparse.Namespace) -> dict[str, object]:
    """Collect the field flags that were given into a partial query."""
    query: dict[str, object] = {}
    for name in STRING_FIELDS + NUMERIC_FIELDS:
        value = getattr(args, name)
        if value is not None:
            query[name] = value
    return query


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    query = query_from_args(args)
    if args.batch and query:
        parser.error('--batch kann nicht mit Suchfeldern kombiniert werden.')

    if not args.batch and not query:
        parser.error('Entweder ein Suchfeld oder --batch muss angegeben werden.')

    if args.html and not args.output:
        parser.error('--output ist erforderlich bei Verwendung von --html.')

    # The HTML report is written next to the CSV report
    if args.output and args.output.suffix.lower() != '.csv':
        parser.error('--output muss auf eine .csv-Datei zeigen.')

    try:
        if args.data:
            search = FUTSearch(args.data, args.delimiter)
        else:
            search = FUTSearch.for_game_year(args.year, args.data_dir, args.delimiter)
        queries = read_queries(args.batch, args.delimiter) if args.batch else [query]
        results = search.find_batch(queries, first_match_only=args.first)
    except (ConfigurationError, QueryError) as exc:
        parser.error(str(exc))
    except (OSError, FUTSearchError) as exc:
        logging.error("Suche fehlgeschlagen: %s", exc)
        return 1

    if args.output:
        write_csv_report(queries, results, args.output)
        if args.html:
            write_html_report(
                queries, results, args.output.with_suffix('.html'), search.data_path.name,
            )
    else:
        for players in results:
            for player in players:
                print(';'.join(format_record(player).values()))

    if args.summary:
        print_summary(queries, results, search.data_path.name)

    return 0


if __name__ == '__main__':
    sys.exit(main())
