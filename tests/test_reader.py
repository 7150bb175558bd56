"""Tests for futsearch.reader module."""

import pytest

from futsearch import INVALID_NUMBER, Player, QueryError, RecordDecodeError, UnknownFieldError
from futsearch.reader import (
    detect_encoding,
    format_record,
    iter_records,
    normalize_header,
    normalize_whitespace,
    parse_int,
    parse_player,
    parse_query,
    read_queries,
)

HEADER = 'Name,Club,Position,Revision,League,Rating,Pace,Shooting,Passing,Dribbling,Defending,Physicality\n'


class TestDetectEncoding:
    """Tests for encoding detection."""

    def test_utf16le_bom(self, tmp_path):
        f = tmp_path / 'test.csv'
        f.write_bytes('\ufeffName\n'.encode('utf-16-le'))
        assert detect_encoding(f) == 'utf-16-le'

    def test_utf8_fallback(self, tmp_path):
        f = tmp_path / 'test.csv'
        f.write_text('hello', encoding='utf-8')
        assert detect_encoding(f) == 'utf-8-sig'


class TestNormalizeWhitespace:
    """Tests for whitespace normalization."""

    def test_strips_leading_trailing(self):
        assert normalize_whitespace('  hello  ') == 'hello'

    def test_collapses_multiple_spaces(self):
        assert normalize_whitespace('  Kevin  De Bruyne ') == 'Kevin De Bruyne'

    def test_unicode_whitespace(self):
        # U+2006 = Six-Per-Em Space
        assert normalize_whitespace('a\u2006b') == 'a b'


class TestNormalizeHeader:
    """Tests for header normalization."""

    def test_lowercases(self):
        assert normalize_header('PHYSICALITY') == 'physicality'

    def test_strips_whitespace_and_bom(self):
        assert normalize_header('\ufeff Name ') == 'name'


class TestParseInt:
    """Tests for lenient integer parsing."""

    def test_plain(self):
        assert parse_int('83') == 83

    def test_leading_whitespace_and_sign(self):
        assert parse_int('  -5') == -5
        assert parse_int('+7') == 7

    def test_trailing_garbage_ignored(self):
        assert parse_int('83*') == 83
        assert parse_int('83.5') == 83

    def test_invalid(self):
        assert parse_int('N/A') is INVALID_NUMBER
        assert parse_int('') is INVALID_NUMBER
        assert parse_int(None) is INVALID_NUMBER

    def test_too_many_digits(self):
        assert parse_int('9' * 5000) is INVALID_NUMBER


class TestParsePlayer:
    """Tests for converting raw records into players."""

    def test_types(self, raw_records):
        p = parse_player(raw_records[0])
        assert isinstance(p, Player)
        assert p.name == 'Marcus Rashford'
        assert p.club == 'Manchester United'
        assert p.rating == 83
        assert isinstance(p.physicality, int)

    def test_header_case_irrelevant(self):
        record = {'NAME': 'Harry Kane', 'cLuB': 'Tottenham Hotspur', 'RATING': '89'}
        p = parse_player(record)
        assert p.name == 'Harry Kane'
        assert p.club == 'Tottenham Hotspur'
        assert p.rating == 89

    def test_string_fields_verbatim(self):
        p = parse_player({'Name': '  Sergio  Agüero '})
        assert p.name == '  Sergio  Agüero '

    def test_missing_fields(self):
        p = parse_player({'Name': 'Nobody'})
        assert p.club == ''
        assert p.rating is INVALID_NUMBER
        assert p.pace is INVALID_NUMBER

    def test_malformed_number(self):
        p = parse_player({'Name': 'Test', 'Rating': 'N/A', 'Pace': '50'})
        assert p.rating is INVALID_NUMBER
        assert p.pace == 50

    def test_old_column_names(self):
        p = parse_player({'Name': 'X', 'Tier': 'Icon', 'Physical': '80'})
        assert p.revision == 'Icon'
        assert p.physicality == 80

    def test_surplus_cells_ignored(self):
        p = parse_player({'Name': 'X', None: ['extra']})
        assert p.name == 'X'

    def test_input_not_mutated(self):
        record = {'NAME': 'X', 'Rating': '80'}
        parse_player(record)
        assert record == {'NAME': 'X', 'Rating': '80'}

    def test_round_trip(self, raw_records):
        for record in raw_records[:-1]:
            p = parse_player(record)
            assert parse_player(format_record(p)) == p


class TestFormatRecord:
    """Tests for serializing players."""

    def test_canonical_headers(self, raw_records):
        record = format_record(parse_player(raw_records[0]))
        assert list(record)[:3] == ['Name', 'Club', 'Position']
        assert record['Rating'] == '83'

    def test_invalid_number_empty(self, raw_records):
        record = format_record(parse_player(raw_records[-1]))
        assert record['Rating'] == ''


class TestIterRecords:
    """Tests for streaming rows from CSV files."""

    def test_sample_count(self, players_csv):
        assert len(list(iter_records(players_csv))) == 9

    def test_header_only(self, make_csv):
        path = make_csv(HEADER)
        assert list(iter_records(path)) == []

    def test_empty_file(self, make_csv):
        path = make_csv('')
        assert list(iter_records(path)) == []

    def test_utf16le_with_bom(self, tmp_path):
        f = tmp_path / 'utf16.csv'
        f.write_bytes(('\ufeff' + HEADER + 'Sergio Agüero,Manchester City,ST,Gold,'
                       'Premier League,89,80,90,77,88,33,74\n').encode('utf-16-le'))
        rows = list(iter_records(f))
        assert rows[0]['Name'] == 'Sergio Agüero'

    def test_utf8_bom_stripped(self, tmp_path):
        f = tmp_path / 'bom.csv'
        f.write_text(HEADER + 'A,B,ST,Gold,L,1,2,3,4,5,6,7\n', encoding='utf-8-sig')
        rows = list(iter_records(f))
        assert 'Name' in rows[0]

    def test_semicolon_delimiter(self, make_csv):
        path = make_csv('Name;Rating\nHarry Kane;89\n')
        rows = list(iter_records(path, delimiter=';'))
        assert rows == [{'Name': 'Harry Kane', 'Rating': '89'}]

    def test_lazy_open(self, tmp_path):
        records = iter_records(tmp_path / 'missing.csv')
        with pytest.raises(FileNotFoundError):
            next(records)

    def test_file_closed_on_close(self, players_csv):
        records = iter_records(players_csv)
        next(records)
        f = records.gi_frame.f_locals['f']
        records.close()
        assert f.closed

    def test_undecodable_bytes(self, tmp_path):
        f = tmp_path / 'broken.csv'
        f.write_bytes(HEADER.encode('utf-8') + b'Bad\xffName,X,ST,Gold,L,1,2,3,4,5,6,7\n')
        with pytest.raises(RecordDecodeError, match='broken.csv') as exc:
            list(iter_records(f))
        assert 'Zeile 0' not in str(exc.value)

    def test_oversized_field(self, make_csv):
        path = make_csv('Name\n' + 'x' * 200_000 + '\n')
        with pytest.raises(RecordDecodeError):
            list(iter_records(path))

    def test_missing_columns_logged(self, make_csv, caplog):
        path = make_csv('Name,Rating\nHarry Kane,89\n')
        with caplog.at_level('WARNING'):
            list(iter_records(path))
        assert 'Fehlende Spalten' in caplog.text
        assert 'Club' in caplog.text


class TestParseQuery:
    """Tests for reading partial queries from CSV rows."""

    def test_empty_cells_dropped(self):
        query = parse_query({'Name': 'Rashford', 'Club': '', 'Rating': ''})
        assert query == {'name': 'Rashford'}

    def test_numeric_strict(self):
        assert parse_query({'Rating': ' 89 '}) == {'rating': 89}
        with pytest.raises(QueryError):
            parse_query({'Rating': '89*'})

    def test_alias_columns(self):
        assert parse_query({'Tier': 'Icon', 'Physical': '80'}) == {
            'revision': 'Icon', 'physicality': 80,
        }

    def test_unknown_column(self):
        with pytest.raises(UnknownFieldError):
            parse_query({'Height': '180'})

    def test_read_queries(self, data_dir):
        queries = read_queries(data_dir / 'queries.csv')
        assert queries == [
            {'name': 'Rashford', 'club': 'Manchester United'},
            {'position': 'ST', 'rating': 89},
            {'name': 'Nobody'},
        ]
