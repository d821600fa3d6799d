from __future__ import annotations

import pytest

from pricedash.parsing import CsvReadError, decode_upload, parse_csv, read_csv_records


def test_parse_csv_keys_rows_by_trimmed_header():
    rows = parse_csv(" brand , gear \nFiat,manual\nGM - Chevrolet,automatic\n")
    assert rows == [
        {"brand": "Fiat", "gear": "manual"},
        {"brand": "GM - Chevrolet", "gear": "automatic"},
    ]


def test_quoted_comma_stays_in_one_field():
    rows = parse_csv('engine_size,brand\n"1,6",VW')
    assert rows == [{"engine_size": "1,6", "brand": "VW"}]


def test_crlf_and_blank_lines_are_skipped():
    rows = parse_csv("a,b\r\n1,2\r\n   \r\n\r\n3,4\r\n")
    assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]


def test_extra_fields_dropped_and_short_rows_kept():
    rows = parse_csv("a,b\n1,2,3\n4")
    assert rows == [{"a": "1", "b": "2"}, {"a": "4"}]


def test_fields_are_trimmed():
    rows = parse_csv('a,b\n  x  , " y "')
    assert rows == [{"a": "x", "b": "y"}]


def test_doubled_quote_contributes_nothing():
    rows = parse_csv('model,brand\n"x""y",VW')
    assert rows == [{"model": "xy", "brand": "VW"}]


def test_empty_text_gives_no_rows():
    assert parse_csv("") == []
    assert parse_csv("a,b") == []


def test_decode_upload_handles_bom_and_latin1():
    assert decode_upload("\ufeffa,b".encode("utf-8")) == "a,b"
    assert decode_upload("combustível".encode("latin-1")) == "combustível"


def test_empty_upload_raises():
    with pytest.raises(CsvReadError):
        decode_upload(b"")
    with pytest.raises(CsvReadError):
        read_csv_records(b"  \n ")


def test_read_csv_records(sample_csv):
    rows = read_csv_records(sample_csv.encode("utf-8"))
    assert len(rows) == 6
    assert rows[1]["engine_size"] == "1,6"
