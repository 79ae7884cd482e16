from __future__ import annotations

from shop_history.csv_lines import count_data_rows, csv_lines, decode_rows, split_csv_line


def test_quoted_comma_stays_inside_field() -> None:
    assert split_csv_line('A,"B, with comma",C') == ["A", "B, with comma", "C"]


def test_fields_are_trimmed() -> None:
    assert split_csv_line("  Oil change ,  80.00 ") == ["Oil change", "80.00"]


def test_empty_fields_are_preserved() -> None:
    assert split_csv_line("a,,c,") == ["a", "", "c", ""]


def test_doubled_quotes_are_not_unescaped() -> None:
    assert split_csv_line('x,"say ""hi""",y') == ["x", "say hi", "y"]


def test_unterminated_quote_never_raises() -> None:
    assert split_csv_line('a,"b,c') == ["a", "b,c"]


def test_csv_lines_drops_blank_lines_and_handles_crlf() -> None:
    text = "Description,Total\r\n\r\nOil change,80\n   \nBrakes,250\n"

    assert csv_lines(text) == ["Description,Total", "Oil change,80", "Brakes,250"]


def test_decode_rows_returns_header_first() -> None:
    rows = decode_rows("Description,Total\nOil change,80\n")

    assert rows == [["Description", "Total"], ["Oil change", "80"]]


def test_decode_rows_for_missing_text() -> None:
    assert decode_rows(None) == []
    assert decode_rows("") == []


def test_count_data_rows_excludes_header() -> None:
    assert count_data_rows("h1,h2\na,b\nc,d\n") == 2
    assert count_data_rows("h1,h2\n") == 0
    assert count_data_rows(None) == 0
