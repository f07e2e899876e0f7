import pytest

from csv_table.errors import ParseError
from csv_table.parser import delimiter_for_path, parse_csv_text, sniff_delimiter


def test_parse_simple_rows():
    assert parse_csv_text("1,2\n3,4") == [["1", "2"], ["3", "4"]]


def test_parse_drops_blank_lines_and_keeps_first_row_as_data():
    text = "name,age\n\nann,3\n\n\n"
    assert parse_csv_text(text, ",") == [["name", "age"], ["ann", "3"]]


def test_parse_does_not_trim():
    assert parse_csv_text("only, empty, lines\n\n\n") == [["only", " empty", " lines"]]


def test_parse_keeps_ragged_rows():
    assert parse_csv_text("a,b,c\nd\n", ",") == [["a", "b", "c"], ["d"]]


def test_parse_quoted_fields():
    assert parse_csv_text('"a,b",c\n"say ""hi""",d', ",") == [["a,b", "c"], ['say "hi"', "d"]]


def test_parse_error_on_text_after_closing_quote():
    with pytest.raises(ParseError) as info:
        parse_csv_text('"a"b,c', ",")
    assert "expected after" in info.value.message


def test_parse_error_on_unterminated_quote():
    with pytest.raises(ParseError):
        parse_csv_text('x,"abc', ",")


def test_parse_empty_text_gives_no_rows():
    assert parse_csv_text("") == []
    assert parse_csv_text("\n\n") == []


def test_sniff_semicolon_and_tab():
    assert sniff_delimiter("a;b;c\nd;e;f\n") == ";"
    assert sniff_delimiter("a\tb\nc\td\n") == "\t"


def test_sniff_falls_back_to_comma():
    assert sniff_delimiter("single") == ","


def test_delimiter_for_path():
    assert delimiter_for_path("/tmp/data.TSV") == "\t"
    assert delimiter_for_path("/tmp/data.csv") is None
