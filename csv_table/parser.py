import csv
import io
from typing import List, Optional

from csv_table.errors import ParseError

SNIFF_DELIMITERS = ",;\t|"
DEFAULT_DELIMITER = ","


def delimiter_for_path(path: str) -> Optional[str]:
    if path.lower().endswith(".tsv"):
        return "\t"
    return None


def sniff_delimiter(text: str) -> str:
    sample = "\n".join(line for line in text[:4096].splitlines() if line.strip())
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS)
    except csv.Error:
        return DEFAULT_DELIMITER
    return dialect.delimiter


def parse_csv_text(text: str, delimiter: Optional[str] = None) -> List[List[str]]:
    """Split delimited text into rows of raw string fields.

    Blank lines are dropped and the first row is data like any other.
    Malformed quoting raises ParseError with the reader's diagnostic.
    """
    if delimiter is None:
        delimiter = sniff_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    rows: List[List[str]] = []
    try:
        for row in reader:
            if not row:
                continue
            rows.append(row)
    except csv.Error as exc:
        raise ParseError(f"Line {reader.line_num}: {exc}") from exc
    return rows
