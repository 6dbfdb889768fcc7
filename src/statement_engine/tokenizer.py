"""
Row Tokenizer

Splits exported statement text into rows of trimmed cells. Quoted fields may
contain the delimiter ("50,000.00") or a line break; a line break inside a
cell is folded into a single space. Blank lines are kept as `['']` because a
blank leading cell closes a table.
"""
import csv
import io
from typing import List

from src.common.logging_config import get_logger

logger = get_logger(__name__)

Row = List[str]

BLANK_ROW: Row = ['']


def _clean_cell(value: str) -> str:
    if '\n' in value or '\r' in value:
        value = " ".join(part.strip() for part in value.splitlines() if part.strip())
    return value.strip()


def _clean_row(cells: List[str]) -> Row:
    row = [_clean_cell(c) for c in cells]
    return row if any(row) else list(BLANK_ROW)


def tokenize_line(line: str, delimiter: str = ',') -> Row:
    """Split a single line into trimmed cells, honouring double quotes."""
    reader = csv.reader([line.strip()], delimiter=delimiter, skipinitialspace=True)
    try:
        cells = next(reader)
    except (csv.Error, StopIteration):
        # Unbalanced quoting: fall back to a plain split
        cells = line.strip().split(delimiter)
    return _clean_row(cells)


def tokenize(content: str, delimiter: str = ',') -> List[Row]:
    """
    Turn raw statement text into rows of cells.

    The whole document goes through one csv reader so a quoted cell can span
    lines. A document the reader rejects (a runaway quoted field past the csv
    field size limit) is re-read line by line.

    Args:
        content: Raw exported text
        delimiter: Cell separator (comma for every supported export)

    Returns:
        One list of cells per record in document order; blank lines are `['']`
    """
    if not content:
        return []
    reader = csv.reader(io.StringIO(content, newline=''), delimiter=delimiter, skipinitialspace=True)
    try:
        return [_clean_row(cells) for cells in reader]
    except csv.Error as e:
        logger.warning(f"CSV reader failed, tokenizing line by line: {e}", content_length=len(content))
        return [tokenize_line(line, delimiter) for line in content.splitlines()]


def is_blank_row(row: Row) -> bool:
    return not any(c.strip() for c in row)


def non_blank_rows(rows: List[Row]) -> List[Row]:
    return [r for r in rows if not is_blank_row(r)]


def first_cell(row: Row) -> str:
    return row[0].strip() if row else ''


def cell(row: Row, index) -> str:
    """Cell at `index`, or '' when the index is missing or out of range."""
    if index is None or index < 0 or index >= len(row):
        return ''
    return row[index].strip()


def row_text(row: Row) -> str:
    """Whole row joined with spaces, for label and keyword checks."""
    return " ".join(c for c in row if c).strip()
