"""
Format Detection Helpers

Shared building blocks for the per-bank detectors. A detector looks at a
bounded prefix of the document (the statement header, up to the first ledger
row) for the bank's name, and at the whole document for its IFSC prefix.
Each bank refuses content that names a competing bank in its header.
"""
import re
from typing import Dict, Iterable, List

from .coercers import is_date_cell
from .tokenizer import Row, is_blank_row, row_text, tokenize

PREFIX_LINES = 30

BANK_IDENTIFIERS: Dict[str, re.Pattern] = {
    'ICICI': re.compile(r"\bICICI\b", re.IGNORECASE),
    'HDFC': re.compile(r"\bHDFC\b", re.IGNORECASE),
    'IDFC': re.compile(r"\bIDFC\b", re.IGNORECASE),
}

# IFSC: 4-letter bank code, a literal 0, 6 branch digits
BANK_IFSC: Dict[str, re.Pattern] = {
    'ICICI': re.compile(r"\bICIC0\d{6}\b"),
    'HDFC': re.compile(r"\bHDFC0\d{6}\b"),
    'IDFC': re.compile(r"\bIDFB0\d{6}\b"),
}

def prefix_rows(content: str, limit: int = PREFIX_LINES) -> List[Row]:
    """First `limit` non-blank rows."""
    rows = []
    for row in tokenize(content or ''):
        if is_blank_row(row):
            continue
        rows.append(row)
        if len(rows) >= limit:
            break
    return rows


def header_rows(content: str, limit: int = PREFIX_LINES) -> List[Row]:
    """
    The statement header: prefix rows up to the first ledger row.

    Ledger narrations routinely name other banks ("NEFT-HDFC0001234-..."), so
    identifier and exclusion checks only look above the ledger.
    """
    rows = []
    for row in prefix_rows(content, limit):
        if row and is_date_cell(row[0]):
            break
        rows.append(row)
    return rows


def header_text(content: str, limit: int = PREFIX_LINES) -> str:
    return "\n".join(row_text(r) for r in header_rows(content, limit))


def has_identifier(bank: str, content: str) -> bool:
    """Bank name in the header, or the bank's IFSC prefix anywhere."""
    if BANK_IDENTIFIERS[bank].search(header_text(content)):
        return True
    return bool(BANK_IFSC[bank].search(content or ''))


def names_other_bank(bank: str, content: str) -> bool:
    """True when the header names any bank other than `bank`."""
    text = header_text(content)
    return any(
        pattern.search(text)
        for other, pattern in BANK_IDENTIFIERS.items()
        if other != bank
    )


def count_markers(text: str, markers: Iterable[str]) -> int:
    """How many of `markers` occur in `text` (case-insensitive)."""
    lowered = text.lower()
    return sum(1 for m in markers if m.lower() in lowered)


def has_header_row(content: str, *cells: str, limit: int = PREFIX_LINES) -> bool:
    """True when some prefix row starts with exactly `cells` (case-insensitive)."""
    wanted = [c.upper() for c in cells]
    for row in prefix_rows(content, limit):
        leading = [c.upper() for c in row[:len(wanted)]]
        if leading == wanted:
            return True
    return False
