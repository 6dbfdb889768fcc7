"""
Field Coercers

Amount and date parsing shared by every extractor. Coercion never raises:
bad amounts become 0 and bad dates become None so the caller decides what a
missing value means for its record.
"""
import re
import uuid
from datetime import date, datetime
from typing import Optional, Union

_AMOUNT_NOISE = re.compile(r"[^\d.\-]")
_INT_NOISE = re.compile(r"[^\d\-]")

# Tried in order; the lookbehind keeps "2024-01-15" from matching as "24-01-15"
_NUMERIC_DATE_PATTERNS = [
    re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{2,4})(?!\d)"),
    re.compile(r"(?<!\d)(\d{1,2})-(\d{1,2})-(\d{2,4})(?!\d)"),
    re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)"),
]
_MONTH_NAME_DATE = re.compile(r"(?<!\d)(\d{1,2})[\s/\-]([A-Za-z]{3})[A-Za-z]*[\s/\-,]*(\d{2,4})(?!\d)")

# Whole-cell date shapes: 02/01/2024, 2024-01-02, 02-Jan-2024
_DATE_CELL = re.compile(
    r"^(\d{1,2}[/-]\d{1,2}[/-]\d{2,4}|\d{4}-\d{1,2}-\d{1,2}|\d{1,2}[\s/-][A-Za-z]{3}[\s/-]\d{2,4})$"
)

MONTHS = {
    'JAN': 1, 'FEB': 2, 'MAR': 3, 'APR': 4, 'MAY': 5, 'JUN': 6,
    'JUL': 7, 'AUG': 8, 'SEP': 9, 'OCT': 10, 'NOV': 11, 'DEC': 12
}


def parse_amount(value: Union[str, int, float, None]) -> float:
    """
    Parse a printed amount into a float.

    Everything except digits, '.' and '-' is stripped first, so currency
    symbols, thousands separators (including the lakh grouping "1,00,000")
    and trailing Dr/Cr markers are ignored.

    Examples:
        "₹1,00,000.00" -> 100000.0
        "-2,500.50"    -> -2500.5
        ""             -> 0.0
        "abc"          -> 0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)

    clean = _AMOUNT_NOISE.sub('', str(value))
    if not clean:
        return 0.0
    try:
        return float(clean)
    except ValueError:
        return 0.0


def parse_int(value: Union[str, int, None]) -> Optional[int]:
    """Parse a count or points column; None when nothing numeric is present."""
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    clean = _INT_NOISE.sub('', str(value).split('.')[0])
    if not clean or clean == '-':
        return None
    try:
        return int(clean)
    except ValueError:
        return None


def _expand_year(year_s: str) -> int:
    year = int(year_s)
    if len(year_s) <= 2:
        year += 2000
    return year


def _numeric_date(first: str, second: str, third: str, day_first: bool) -> datetime:
    n1, n2, n3 = int(first), int(second), int(third)

    # Year leads: YYYY-MM-DD
    if len(first) == 4 or n1 > 31:
        return datetime(n1, n2, n3)

    year = _expand_year(third)
    if n1 > 12:
        day, month = n1, n2
    elif n2 > 12:
        month, day = n1, n2
    elif day_first:
        day, month = n1, n2
    else:
        month, day = n1, n2
    return datetime(year, month, day)


def parse_date(value: Union[str, date, datetime, None], day_first: bool = True) -> Optional[datetime]:
    """
    Parse a statement date.

    Shapes tried in order: D/M/Y, D-M-Y, Y-M-D, then D-Mon-Y ("02-Aug-2025").
    A four-digit (or > 31) leading group means year-first; otherwise the year
    is the last group and the day/month order follows `day_first` unless one
    of the two groups can only be a day. Two-digit years are read as 20YY.

    Returns None when nothing parses.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip()
    if not text:
        return None

    for pattern in _NUMERIC_DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        try:
            return _numeric_date(*match.groups(), day_first=day_first)
        except ValueError:
            continue

    match = _MONTH_NAME_DATE.search(text)
    if match:
        day_s, mon_s, year_s = match.groups()
        month = MONTHS.get(mon_s.upper())
        if month:
            try:
                return datetime(_expand_year(year_s), month, int(day_s))
            except ValueError:
                return None

    return None


def is_date_cell(value: Optional[str]) -> bool:
    """True when a cell holds nothing but a date (used to tell ledger rows from notes)."""
    return bool(value) and bool(_DATE_CELL.match(value.strip()))


def clean_text(value) -> str:
    """Trim a cell and collapse inner whitespace."""
    if value is None:
        return ''
    return " ".join(str(value).split())


def new_transaction_id(prefix: str = 'txn') -> str:
    return f"{prefix}_{uuid.uuid4().hex}"
