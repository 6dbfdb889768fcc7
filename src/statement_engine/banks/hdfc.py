"""
HDFC Bank Statement Parser

Handles the HDFC NetBanking "Statement of accounts" export: a label/value
preamble, the Date / Narration / Chq./Ref.No. / Value Dt / Withdrawal Amt. /
Deposit Amt. / Closing Balance ledger (DD/MM/YY dates) and the
STATEMENT SUMMARY footer.
"""
import re

from src.common.logging_config import get_logger
from ..coercers import parse_amount, parse_int
from ..detection import count_markers, has_identifier, names_other_bank, prefix_rows
from ..models import ParsedBankStatement
from ..registry import BankParser
from ..sections import (
    Section, SectionScanner, build_header_map, ends_table, finalize, ledger_row,
    new_statement, require_rows, set_once
)
from ..tokenizer import Row, cell, first_cell, row_text, tokenize

logger = get_logger(__name__)

BANK_NAME = 'HDFC Bank'
STATEMENT_TYPE = 'HDFC Bank Statement'
SUPPORTED_FORMATS = ('HDFC Bank Statement', 'HDFC CSV')
MIN_ROWS = 2

LEDGER_MARKERS = (
    'narration', 'chq./ref.no', 'value dt', 'withdrawal amt', 'deposit amt', 'closing balance'
)
# Markers of the ICICI internet-banking export, which shares some vocabulary
FOREIGN_MARKERS = ('s no.', 'transaction remarks')

LEDGER_COLUMNS = {
    'value_date': ('VALUE DT', 'VALUE DATE'),
    'date': ('DATE',),
    'particulars': ('NARRATION',),
    'reference': ('CHQ', 'REF'),
    'withdrawals': ('WITHDRAWAL',),
    'deposits': ('DEPOSIT',),
    'balance': ('CLOSING BALANCE', 'BALANCE'),
}

SUMMARY_COLUMNS = {
    'opening_balance': ('OPENING',),
    'debit_count': ('DR COUNT', 'DR. COUNT'),
    'credit_count': ('CR COUNT', 'CR. COUNT'),
    'total_debits': ('DEBITS',),
    'total_credits': ('CREDITS',),
    'closing_balance': ('CLOSING',),
}

_CUSTOMER_NAME = re.compile(r"^(MR|MS|MRS|M/S|DR)\.?\s+\S", re.IGNORECASE)
_SEPARATOR = re.compile(r"^\*+$")
_NUMERIC = re.compile(r"^-?[\d,]+(\.\d+)?$")

# (owner, field, pattern); owner 'customer' or 'account'
PREAMBLE_FIELDS = [
    ('account', 'account_number', re.compile(r"Account\s*No\.?\s*:\s*(\d{6,})", re.IGNORECASE)),
    ('customer', 'customer_id', re.compile(r"Cust(?:omer)?\s*ID\s*:\s*(\w+)", re.IGNORECASE)),
    ('account', 'ifsc_code', re.compile(r"IFSC\s*(?:Code)?\s*:\s*([A-Z]{4}0[A-Z0-9]{6})", re.IGNORECASE)),
    ('account', 'micr_code', re.compile(r"MICR\s*(?:Code)?\s*:\s*(\d{9})", re.IGNORECASE)),
    ('account', 'branch', re.compile(r"Account\s*Branch\s*:\s*(.+)$", re.IGNORECASE)),
    ('customer', 'email', re.compile(r"Email\s*(?:ID)?\s*:\s*(\S+@\S+)", re.IGNORECASE)),
    ('customer', 'phone', re.compile(r"Phone\s*no\.?\s*:\s*(\+?[\d\s\-]*\d)", re.IGNORECASE)),
    ('customer', 'nomination', re.compile(r"Nomination\s*:\s*(.+)$", re.IGNORECASE)),
    ('account', 'account_open_date', re.compile(r"A/C\s*Open\s*Date\s*:\s*([\d/\-]+)", re.IGNORECASE)),
    ('account', 'status', re.compile(r"Account\s*Status\s*:\s*(.+)$", re.IGNORECASE)),
    ('account', 'currency', re.compile(r"Currency\s*:\s*([A-Z]{3})\b", re.IGNORECASE)),
]

_STATEMENT_PERIOD = re.compile(
    r"Statement\s*From\s*:\s*([\d/\-]+)\s*To\s*:\s*([\d/\-]+)", re.IGNORECASE
)


def detect(content: str) -> bool:
    """HDFC name (or HDFC0 IFSC), at least 4 ledger columns, no competing bank."""
    if not has_identifier('HDFC', content):
        return False
    if names_other_bank('HDFC', content):
        return False
    prefix = "\n".join("|".join(r) for r in prefix_rows(content))
    if count_markers(prefix, FOREIGN_MARKERS):
        return False
    return count_markers(prefix, LEDGER_MARKERS) >= 4


def _is_ledger_header(row: Row) -> bool:
    text = "|".join(row).lower()
    return 'date' in first_cell(row).lower() and 'narration' in text and (
        'withdrawal amt' in text or 'deposit amt' in text
    )


def _capture_preamble(row: Row, statement: ParsedBankStatement) -> None:
    account = statement.primary_account()
    owners = {'customer': statement.customer_info, 'account': account}
    for value in row:
        if ':' not in value:
            continue
        for owner, field_name, pattern in PREAMBLE_FIELDS:
            match = pattern.search(value)
            if match:
                set_once(owners[owner], field_name, match.group(1))
        match = _STATEMENT_PERIOD.search(value)
        if match:
            set_once(statement.customer_info, 'statement_period', f"{match.group(1)} - {match.group(2)}")


def _summary_values(row: Row, columns, statement: ParsedBankStatement) -> None:
    summary = statement.account_summary
    for field_name, index in columns.items():
        text = cell(row, index)
        if not text:
            continue
        if field_name.endswith('_count'):
            set_once(summary, field_name, parse_int(text))
        else:
            set_once(summary, field_name, parse_amount(text))


def _is_summary_start(row: Row) -> bool:
    return 'STATEMENT SUMMARY' in row_text(row).upper() or first_cell(row).upper().startswith('OPENING BAL')


def extract(content: str):
    """
    Scan an HDFC statement.

    Returns:
        ExtractionResult holding the ParsedBankStatement

    Raises:
        ExtractionFailure: content too short, or nothing identifying and no
            transactions found
    """
    rows = tokenize(content)
    require_rows(rows, MIN_ROWS, BANK_NAME)

    statement = new_statement(BANK_NAME, STATEMENT_TYPE)
    scanner = SectionScanner(BANK_NAME)
    address_lines = []

    for row in rows:
        first = first_cell(row)

        if scanner.in_section(Section.DONE):
            break

        if scanner.in_section(Section.TRANSACTIONS):
            if _SEPARATOR.match(first):
                continue
            if _is_summary_start(row):
                scanner.enter(Section.ACCOUNT_SUMMARY)
            elif ends_table(row):
                scanner.leave()
                continue
            else:
                tx = ledger_row(row, scanner.header_map)
                if tx is not None:
                    statement.transactions.append(tx)
                continue

        if scanner.in_section(Section.ACCOUNT_SUMMARY):
            if first.upper().startswith('OPENING BAL'):
                scanner.header_map = build_header_map(row, SUMMARY_COLUMNS)
            elif scanner.header_map and _NUMERIC.match(first):
                _summary_values(row, scanner.header_map, statement)
                scanner.finish()
            continue

        if Section.TRANSACTIONS in scanner.visited:
            # Between the ledger and the footer
            if _is_summary_start(row):
                scanner.enter(Section.ACCOUNT_SUMMARY)
                if first.upper().startswith('OPENING BAL'):
                    scanner.header_map = build_header_map(row, SUMMARY_COLUMNS)
            continue

        if _is_ledger_header(row):
            scanner.enter(Section.TRANSACTIONS, row, build_header_map(row, LEDGER_COLUMNS))
            continue

        _capture_preamble(row, statement)
        if scanner.in_section(Section.CUSTOMER_BLOCK):
            if first and ':' not in first:
                address_lines.append(first)
            else:
                scanner.leave()
        elif _CUSTOMER_NAME.match(first) and scanner.can_enter(Section.CUSTOMER_BLOCK):
            set_once(statement.customer_info, 'name', first)
            scanner.enter(Section.CUSTOMER_BLOCK)

    if address_lines:
        set_once(statement.customer_info, 'address', ", ".join(address_lines))

    logger.debug("HDFC scan complete", footer_found=scanner.in_section(Section.DONE))
    return finalize(statement, 'HDFC')


PARSER = BankParser(
    bank_name=BANK_NAME,
    detect_fn=detect,
    extract_fn=extract,
    supported_formats=SUPPORTED_FORMATS,
)
