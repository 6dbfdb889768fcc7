"""
IDFC FIRST Bank Statement Parser

Handles the IDFC FIRST account statement export: a two-block label/value
preamble (customer fields on the left, account fields on the right), an
account summary, and the Transaction Date / Value Date / Particulars /
Cheque No. / Debit / Credit / Balance ledger with dates like 02-Aug-2025.
"""
import re
from typing import List, Optional

from src.common.logging_config import get_logger
from src.common.models import CREDIT, DEBIT
from ..coercers import parse_amount, parse_int
from ..detection import BANK_IFSC, count_markers, has_header_row, has_identifier, names_other_bank, prefix_rows
from ..models import ParsedBankStatement
from ..registry import BankParser
from ..sections import (
    Section, SectionScanner, build_header_map, ends_table, finalize, ledger_row,
    new_statement, require_rows, set_once
)
from ..tokenizer import Row, cell, first_cell, is_blank_row, row_text, tokenize

logger = get_logger(__name__)

BANK_NAME = 'IDFC Bank'
STATEMENT_TYPE = 'IDFC Bank Statement'
SUPPORTED_FORMATS = ('IDFC Bank Statement', 'IDFC CSV')
MIN_ROWS = 5

PREAMBLE_MARKERS = (
    'CUSTOMER ID', 'ACCOUNT NUMBER', 'STATEMENT PERIOD', 'COMMUNICATION ADDRESS', 'NOMINEE NAME',
    'ACCOUNT BRANCH', 'CKYC'
)

# Ordered: the first label contained in a cell decides the field.
# (owner, field, label, multi_cell); owner 'customer' or 'account'
LABELS = [
    ('customer', 'customer_id', 'CUSTOMER ID', False),
    ('customer', 'name', 'CUSTOMER NAME', False),
    ('account', 'account_number', 'ACCOUNT NUMBER', False),
    ('account', 'account_number', 'ACCOUNT NO', False),
    ('customer', 'statement_period', 'STATEMENT PERIOD', False),
    ('customer', 'address', 'COMMUNICATION ADDRESS', True),
    ('customer', 'customer_id', 'CKYC', False),
    ('customer', 'customer_id', 'CKY ID', False),
    ('customer', 'email', 'EMAIL', False),
    ('customer', 'phone', 'PHONE', False),
    ('customer', 'nomination', 'NOMINATION', False),
    ('account', 'nominee', 'NOMINEE NAME', False),
    ('account', 'branch_address', 'BRANCH ADDRESS', True),
    ('account', 'branch', 'ACCOUNT BRANCH', False),
    ('account', 'ifsc_code', 'IFSC', False),
    ('account', 'micr_code', 'MICR', False),
    ('account', 'account_open_date', 'ACCOUNT OPENING DATE', False),
    ('account', 'status', 'ACCOUNT STATUS', False),
    ('account', 'account_type', 'ACCOUNT TYPE', False),
    ('account', 'currency', 'CURRENCY', False),
]

# Counts are listed before amounts: "Total number of Debits" also contains "DEBIT"
SUMMARY_LABELS = [
    ('debit_count', 'TOTAL NUMBER OF DEBITS'),
    ('credit_count', 'TOTAL NUMBER OF CREDITS'),
    ('opening_balance', 'OPENING BAL'),
    ('total_debits', 'TOTAL DEBIT'),
    ('total_credits', 'TOTAL CREDIT'),
    ('closing_balance', 'CLOSING BAL'),
]

LEDGER_COLUMNS = {
    'value_date': ('VALUE DATE',),
    'date': ('TRANSACTION DATE', 'DATE'),
    'particulars': ('PARTICULARS', 'NARRATION'),
    'reference': ('CHEQUE', 'CHQ', 'REF'),
    'withdrawals': ('DEBIT', 'WITHDRAWAL'),
    'deposits': ('CREDIT', 'DEPOSIT'),
    'balance': ('BALANCE',),
}

_IFSC_CELL = re.compile(r"^IDFB0\d{6}$")
_MICR_CELL = re.compile(r"^\d{9}$")
_AMOUNT_CELL = re.compile(r"^-?[\d,]+(\.\d+)?$")


def detect(content: str) -> bool:
    """
    IDFC name (or IDFB0 IFSC), IDFC preamble or ledger layout, no competing bank.

    "Statement of account" alone is not enough: HDFC's export carries the
    same phrase.
    """
    if not has_identifier('IDFC', content):
        return False
    if names_other_bank('IDFC', content):
        return False
    if has_header_row(content, 'Transaction Date', 'Value Date'):
        return True
    prefix = "\n".join(row_text(r) for r in prefix_rows(content)).upper()
    if BANK_IFSC['IDFC'].search(content):
        return count_markers(prefix, PREAMBLE_MARKERS) >= 1
    return count_markers(prefix, PREAMBLE_MARKERS) >= 2


def _label_at(value: str) -> Optional[tuple]:
    upper = value.upper()
    for entry in LABELS:
        if entry[2] in upper:
            return entry
    return None


def _is_label(value: str) -> bool:
    upper = value.upper()
    return _label_at(value) is not None or any(label in upper for _, label in SUMMARY_LABELS)


def _values_after(row: Row, index: int, multi_cell: bool) -> List[str]:
    """Non-empty cells following a label, up to the next label."""
    values = []
    for value in row[index + 1:]:
        value = value.strip()
        if not value:
            continue
        if _is_label(value):
            break
        values.append(value)
        if not multi_cell:
            break
    return values


def _capture_labels(row: Row, statement: ParsedBankStatement) -> None:
    owners = {'customer': statement.customer_info, 'account': statement.primary_account()}
    for index, value in enumerate(row):
        entry = _label_at(value)
        if entry is None:
            continue
        owner, field_name, _, multi_cell = entry
        values = _values_after(row, index, multi_cell)
        if values:
            set_once(owners[owner], field_name, ", ".join(values))


def _capture_codes(row: Row, statement: ParsedBankStatement) -> None:
    """IFSC and MICR codes recognised by shape in any column but the first."""
    account = statement.primary_account()
    for value in row[1:]:
        value = value.strip()
        if _IFSC_CELL.match(value):
            set_once(account, 'ifsc_code', value)
        elif _MICR_CELL.match(value):
            set_once(account, 'micr_code', value)


def _summary_value(field_name: str, text: str):
    return parse_int(text) if field_name.endswith('_count') else parse_amount(text)


def _capture_summary(row: Row, statement: ParsedBankStatement) -> bool:
    """
    Label/value summary fields. The value normally follows its label; in the
    G/H placement it precedes it.

    Returns:
        True when the row is a header of summary labels without values
    """
    summary = statement.account_summary
    labels_without_value = 0
    for index, value in enumerate(row):
        upper = value.upper()
        field_name = next((f for f, label in SUMMARY_LABELS if label in upper), None)
        if field_name is None:
            continue
        after = cell(row, index + 1)
        before = cell(row, index - 1) if index > 0 else ''
        if after and _AMOUNT_CELL.match(after):
            set_once(summary, field_name, _summary_value(field_name, after))
        elif before and _AMOUNT_CELL.match(before) and not field_name.endswith('_count'):
            set_once(summary, field_name, _summary_value(field_name, before))
        else:
            labels_without_value += 1
    return labels_without_value >= 2


def _summary_header_map(row: Row) -> dict:
    mapping = {}
    for index, value in enumerate(row):
        upper = value.upper()
        field_name = next((f for f, label in SUMMARY_LABELS if label in upper), None)
        if field_name and field_name not in mapping:
            mapping[field_name] = index
    return mapping


def _derive_summary(statement: ParsedBankStatement) -> None:
    """Fill summary fields the document left out from the ledger itself."""
    summary = statement.account_summary
    transactions = statement.transactions

    if not summary.opening_balance and transactions and transactions[0].balance is not None:
        first = transactions[0]
        if first.type == CREDIT:
            summary.opening_balance = first.balance - first.amount
        else:
            summary.opening_balance = first.balance + first.amount
        logger.debug("Opening balance derived from first transaction", opening_balance=summary.opening_balance)

    if not summary.total_debits:
        summary.total_debits = sum(t.amount for t in transactions if t.type == DEBIT)
    if not summary.total_credits:
        summary.total_credits = sum(t.amount for t in transactions if t.type == CREDIT)


def extract(content: str):
    """
    Scan an IDFC statement.

    Returns:
        ExtractionResult holding the ParsedBankStatement

    Raises:
        ExtractionFailure: content too short, or nothing identifying and no
            transactions found
    """
    rows = tokenize(content)
    require_rows(rows, MIN_ROWS, BANK_NAME)

    statement = new_statement(BANK_NAME, STATEMENT_TYPE)
    statement.primary_account()
    scanner = SectionScanner(BANK_NAME)

    for row in rows:
        first = first_cell(row)

        if scanner.in_section(Section.TRANSACTIONS):
            upper = first.upper()
            if ends_table(row) or upper.startswith('END OF') or 'TOTAL' in upper:
                scanner.leave()
                # Totals rows also carry summary fields
                _capture_summary(row, statement)
                continue
            tx = ledger_row(row, scanner.header_map)
            if tx is not None:
                statement.transactions.append(tx)
            continue

        if scanner.in_section(Section.ACCOUNT_SUMMARY):
            if is_blank_row(row):
                continue
            if scanner.header_map and _AMOUNT_CELL.match(first):
                for field_name, index in scanner.header_map.items():
                    text = cell(row, index)
                    if text:
                        set_once(statement.account_summary, field_name, _summary_value(field_name, text))
                scanner.leave()
                continue
            scanner.leave()

        if 'TRANSACTION DATE' in first.upper() and 'VALUE DATE' in cell(row, 1).upper():
            if scanner.can_enter(Section.TRANSACTIONS):
                scanner.enter(Section.TRANSACTIONS, row, build_header_map(row, LEDGER_COLUMNS))
            continue

        _capture_labels(row, statement)
        _capture_codes(row, statement)
        if _capture_summary(row, statement) and scanner.can_enter(Section.ACCOUNT_SUMMARY):
            scanner.enter(Section.ACCOUNT_SUMMARY, row, _summary_header_map(row))

    _derive_summary(statement)
    return finalize(statement, 'IDFC')


PARSER = BankParser(
    bank_name=BANK_NAME,
    detect_fn=detect,
    extract_fn=extract,
    supported_formats=SUPPORTED_FORMATS,
)
