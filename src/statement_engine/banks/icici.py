"""
ICICI Bank Statement Parser

Handles the ICICI "detailed statement" export: customer block, statement
summary with relationship balances, account details, fixed deposits, the
DATE/MODE transaction ledger, reward points and account information.
"""
import re
from typing import Optional

from src.common.logging_config import get_logger
from ..coercers import parse_amount, parse_int
from ..detection import count_markers, has_header_row, has_identifier, names_other_bank, prefix_rows
from ..models import AccountDetail, AccountInfo, FixedDeposit, ParsedBankStatement, RewardPoint
from ..registry import BankParser
from ..sections import (
    Section, SectionScanner, build_header_map, ends_table, finalize, ledger_row,
    new_statement, require_rows, set_once, unmapped_cells
)
from ..tokenizer import Row, cell, first_cell, row_text, tokenize

logger = get_logger(__name__)

BANK_NAME = 'ICICI Bank'
STATEMENT_TYPE = 'ICICI Bank Statement'
SUPPORTED_FORMATS = ('ICICI Bank Statement', 'ICICI CSV')
MIN_ROWS = 3

LAYOUT_MARKERS = (
    'STATEMENT SUMMARY', 'RELATIONSHIP', 'DEPOSIT NO.', 'SAVINGS ACCOUNT NUMBER', 'TRANSACTION REMARKS'
)

_CUSTOMER_NAME = re.compile(r"^(MR|MS|MRS|DR)\.\s*\S", re.IGNORECASE)
_CUSTOMER_ID = re.compile(r"Customer ID:\s*(\w+)", re.IGNORECASE)
_AS_ON = re.compile(r"\bas on\s+([^,]+?)\s*$", re.IGNORECASE)

LEDGER_COLUMNS = {
    'date': ('DATE',),
    'mode': ('MODE',),
    'particulars': ('PARTICULARS', 'REMARKS', 'NARRATION'),
    'deposits': ('DEPOSIT',),
    'withdrawals': ('WITHDRAWAL',),
    'balance': ('BALANCE',),
}

# Internet-banking export: S No. | Value Date | Transaction Date | Cheque Number | Transaction Remarks | ...
REMARKS_LEDGER_COLUMNS = {
    'value_date': ('VALUE DATE',),
    'date': ('TRANSACTION DATE', 'DATE'),
    'reference': ('CHEQUE', 'CHQ'),
    'particulars': ('TRANSACTION REMARKS', 'REMARKS'),
    'withdrawals': ('WITHDRAWAL',),
    'deposits': ('DEPOSIT',),
    'balance': ('BALANCE',),
}

ACCOUNT_DETAIL_COLUMNS = {
    'account_type': ('ACCOUNT TYPE',),
    'account_number': ('ACCOUNT NUMBER', 'ACCOUNT NO'),
    'balance': ('BALANCE',),
}

FIXED_DEPOSIT_COLUMNS = {
    'deposit_no': ('DEPOSIT NO',),
    'open_date': ('OPEN DATE',),
    'amount': ('DEP. AMT', 'DEPOSIT AMT', 'PRINCIPAL'),
    'roi': ('ROI', 'RATE'),
    'maturity_date': ('MAT. DATE', 'MATURITY DATE'),
    'maturity_amount': ('MAT. AMT', 'MATURITY AMT', 'MATURITY AMOUNT'),
    'balance': ('BALANCE',),
}

REWARD_COLUMNS = {
    'account_number': ('ACCOUNT NUMBER', 'ACCOUNT NO'),
    'reward_points': ('REWARD POINTS', 'POINTS'),
    'expiry_date': ('EXPIRY',),
    'tier': ('TIER',),
}

ACCOUNT_INFO_COLUMNS = {
    'account_type': ('ACCOUNT TYPE',),
    'account_number': ('ACCOUNT NUMBER', 'ACCOUNT NO'),
    'ifsc_code': ('IFSC',),
    'micr_code': ('MICR',),
    'branch': ('BRANCH',),
    'status': ('STATUS',),
    'nominee': ('NOMINEE',),
}

TABLE_COLUMNS = {
    Section.TRANSACTIONS: LEDGER_COLUMNS,
    Section.ACCOUNT_DETAILS: ACCOUNT_DETAIL_COLUMNS,
    Section.FIXED_DEPOSITS: FIXED_DEPOSIT_COLUMNS,
    Section.REWARDS: REWARD_COLUMNS,
    Section.ACCOUNT_INFO: ACCOUNT_INFO_COLUMNS,
}

REWARDS_END = 'ACCOUNT RELATED OTHER INFORMATION'


def detect(content: str) -> bool:
    """ICICI name (or ICIC0 IFSC), an ICICI layout signature, and no competing bank in the header."""
    if not has_identifier('ICICI', content):
        return False
    if names_other_bank('ICICI', content):
        return False
    if has_header_row(content, 'DATE', 'MODE'):
        return True
    prefix = "\n".join(row_text(r) for r in prefix_rows(content))
    return count_markers(prefix, LAYOUT_MARKERS) > 0


def _is_remarks_ledger_header(row: Row) -> bool:
    header = row_text(row).upper()
    return 'TRANSACTION REMARKS' in header and 'DATE' in header


def _section_for(row: Row) -> Optional[Section]:
    """The section a marker/header row opens, or None for ordinary rows."""
    first = first_cell(row).upper()
    second = cell(row, 1).upper()

    if first == 'DATE' and second == 'MODE':
        return Section.TRANSACTIONS
    if _is_remarks_ledger_header(row):
        return Section.TRANSACTIONS
    if first.startswith('DEPOSIT NO'):
        return Section.FIXED_DEPOSITS
    if first == 'SAVINGS ACCOUNT NUMBER':
        return Section.REWARDS
    if first == 'ACCOUNT TYPE':
        header = row_text(row).upper()
        if any(k in header for k in ('IFSC', 'BRANCH', 'STATUS')):
            return Section.ACCOUNT_INFO
        return Section.ACCOUNT_DETAILS
    if (first == 'RELATIONSHIP' and second == 'BALANCE') or 'STATEMENT SUMMARY' in first:
        return Section.ACCOUNT_SUMMARY
    if _CUSTOMER_NAME.match(first):
        return Section.CUSTOMER_BLOCK
    return None


def _capture_scalars(row: Row, statement: ParsedBankStatement) -> None:
    text = row_text(row)
    match = _CUSTOMER_ID.search(text)
    if match:
        set_once(statement.customer_info, 'customer_id', match.group(1))
    match = _AS_ON.search(text)
    if match:
        set_once(statement.account_summary, 'statement_date', f"as on {match.group(1)}")


def _summary_row(row: Row, statement: ParsedBankStatement) -> None:
    label = first_cell(row).upper()
    value = cell(row, 1)
    if not value:
        return
    summary = statement.account_summary
    if 'SAVINGS ACCOUNT BALANCE' in label:
        set_once(summary, 'savings_balance', parse_amount(value))
    elif 'FIXED DEPOSITS LINKED' in label:
        set_once(summary, 'linked_fd_balance', parse_amount(value))
    elif 'TOTAL SAVINGS' in label:
        set_once(summary, 'total_savings_balance', parse_amount(value))
    elif label == 'TOTAL DEPOSITS':
        set_once(summary, 'total_deposits', parse_amount(value))


def _optional_amount(row: Row, index) -> Optional[float]:
    text = cell(row, index)
    return parse_amount(text) if text else None


def _table_row(row: Row, scanner: SectionScanner, statement: ParsedBankStatement) -> None:
    columns = scanner.header_map
    extra = unmapped_cells(row, scanner.headers, columns)

    if scanner.in_section(Section.TRANSACTIONS):
        tx = ledger_row(row, columns)
        if tx is not None:
            statement.transactions.append(tx)

    elif scanner.in_section(Section.ACCOUNT_DETAILS):
        statement.account_details.append(AccountDetail(
            account_type=cell(row, columns.get('account_type')) or None,
            account_number=cell(row, columns.get('account_number')) or None,
            balance=_optional_amount(row, columns.get('balance')),
            extra=extra,
        ))

    elif scanner.in_section(Section.FIXED_DEPOSITS):
        deposit_no = cell(row, columns.get('deposit_no'))
        if not deposit_no:
            return
        statement.fixed_deposits.append(FixedDeposit(
            deposit_no=deposit_no,
            open_date=cell(row, columns.get('open_date')) or None,
            amount=_optional_amount(row, columns.get('amount')),
            roi=_optional_amount(row, columns.get('roi')),
            maturity_date=cell(row, columns.get('maturity_date')) or None,
            maturity_amount=_optional_amount(row, columns.get('maturity_amount')),
            balance=_optional_amount(row, columns.get('balance')),
            extra=extra,
        ))

    elif scanner.in_section(Section.REWARDS):
        statement.reward_points.append(RewardPoint(
            account_number=cell(row, columns.get('account_number')) or None,
            reward_points=parse_int(cell(row, columns.get('reward_points'))),
            expiry_date=cell(row, columns.get('expiry_date')) or None,
            tier=cell(row, columns.get('tier')) or None,
            extra=extra,
        ))

    elif scanner.in_section(Section.ACCOUNT_INFO):
        statement.account_info.append(AccountInfo(
            account_type=cell(row, columns.get('account_type')) or None,
            account_number=cell(row, columns.get('account_number')) or None,
            ifsc_code=cell(row, columns.get('ifsc_code')) or None,
            micr_code=cell(row, columns.get('micr_code')) or None,
            branch=cell(row, columns.get('branch')) or None,
            status=cell(row, columns.get('status')) or None,
            nominee=cell(row, columns.get('nominee')) or None,
            extra=extra,
        ))


def extract(content: str):
    """
    Scan an ICICI statement top to bottom.

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
        if not scanner.in_section(Section.TRANSACTIONS):
            _capture_scalars(row, statement)

        section = _section_for(row)
        if section is not None:
            if section is scanner.state:
                # Ledger header repeated on a new page
                continue
            if not scanner.can_enter(section):
                scanner.leave()
                continue
            if section is Section.CUSTOMER_BLOCK:
                set_once(statement.customer_info, 'name', first_cell(row))
                scanner.enter(section)
            elif section is Section.ACCOUNT_SUMMARY:
                scanner.enter(section)
            else:
                columns = TABLE_COLUMNS[section]
                if _is_remarks_ledger_header(row):
                    columns = REMARKS_LEDGER_COLUMNS
                scanner.enter(section, row, build_header_map(row, columns))
            continue

        if scanner.in_section(Section.CUSTOMER_BLOCK):
            text = row_text(row)
            if not text or _CUSTOMER_ID.search(text) or _AS_ON.search(text) or 'STATEMENT' in text.upper():
                scanner.leave()
            else:
                address_lines.append(", ".join(c for c in row if c))
            continue

        if scanner.in_section(Section.ACCOUNT_SUMMARY):
            _summary_row(row, statement)
            continue

        if scanner.state in TABLE_COLUMNS:
            rewards_end = scanner.in_section(Section.REWARDS) and first_cell(row).upper().startswith(REWARDS_END)
            if ends_table(row) or rewards_end:
                scanner.leave()
                continue
            _table_row(row, scanner, statement)

    if address_lines:
        set_once(statement.customer_info, 'address', ", ".join(address_lines))

    logger.debug(
        "ICICI scan complete",
        fixed_deposits=len(statement.fixed_deposits),
        account_details=len(statement.account_details),
        reward_points=len(statement.reward_points)
    )
    return finalize(statement, 'ICICI')


PARSER = BankParser(
    bank_name=BANK_NAME,
    detect_fn=detect,
    extract_fn=extract,
    supported_formats=SUPPORTED_FORMATS,
)
