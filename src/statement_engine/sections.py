"""
Section Scanning

Shared pieces of the per-bank row scanners: the section state enum, header
maps, section terminators, first-match-wins field assignment, statement
finalisation and flattening into ParsedTransaction records.
"""
import re
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from src.common.logging_config import get_logger
from src.common.models import ParsedTransaction
from .coercers import is_date_cell, new_transaction_id, parse_amount, parse_date
from .exceptions import ExtractionFailure, ValidationFailure
from .models import BankTransaction, ExtractionResult, ParsedBankStatement, StatementMetadata
from .postprocessing import extract_merchant
from .tokenizer import Row, cell, first_cell, non_blank_rows

logger = get_logger(__name__)

HeaderMap = Dict[str, int]

_TOTAL_ROW = re.compile(r"^(SUB\s*TOTAL|TOTAL)\b", re.IGNORECASE)


class Section(Enum):
    """Where the row scanner currently is in the document."""
    PREAMBLE = 'preamble'
    CUSTOMER_BLOCK = 'customer_block'
    ACCOUNT_SUMMARY = 'account_summary'
    ACCOUNT_DETAILS = 'account_details'
    FIXED_DEPOSITS = 'fixed_deposits'
    TRANSACTIONS = 'transactions'
    REWARDS = 'rewards'
    ACCOUNT_INFO = 'account_info'
    DONE = 'done'


class SectionScanner:
    """
    Tracks the active section for one scan.

    Exactly one section is active at a time. Table sections are entered at
    most once per document; a second header for the same table is ignored.
    """

    def __init__(self, bank_name: str):
        self.bank_name = bank_name
        self.state = Section.PREAMBLE
        self.header_map: HeaderMap = {}
        self.headers: List[str] = []
        self.visited = set()

    def can_enter(self, section: Section) -> bool:
        return section not in self.visited and self.state is not Section.DONE

    def enter(self, section: Section, header_row: Optional[Row] = None,
              header_map: Optional[HeaderMap] = None) -> None:
        logger.debug(f"Entering section {section.value}", bank=self.bank_name, previous=self.state.value)
        self.state = section
        self.visited.add(section)
        self.headers = [c.strip() for c in header_row] if header_row else []
        self.header_map = header_map or {}

    def leave(self) -> None:
        """Close the active section and go back to scanning for markers."""
        if self.state is not Section.DONE:
            self.state = Section.PREAMBLE
        self.header_map = {}
        self.headers = []

    def finish(self) -> None:
        self.state = Section.DONE

    def in_section(self, section: Section) -> bool:
        return self.state is section


def build_header_map(row: Row, aliases: Dict[str, Sequence[str]]) -> HeaderMap:
    """
    Map field names to column positions by matching header labels.

    `aliases` is ordered: each field takes the first still-unclaimed column
    whose label contains one of its aliases (case-insensitive), so more
    specific fields ("value date") should be listed before generic ones
    ("date").
    """
    labels = [c.strip().upper() for c in row]
    claimed = set()
    mapping: HeaderMap = {}
    for field_name, names in aliases.items():
        for alias in names:
            alias = alias.upper()
            index = next(
                (i for i, label in enumerate(labels) if i not in claimed and label and alias in label),
                None
            )
            if index is not None:
                mapping[field_name] = index
                claimed.add(index)
                break
    return mapping


def unmapped_cells(row: Row, headers: List[str], header_map: HeaderMap) -> Dict[str, str]:
    """Cells under headers that no field claimed, keyed by header label."""
    claimed = set(header_map.values())
    extra = {}
    for i, header in enumerate(headers):
        if i in claimed or not header:
            continue
        value = cell(row, i)
        if value:
            extra[header] = value
    return extra


def is_total_row(row: Row) -> bool:
    return bool(_TOTAL_ROW.match(first_cell(row)))


def ends_table(row: Row) -> bool:
    """Blank leading cell or a Total/Sub Total line closes a table section."""
    return not first_cell(row) or is_total_row(row)


def set_once(target, attr: str, value) -> bool:
    """
    Assign `value` to `target.attr` only if the field is still empty.

    Scalar fields are first-match-wins: later rows carrying the same label
    (summary rows, repeated headers) never overwrite a captured value.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return False
    current = getattr(target, attr)
    if current is not None and current != '':
        return False
    setattr(target, attr, value.strip() if isinstance(value, str) else value)
    logger.debug(f"Captured {attr}", field_owner=type(target).__name__)
    return True


def ledger_row(row: Row, header_map: HeaderMap) -> Optional[BankTransaction]:
    """
    Build a BankTransaction from a ledger row using its header map.

    Rows whose date cell is not a date (notes, wrapped narration fragments)
    and rows without a positive deposit or withdrawal (opening-balance lines,
    zero rows) yield None and are dropped.
    """
    date_text = cell(row, header_map.get('date'))
    if not is_date_cell(date_text):
        logger.debug("Non-ledger row inside ledger skipped", first_cell=first_cell(row))
        return None

    deposits = parse_amount(cell(row, header_map.get('deposits')))
    withdrawals = parse_amount(cell(row, header_map.get('withdrawals')))
    balance_text = cell(row, header_map.get('balance'))
    tx = BankTransaction.from_columns(
        date=date_text,
        particulars=cell(row, header_map.get('particulars')),
        deposits=deposits,
        withdrawals=withdrawals,
        balance=parse_amount(balance_text) if balance_text else None,
        mode=cell(row, header_map.get('mode')) or None,
        value_date=cell(row, header_map.get('value_date')) or None,
        reference=cell(row, header_map.get('reference')) or None
    )
    if tx is None:
        logger.debug("Ledger row without amount skipped", date=date_text)
    return tx


def new_statement(bank_name: str, statement_type: str) -> ParsedBankStatement:
    return ParsedBankStatement(metadata=StatementMetadata(bank_name=bank_name, statement_type=statement_type))


def require_rows(rows: List[Row], minimum: int, bank_name: str) -> None:
    """Fail fast on content too short to be a statement. Blank rows do not count."""
    rows = non_blank_rows(rows)
    if not rows:
        raise ExtractionFailure(
            "CSV content is empty. Please provide a valid bank statement file.",
            bank_name=bank_name
        )
    if len(rows) < minimum:
        raise ExtractionFailure(
            f"CSV file is too short to be a valid bank statement. "
            f"Expected at least {minimum} rows, found {len(rows)}",
            bank_name=bank_name
        )


def finalize(statement: ParsedBankStatement, short_name: str,
             warnings: Optional[List[str]] = None) -> ExtractionResult:
    """
    Recompute metadata from the final transaction list and wrap the result.

    Raises:
        ExtractionFailure: when the scan captured neither an identifying field
            nor a single transaction
    """
    metadata = statement.metadata
    statement.metadata = StatementMetadata.from_transactions(
        statement.transactions, metadata.bank_name, metadata.statement_type
    )

    if not statement.has_identity() and not statement.transactions:
        raise ExtractionFailure(
            f"No valid {short_name} bank statement data found",
            bank_name=metadata.bank_name
        )

    logger.info(
        "Statement extracted",
        bank=metadata.bank_name,
        tx_count=statement.metadata.total_transactions,
        total_credits=statement.metadata.total_credits,
        total_debits=statement.metadata.total_debits
    )
    return ExtractionResult.ok(statement, warnings)


def flatten_transactions(transactions: List[BankTransaction], bank_name: Optional[str] = None,
                         account: str = 'uploaded_statement') -> Tuple[List[ParsedTransaction], List[str]]:
    """
    Convert ledger rows into cross-bank ParsedTransaction records.

    Transactions whose date cannot be parsed are dropped with a warning.
    """
    flattened = []
    warnings = []
    for tx in transactions:
        date = parse_date(tx.date)
        if date is None:
            failure = ValidationFailure(
                f"Transaction dropped: unparseable date '{tx.date}' for '{tx.particulars}'",
                bank_name=bank_name
            )
            warnings.append(failure.message)
            logger.warning(failure.message, bank=bank_name)
            continue
        flattened.append(ParsedTransaction(
            id=new_transaction_id('txn'),
            date=date,
            description=tx.particulars or 'Unknown Transaction',
            amount=abs(tx.amount),
            type=tx.type,
            account=account,
            merchant=extract_merchant(tx.particulars),
            reference=tx.reference,
            balance=tx.balance,
        ))
    return flattened, warnings


def flatten_statement(statement: ParsedBankStatement,
                      account: str = 'uploaded_statement') -> Tuple[List[ParsedTransaction], List[str]]:
    """Flatten a bank statement's ledger; see `flatten_transactions`."""
    return flatten_transactions(statement.transactions, statement.metadata.bank_name, account)
