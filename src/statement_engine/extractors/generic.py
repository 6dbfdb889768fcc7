"""
Generic Fallback Extractor

Format-agnostic extraction used when no registered bank parser claims the
content. Strategies run in a fixed priority order and the first one that
yields at least one transaction wins; results are never merged.

1. standard_columns   header row with a date column and a signed amount column
2. labeled_columns    bank-style deposit/withdrawal columns, header searched
                      within the first `header_scan_rows` rows
3. pattern_matching   one date token and one amount token per line
4. amount_extraction  every decimal-looking token, dated now (low confidence)
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from src.common.logging_config import get_logger
from src.common.models import CREDIT, DEBIT, ParsedTransaction
from src.common.settings import EngineSettings
from ..coercers import clean_text, new_transaction_id, parse_amount, parse_date
from ..exceptions import ValidationFailure
from ..postprocessing import extract_merchant
from ..sections import build_header_map, flatten_transactions, is_total_row, ledger_row
from ..tokenizer import Row, cell, non_blank_rows, tokenize

logger = get_logger(__name__)

StrategyOutput = Tuple[List[ParsedTransaction], List[str]]

STANDARD_COLUMNS = {
    'date': ('TRANSACTION DATE', 'TXN DATE', 'POSTING DATE', 'DATE'),
    'amount': ('AMOUNT', 'AMT', 'VALUE'),
    'description': ('DESCRIPTION', 'MEMO', 'PAYEE', 'NARRATION', 'PARTICULARS', 'DETAILS'),
    'type': ('TYPE', 'CR/DR', 'DR/CR'),
    'balance': ('BALANCE',),
    'reference': ('REFERENCE', 'REF'),
    'merchant': ('MERCHANT', 'VENDOR'),
}

LABELED_COLUMNS = {
    'value_date': ('VALUE DATE', 'VALUE DT'),
    'date': ('TRANSACTION DATE', 'TXN DATE', 'DATE'),
    'particulars': ('PARTICULARS', 'NARRATION', 'DESCRIPTION', 'REMARKS', 'DETAILS'),
    'mode': ('MODE',),
    'reference': ('CHEQUE', 'CHQ', 'REF'),
    'withdrawals': ('WITHDRAWAL', 'DEBIT'),
    'deposits': ('DEPOSIT', 'CREDIT'),
    'balance': ('BALANCE',),
}

LABELED_VOCABULARY = (
    'DEPOSIT', 'WITHDRAWAL', 'PARTICULARS', 'NARRATION', 'MODE', 'BALANCE', 'DEBIT', 'CREDIT'
)

# Columns that make a header "labeled" rather than standard
_SPLIT_AMOUNT_LABELS = ('WITHDRAWAL', 'DEPOSIT', 'DEBIT', 'CREDIT')

AMOUNT_TOKEN = re.compile(r"(-\s?)?(?<![\d.])\d[\d,]*\.\d{2}(?![\d])")
DATE_TOKEN = re.compile(r"(?<!\d)\d{1,2}[/-]\d{1,2}[/-]\d{2,4}(?!\d)")
_DEBIT_WORDS = re.compile(r"\b(DR|DEBIT|WITHDRAWAL|WDL|PAID)\b", re.IGNORECASE)
_CREDIT_WORDS = re.compile(r"\b(CR|CREDIT|DEPOSIT|RECEIVED)\b", re.IGNORECASE)

LOW_CONFIDENCE_WARNING = (
    "Low-confidence extraction: amounts were collected without dates; "
    "transaction dates are set to the extraction time and should be reviewed"
)


@dataclass
class GenericResult:
    """Outcome of the strategy cascade."""
    transactions: List[ParsedTransaction] = field(default_factory=list)
    strategy: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.transactions)


def _direction(text: str, signed: bool) -> str:
    if signed or _DEBIT_WORDS.search(text):
        return DEBIT
    return CREDIT


def _drop(message: str, warnings: List[str]) -> None:
    failure = ValidationFailure(message)
    warnings.append(failure.message)
    logger.warning(failure.message)


class GenericFallbackExtractor:
    """
    Strategy cascade for unrecognised statement formats.

    Each strategy is a method returning (transactions, warnings); the
    cascade evaluates them one at a time and stops at the first non-empty
    result.
    """

    STRATEGIES = ('standard_columns', 'labeled_columns', 'pattern_matching', 'amount_extraction')
    TEXT_STRATEGIES = ('pattern_matching', 'amount_extraction')

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def extract(self, content: str, text_only: bool = False) -> GenericResult:
        """
        Run the cascade.

        Args:
            content: Raw statement text
            text_only: Skip the column-based strategies (non-tabular inputs)

        Returns:
            GenericResult from the first strategy that produced transactions,
            or an empty result carrying the warnings of every attempt
        """
        rows = non_blank_rows(tokenize(content))
        strategies = self.TEXT_STRATEGIES if text_only else self.STRATEGIES
        warnings: List[str] = []

        for name in strategies:
            strategy = getattr(self, f"_{name}")
            transactions, strategy_warnings = strategy(content, rows)
            logger.debug(f"Generic strategy {name} finished", strategy=name, tx_count=len(transactions))
            if transactions:
                logger.info(f"Generic extraction succeeded with {name}", strategy=name, tx_count=len(transactions))
                return GenericResult(transactions=transactions, strategy=name, warnings=strategy_warnings)
            warnings.extend(strategy_warnings)

        logger.info("Generic extraction found no transactions", strategies=list(strategies))
        return GenericResult(warnings=warnings)

    # ========================================================================
    # 1. Standard columns
    # ========================================================================

    def _standard_columns(self, content: str, rows: List[Row]) -> StrategyOutput:
        if len(rows) < 2:
            return [], []
        header = rows[0]
        header_upper = " ".join(header).upper()
        if any(label in header_upper for label in _SPLIT_AMOUNT_LABELS):
            return [], []

        columns = build_header_map(header, STANDARD_COLUMNS)
        if 'date' not in columns or 'amount' not in columns:
            return [], []

        transactions = []
        warnings = []
        for row in rows[1:]:
            date_text = cell(row, columns['date'])
            amount_text = cell(row, columns['amount'])
            if not date_text or not amount_text:
                continue
            amount = parse_amount(amount_text)
            if amount == 0:
                continue
            date = parse_date(date_text)
            if date is None:
                _drop(f"Transaction dropped: unparseable date '{date_text}'", warnings)
                continue

            tx_type = DEBIT if amount < 0 else CREDIT
            type_text = cell(row, columns.get('type')).upper()
            if type_text in ('DR', 'DEBIT', 'D'):
                tx_type = DEBIT
            elif type_text in ('CR', 'CREDIT', 'C'):
                tx_type = CREDIT

            description = cell(row, columns.get('description')) or 'Unknown Transaction'
            balance_text = cell(row, columns.get('balance'))
            transactions.append(ParsedTransaction(
                id=new_transaction_id('txn'),
                date=date,
                description=description,
                amount=abs(amount),
                type=tx_type,
                merchant=cell(row, columns.get('merchant')) or extract_merchant(description),
                reference=cell(row, columns.get('reference')) or None,
                balance=parse_amount(balance_text) if balance_text else None,
            ))
        return transactions, warnings

    # ========================================================================
    # 2. Labeled bank-statement columns
    # ========================================================================

    def _find_labeled_header(self, rows: List[Row]) -> Optional[int]:
        for index, row in enumerate(rows[:self.settings.header_scan_rows]):
            text = " ".join(row).upper()
            hits = sum(1 for word in LABELED_VOCABULARY if word in text)
            has_amount_column = any(label in text for label in _SPLIT_AMOUNT_LABELS)
            if hits >= 2 and has_amount_column and 'DATE' in text:
                return index
        return None

    def _labeled_columns(self, content: str, rows: List[Row]) -> StrategyOutput:
        header_index = self._find_labeled_header(rows)
        if header_index is None:
            return [], []

        columns = build_header_map(rows[header_index], LABELED_COLUMNS)
        if 'date' not in columns or not ('deposits' in columns or 'withdrawals' in columns):
            return [], []
        logger.debug("Labeled header found", row=header_index, columns=sorted(columns))

        ledger = []
        for row in rows[header_index + 1:]:
            if is_total_row(row):
                break
            tx = ledger_row(row, columns)
            if tx is not None:
                ledger.append(tx)
        return flatten_transactions(ledger)

    # ========================================================================
    # 3. Pattern matching
    # ========================================================================

    def _pattern_matching(self, content: str, rows: List[Row]) -> StrategyOutput:
        transactions = []
        warnings = []
        for line in content.splitlines():
            if not line.strip():
                continue
            date_match = DATE_TOKEN.search(line)
            if not date_match:
                continue
            remainder = line[:date_match.start()] + " " + line[date_match.end():]
            amount_match = AMOUNT_TOKEN.search(remainder)
            if not amount_match:
                continue

            amount = parse_amount(amount_match.group(0).replace(' ', ''))
            if amount == 0:
                continue
            date = parse_date(date_match.group(0))
            if date is None:
                _drop(f"Transaction dropped: unparseable date '{date_match.group(0)}'", warnings)
                continue

            rest = remainder[:amount_match.start()] + " " + remainder[amount_match.end():]
            description = clean_text(re.sub(r"[^\w\s]", " ", rest)) or 'Unknown Transaction'
            transactions.append(ParsedTransaction(
                id=new_transaction_id('txn'),
                date=date,
                description=description,
                amount=abs(amount),
                type=_direction(rest, amount < 0),
                merchant=extract_merchant(description),
            ))
        return transactions, warnings

    # ========================================================================
    # 4. Amount extraction (last resort)
    # ========================================================================

    def _amount_extraction(self, content: str, rows: List[Row]) -> StrategyOutput:
        transactions = []
        now = datetime.now()
        for line in content.splitlines():
            for match in AMOUNT_TOKEN.finditer(line):
                amount = parse_amount(match.group(0).replace(' ', ''))
                if amount == 0:
                    continue
                context = line[:match.start()] + " " + line[match.end():]
                description = clean_text(re.sub(r"[^\w\s]", " ", context)) or 'Unidentified amount'
                transactions.append(ParsedTransaction(
                    id=new_transaction_id('txn'),
                    date=now,
                    description=description,
                    amount=abs(amount),
                    type=_direction(context, amount < 0),
                ))
        if transactions:
            logger.warning(LOW_CONFIDENCE_WARNING, tx_count=len(transactions))
            return transactions, [LOW_CONFIDENCE_WARNING]
        return [], []
