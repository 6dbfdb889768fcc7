from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import pandas as pd

CREDIT = 'credit'
DEBIT = 'debit'
UNCATEGORIZED = 'uncategorized'


@dataclass
class ParsedTransaction:
    """
    Flattened, cross-bank representation of a transaction.
    Every extraction path (AI, bank extractor, generic fallback) ends up here.

    `amount` is never negative; direction is carried only by `type`.
    """
    id: str
    date: datetime
    description: str
    amount: float
    type: str  # 'credit' or 'debit'
    category: str = UNCATEGORIZED
    account: str = 'uploaded_statement'
    merchant: Optional[str] = None
    reference: Optional[str] = None
    balance: Optional[float] = None

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date,
            'description': self.description,
            'amount': self.amount,
            'type': self.type,
            'category': self.category,
            'account': self.account,
            'merchant': self.merchant,
            'reference': self.reference,
            'balance': self.balance
        }


@dataclass
class DateRange:
    start: Optional[datetime] = None
    end: Optional[datetime] = None


@dataclass
class ParsingResult:
    """
    Outcome of one extraction call in the flattened form.

    `errors` is only populated when every attempt failed; degraded but
    successful extractions report through `warnings`.
    """
    success: bool
    transactions: List[ParsedTransaction] = field(default_factory=list)
    total_amount: float = 0.0
    date_range: DateRange = field(default_factory=DateRange)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    method: str = 'none'
    bank_name: Optional[str] = None

    def __post_init__(self):
        if self.errors:
            self.success = False

    @classmethod
    def from_transactions(cls, transactions: List[ParsedTransaction], **kwargs) -> "ParsingResult":
        """Build a successful result, deriving the total and the date range."""
        date_range = DateRange()
        if transactions:
            dates = [t.date for t in transactions]
            date_range = DateRange(start=min(dates), end=max(dates))
        return cls(
            success=True,
            transactions=list(transactions),
            total_amount=sum(t.amount for t in transactions),
            date_range=date_range,
            **kwargs
        )

    @classmethod
    def failure(cls, errors: List[str], warnings: Optional[List[str]] = None, **kwargs) -> "ParsingResult":
        return cls(success=False, errors=list(errors), warnings=list(warnings or []), **kwargs)

    def to_dataframe(self) -> pd.DataFrame:
        """Transactions as a DataFrame, one row per transaction."""
        columns = ['id', 'date', 'description', 'amount', 'type', 'category',
                   'account', 'merchant', 'reference', 'balance']
        if not self.transactions:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame([t.to_dict() for t in self.transactions], columns=columns)


@dataclass
class ParsingOptions:
    """Per-call switches for the extraction pipeline."""
    use_ai: bool = True
    auto_categorize: bool = False
    merge_duplicates: bool = False
    validate_amounts: bool = False
    filename: str = 'bank_statement.csv'
