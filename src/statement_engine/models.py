"""
Statement Record Types

The structured record produced by a bank-specific extractor. One
ParsedBankStatement is created per extraction call and handed to the caller
inside an ExtractionResult.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.common.models import CREDIT, DEBIT, DateRange
from .coercers import parse_date


@dataclass
class CustomerInfo:
    name: Optional[str] = None
    customer_id: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    nomination: Optional[str] = None
    statement_period: Optional[str] = None


@dataclass
class AccountSummary:
    statement_date: Optional[str] = None
    savings_balance: Optional[float] = None
    linked_fd_balance: Optional[float] = None
    total_savings_balance: Optional[float] = None
    total_deposits: Optional[float] = None
    opening_balance: Optional[float] = None
    closing_balance: Optional[float] = None
    total_debits: Optional[float] = None
    total_credits: Optional[float] = None
    debit_count: Optional[int] = None
    credit_count: Optional[int] = None


@dataclass
class AccountDetail:
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    balance: Optional[float] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class FixedDeposit:
    deposit_no: str
    open_date: Optional[str] = None
    amount: Optional[float] = None
    roi: Optional[float] = None
    maturity_date: Optional[str] = None
    maturity_amount: Optional[float] = None
    balance: Optional[float] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class BankTransaction:
    """
    One ledger row as printed by the bank.

    `amount` is the deposit when positive, otherwise the withdrawal; `type`
    follows the same choice. Rows without a positive amount are never built
    (see `from_columns`).
    """
    date: str
    particulars: str
    type: str
    amount: float
    deposits: float = 0.0
    withdrawals: float = 0.0
    balance: Optional[float] = None
    mode: Optional[str] = None
    value_date: Optional[str] = None
    reference: Optional[str] = None

    @classmethod
    def from_columns(cls, date: str, particulars: str, deposits: float, withdrawals: float,
                     **kwargs) -> Optional["BankTransaction"]:
        """
        Build a transaction from the deposit/withdrawal pair of a ledger row.

        Returns None when neither column holds a positive value.
        """
        if deposits > 0:
            tx_type, amount = CREDIT, deposits
        elif withdrawals > 0:
            tx_type, amount = DEBIT, withdrawals
        else:
            return None
        return cls(
            date=date,
            particulars=particulars,
            type=tx_type,
            amount=amount,
            deposits=max(deposits, 0.0),
            withdrawals=max(withdrawals, 0.0),
            **kwargs
        )


@dataclass
class RewardPoint:
    account_number: Optional[str] = None
    reward_points: Optional[int] = None
    expiry_date: Optional[str] = None
    tier: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class AccountInfo:
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    micr_code: Optional[str] = None
    branch: Optional[str] = None
    branch_address: Optional[str] = None
    status: Optional[str] = None
    nominee: Optional[str] = None
    account_open_date: Optional[str] = None
    currency: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class StatementMetadata:
    """Totals derived from the final transaction list. Never authored directly."""
    bank_name: str
    statement_type: str = 'Bank Statement'
    parsing_date: datetime = field(default_factory=datetime.now)
    total_transactions: int = 0
    total_credits: float = 0.0
    total_debits: float = 0.0
    date_range: DateRange = field(default_factory=DateRange)

    @classmethod
    def from_transactions(cls, transactions: List[BankTransaction], bank_name: str,
                          statement_type: str = 'Bank Statement') -> "StatementMetadata":
        # Unparseable dates are left out of the range rather than guessed
        dates = [d for d in (parse_date(t.date) for t in transactions) if d is not None]
        date_range = DateRange(start=min(dates), end=max(dates)) if dates else DateRange()
        return cls(
            bank_name=bank_name,
            statement_type=statement_type,
            total_transactions=len(transactions),
            total_credits=sum(t.amount for t in transactions if t.type == CREDIT),
            total_debits=sum(t.amount for t in transactions if t.type == DEBIT),
            date_range=date_range,
        )


@dataclass
class ParsedBankStatement:
    metadata: StatementMetadata
    customer_info: CustomerInfo = field(default_factory=CustomerInfo)
    account_summary: AccountSummary = field(default_factory=AccountSummary)
    account_details: List[AccountDetail] = field(default_factory=list)
    fixed_deposits: List[FixedDeposit] = field(default_factory=list)
    transactions: List[BankTransaction] = field(default_factory=list)
    reward_points: List[RewardPoint] = field(default_factory=list)
    account_info: List[AccountInfo] = field(default_factory=list)

    def primary_account(self) -> AccountInfo:
        """The first account-info record, created on first use."""
        if not self.account_info:
            self.account_info.append(AccountInfo())
        return self.account_info[0]

    def has_identity(self) -> bool:
        """True when at least one identifying field was captured."""
        account_numbers = [a.account_number for a in self.account_info if a.account_number]
        return bool(self.customer_info.name or self.customer_info.customer_id or account_numbers)


@dataclass
class ExtractionResult:
    """
    Result of a bank-specific extraction (the rich form).

    `errors` non-empty always means `success` is False.
    """
    success: bool
    data: Optional[ParsedBankStatement] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.errors:
            self.success = False

    @classmethod
    def ok(cls, data: ParsedBankStatement, warnings: Optional[List[str]] = None) -> "ExtractionResult":
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def error(cls, errors: List[str], warnings: Optional[List[str]] = None) -> "ExtractionResult":
        return cls(success=False, data=None, errors=list(errors), warnings=list(warnings or []))

    def add_warning(self, warning: str) -> None:
        if warning not in self.warnings:
            self.warnings.append(warning)

    def add_error(self, error: str) -> None:
        if error not in self.errors:
            self.errors.append(error)
        self.success = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'data': asdict(self.data) if self.data else None,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }
