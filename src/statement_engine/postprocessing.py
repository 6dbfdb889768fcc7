"""
Transaction Post-Processing

Enrichment and clean-up applied to the winning extraction attempt:
merchant extraction (used while flattening), keyword categorization,
duplicate merging and amount validation. The pipeline applies the last three
in a fixed order: categorize -> merge duplicates -> validate amounts.
"""
import re
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from src.common.logging_config import get_logger
from src.common.models import ParsedTransaction, ParsingOptions, UNCATEGORIZED
from src.common.settings import EngineSettings

logger = get_logger(__name__)


# Narration shapes seen in Indian bank ledgers. First match wins.
MERCHANT_PATTERNS = [
    re.compile(r"UPI/[^/]+/[^/]*/[^/]*/([^/]+)"),
    re.compile(r"UPI/([^/]+)/"),
    re.compile(r"UPI-([^-]+)-"),
    re.compile(r"CC\s+\d+X+\d+\s+AUTOPAY\s+([^-]+)"),
    re.compile(r"ACH\s+C-\s*([^-\d]+)"),
    re.compile(r"NEFT[^\w]*([^-/\s][^-/]*?)\s*[-/]"),
    re.compile(r"IMPS[^\w]*([^-/\s][^-/]*?)\s*[-/]"),
    re.compile(r"POS\s+([^/\s]+)"),
    re.compile(r"CARD\s+([^/\s]+)"),
    re.compile(r"ATM\s+([^/\s]+)"),
    re.compile(r"SALARY\s+([^-]+)"),
    re.compile(r"([A-Z][A-Z\s]{3,20})\s+(?:LTD|LIMITED|SERVICES|INDUSTRIES)\b"),
]

_NOISE_WORDS = {'UPI', 'POS', 'ATM', 'NEFT', 'IMPS', 'CARD', 'BANK', 'ACH', 'LTD', 'SPL', 'INT', 'DIV'}

CATEGORY_PATTERNS: Dict[str, List[re.Pattern]] = {
    'Salary': [re.compile(p, re.IGNORECASE) for p in (
        r"\bsalary\b", r"\bsal credit\b", r"\bpayroll\b"
    )],
    'Investment': [re.compile(p, re.IGNORECASE) for p in (
        r"dividend", r"\binterest\b", r"mutual fund", r"\bsip\b", r"\bach c-", r"zerodha", r"groww"
    )],
    'Cash Withdrawal': [re.compile(p, re.IGNORECASE) for p in (
        r"\batm\b", r"cash withdrawal", r"\bcash wdl\b"
    )],
    'Food & Dining': [re.compile(p, re.IGNORECASE) for p in (
        r"restaurant", r"\bcafe\b", r"swiggy", r"zomato", r"dominos", r"pizza", r"burger",
        r"\bkfc\b", r"mcdonalds", r"grocery", r"supermarket", r"bigbasket", r"blinkit"
    )],
    'Transport': [re.compile(p, re.IGNORECASE) for p in (
        r"\buber\b", r"\bola\b", r"rapido", r"\bfuel\b", r"petrol", r"diesel", r"\bmetro\b",
        r"irctc", r"parking", r"fastag", r"\btoll\b"
    )],
    'Shopping': [re.compile(p, re.IGNORECASE) for p in (
        r"amazon", r"flipkart", r"myntra", r"ajio", r"meesho", r"nykaa", r"dmart"
    )],
    'Entertainment': [re.compile(p, re.IGNORECASE) for p in (
        r"netflix", r"spotify", r"hotstar", r"prime video", r"bookmyshow", r"\bmovie\b", r"pvr"
    )],
    'Healthcare': [re.compile(p, re.IGNORECASE) for p in (
        r"pharmacy", r"hospital", r"medical", r"\bclinic\b", r"apollo", r"\bdental\b", r"\bdoctor\b"
    )],
    'Utilities': [re.compile(p, re.IGNORECASE) for p in (
        r"electricity", r"\bwater\b", r"broadband", r"internet", r"airtel", r"\bjio\b",
        r"\bvi\b", r"mobile recharge", r"\bgas\b", r"torrent power"
    )],
    'Bills & Payments': [re.compile(p, re.IGNORECASE) for p in (
        r"\brent\b", r"\bemi\b", r"\bloan\b", r"credit card", r"autopay", r"insurance",
        r"subscription", r"membership"
    )],
}

SUSPICIOUS_ROUND_THRESHOLD = 1000


def _clean_merchant(name: str) -> Optional[str]:
    cleaned = re.sub(r"\s+", " ", name).strip(" -/.,")
    return cleaned.title() if cleaned else None


def extract_merchant(description: str) -> Optional[str]:
    """
    Pull a merchant/counterparty name out of a ledger narration.

    Falls back to the first meaningful word when no known shape matches.
    """
    if not description:
        return None

    text = description.strip()
    for pattern in MERCHANT_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return _clean_merchant(match.group(1))

    words = [
        w for w in re.split(r"[\s/\-]+", text)
        if len(w) > 2
        and w.upper() not in _NOISE_WORDS
        and not w.isdigit()
        and not re.fullmatch(r"X+", w, re.IGNORECASE)
    ]
    if len(words) > 1:
        return _clean_merchant(words[0])
    return None


def categorize_description(description: str, merchant: Optional[str] = None) -> Optional[str]:
    """Category for a description, or None when no table entry matches."""
    haystack = f"{description or ''} {merchant or ''}"
    for category, patterns in CATEGORY_PATTERNS.items():
        if any(p.search(haystack) for p in patterns):
            return category
    return None


def categorize(transactions: List[ParsedTransaction]) -> List[ParsedTransaction]:
    """
    Assign keyword categories.

    Only transactions still marked uncategorized are touched, so categories
    supplied upstream (e.g. by the AI extractor) are kept.
    """
    result = []
    for tx in transactions:
        if tx.category == UNCATEGORIZED:
            category = categorize_description(tx.description, tx.merchant)
            if category:
                tx = replace(tx, category=category)
        result.append(tx)
    return result


def merge_duplicates(transactions: List[ParsedTransaction]) -> List[ParsedTransaction]:
    """
    Collapse transactions sharing (calendar date, amount, description).

    The first occurrence is kept; input order is otherwise preserved.
    """
    seen = set()
    merged = []
    for tx in transactions:
        key = (tx.date.date(), round(tx.amount, 2), tx.description.strip().lower())
        if key in seen:
            logger.debug("Duplicate transaction merged", description=tx.description, amount=tx.amount)
            continue
        seen.add(key)
        merged.append(tx)
    return merged


def validate_amounts(transactions: List[ParsedTransaction],
                     max_amount: float) -> Tuple[List[ParsedTransaction], List[str]]:
    """
    Drop transactions outside (0, max_amount].

    Large round amounts are logged for review but kept.

    Returns:
        (kept transactions, warnings for every dropped one)
    """
    kept = []
    warnings = []
    for tx in transactions:
        if tx.amount <= 0 or tx.amount > max_amount:
            warnings.append(
                f"Transaction dropped: amount {tx.amount:.2f} outside allowed range "
                f"(0, {max_amount:.2f}] for '{tx.description}'"
            )
            logger.warning("Out-of-range amount dropped", amount=tx.amount, max_amount=max_amount)
            continue
        if tx.amount > SUSPICIOUS_ROUND_THRESHOLD and tx.amount % 100 == 0:
            logger.info("Round amount flagged for review", amount=tx.amount, description=tx.description)
        kept.append(tx)
    return kept, warnings


def apply_post_processing(transactions: List[ParsedTransaction], options: ParsingOptions,
                          settings: EngineSettings) -> Tuple[List[ParsedTransaction], List[str]]:
    """Run the enabled post-processing steps in their fixed order."""
    warnings: List[str] = []

    if options.auto_categorize:
        transactions = categorize(transactions)

    if options.merge_duplicates:
        before = len(transactions)
        transactions = merge_duplicates(transactions)
        if len(transactions) < before:
            warnings.append(f"Merged {before - len(transactions)} duplicate transaction(s)")

    if options.validate_amounts:
        transactions, dropped = validate_amounts(transactions, settings.max_transaction_amount)
        warnings.extend(dropped)

    return transactions, warnings
