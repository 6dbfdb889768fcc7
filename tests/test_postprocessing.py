"""
Unit tests for transaction post-processing

Tests cover:
- Merchant extraction from ledger narrations
- Keyword categorization (upstream categories kept)
- Duplicate merging (first occurrence kept)
- Amount validation
- Step switches in apply_post_processing
"""
import pytest
from datetime import datetime

from src.common.models import CREDIT, DEBIT, UNCATEGORIZED, ParsedTransaction, ParsingOptions
from src.common.settings import EngineSettings
from src.statement_engine.postprocessing import (
    apply_post_processing, categorize, categorize_description, extract_merchant,
    merge_duplicates, validate_amounts
)


def tx(description, amount=100.0, date=None, category=UNCATEGORIZED, tx_id=None, tx_type=DEBIT):
    return ParsedTransaction(
        id=tx_id or f"t_{description}_{amount}",
        date=date or datetime(2024, 1, 15),
        description=description,
        amount=amount,
        type=tx_type,
        category=category,
    )


# =============================================================================
# TEST: MERCHANT EXTRACTION
# =============================================================================

class TestExtractMerchant:

    @pytest.mark.parametrize("description,expected", [
        ("UPI/123456789012/Payment/user@okaxis/SWIGGY", "Swiggy"),
        ("NEFT-ACME CORP-N123456789", "Acme Corp"),
        ("SALARY JANUARY", "January"),
        ("Grocery Store", "Grocery"),
    ])
    def test_known_shapes(self, description, expected):
        assert extract_merchant(description) == expected

    @pytest.mark.parametrize("description", ["", None, "Misc", "UPI 1234"])
    def test_nothing_meaningful(self, description):
        assert extract_merchant(description) is None


# =============================================================================
# TEST: CATEGORIZATION
# =============================================================================

class TestCategorize:

    @pytest.mark.parametrize("description,expected", [
        ("Salary January", "Salary"),
        ("INTEREST CREDIT", "Investment"),
        ("ATM Withdrawal", "Cash Withdrawal"),
        ("UPI/Zomato order", "Food & Dining"),
        ("NETFLIX.COM", "Entertainment"),
        ("Electricity bill", "Utilities"),
        ("Home loan EMI", "Bills & Payments"),
    ])
    def test_table(self, description, expected):
        assert categorize_description(description) == expected

    def test_no_match(self):
        assert categorize_description("Transfer to self") is None

    def test_merchant_is_considered(self):
        assert categorize_description("POS 4411", merchant="Amazon") == 'Shopping'

    def test_existing_category_kept(self):
        result = categorize([tx("Swiggy order", category='Personal'), tx("Swiggy order")])

        assert result[0].category == 'Personal'
        assert result[1].category == 'Food & Dining'

    def test_unmatched_stays_uncategorized(self):
        assert categorize([tx("Transfer to self")])[0].category == UNCATEGORIZED


# =============================================================================
# TEST: DUPLICATES
# =============================================================================

class TestMergeDuplicates:

    def test_same_day_amount_description(self):
        first = tx("Coffee", 4.5, datetime(2024, 1, 15, 9), tx_id='first')
        second = tx(" coffee ", 4.5, datetime(2024, 1, 15, 18), tx_id='second')

        merged = merge_duplicates([first, second])

        assert [t.id for t in merged] == ['first']

    def test_different_amounts_kept(self):
        merged = merge_duplicates([tx("Coffee", 4.5), tx("Coffee", 5.0)])
        assert len(merged) == 2

    def test_order_preserved(self):
        items = [tx("B"), tx("A"), tx("B"), tx("C")]
        assert [t.description for t in merge_duplicates(items)] == ["B", "A", "C"]


# =============================================================================
# TEST: AMOUNT VALIDATION
# =============================================================================

class TestValidateAmounts:

    def test_bounds(self):
        kept, warnings = validate_amounts(
            [tx("zero", 0.0), tx("max", 1000.0), tx("over", 1000.01), tx("ok", 50.0)], max_amount=1000.0
        )

        assert [t.description for t in kept] == ["max", "ok"]
        assert len(warnings) == 2
        assert "'over'" in warnings[1]

    def test_round_amounts_kept(self):
        kept, warnings = validate_amounts([tx("Rent", 20000.0)], max_amount=1_000_000.0)
        assert len(kept) == 1
        assert warnings == []


# =============================================================================
# TEST: STEP SWITCHES
# =============================================================================

class TestApplyPostProcessing:

    def test_all_off(self):
        items = [tx("Swiggy"), tx("Swiggy")]
        result, warnings = apply_post_processing(items, ParsingOptions(), EngineSettings())

        assert len(result) == 2
        assert warnings == []
        assert result[0].category == UNCATEGORIZED

    def test_all_on(self):
        items = [tx("Swiggy"), tx("Swiggy"), tx("Lottery", 2_000_000.0, tx_type=CREDIT)]
        options = ParsingOptions(auto_categorize=True, merge_duplicates=True, validate_amounts=True)

        result, warnings = apply_post_processing(items, options, EngineSettings())

        assert len(result) == 1
        assert result[0].category == 'Food & Dining'
        assert warnings[0] == "Merged 1 duplicate transaction(s)"
        assert "outside allowed range" in warnings[1]

    def test_limit_comes_from_settings(self):
        options = ParsingOptions(validate_amounts=True)
        result, _ = apply_post_processing([tx("Rent", 600.0)], options, EngineSettings(max_transaction_amount=500.0))
        assert result == []
