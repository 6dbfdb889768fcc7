"""
Unit tests for the HDFC statement extractor

Tests cover:
- Preamble scalars and the customer block
- The Date / Narration / ... / Closing Balance ledger with DD/MM/YY dates
- The STATEMENT SUMMARY footer
"""
import pytest

from src.common.models import CREDIT, DEBIT
from src.statement_engine.banks import hdfc
from src.statement_engine.exceptions import ExtractionFailure
from src.statement_engine.sections import flatten_statement


@pytest.fixture
def statement(hdfc_full):
    result = hdfc.extract(hdfc_full)
    assert result.success is True
    return result.data


class TestPreamble:

    def test_customer(self, statement):
        customer = statement.customer_info
        assert customer.name == 'MR. RAHUL SHARMA'
        assert customer.address == 'FLAT 12 GREEN PARK, BANGALORE 560001'
        assert customer.customer_id == '12345678'
        assert customer.email == 'rahul@example.com'
        assert customer.phone == '08012345678'
        assert customer.nomination == 'Registered'
        assert customer.statement_period == '01/01/2024 - 31/01/2024'

    def test_account(self, statement):
        account = statement.primary_account()
        assert account.account_number == '50100123456789'
        assert account.ifsc_code == 'HDFC0001234'
        assert account.micr_code == '560240002'
        assert account.branch == 'MG ROAD'
        assert account.account_open_date == '15/06/2018'
        assert account.status == 'Regular'


class TestLedger:

    def test_transactions(self, statement):
        assert len(statement.transactions) == 3
        swiggy, salary, atm = statement.transactions
        assert swiggy.type == DEBIT
        assert swiggy.amount == 450.00
        assert swiggy.reference == '0000401234567890'
        assert swiggy.value_date == '01/01/24'
        assert salary.type == CREDIT
        assert salary.amount == 75000.00
        assert atm.balance == 119550.00

    def test_metadata(self, statement):
        assert statement.metadata.total_credits == 75000.00
        assert statement.metadata.total_debits == 5450.00
        assert statement.metadata.date_range.start.year == 2024

    def test_flattened_transactions(self, statement):
        transactions, warnings = flatten_statement(statement)
        assert warnings == []
        assert [t.date.day for t in transactions] == [1, 2, 5]
        assert transactions[0].merchant == 'Swiggy'
        assert all(t.amount > 0 for t in transactions)


class TestSummary:

    def test_footer(self, statement):
        summary = statement.account_summary
        assert summary.opening_balance == 50000.00
        assert summary.debit_count == 2
        assert summary.credit_count == 1
        assert summary.total_debits == 5450.00
        assert summary.total_credits == 75000.00
        assert summary.closing_balance == 119550.00

    def test_statement_without_footer(self, hdfc_full):
        content = hdfc_full.split("STATEMENT SUMMARY")[0]
        result = hdfc.extract(content)
        assert len(result.data.transactions) == 3
        assert result.data.account_summary.opening_balance is None


class TestEdgeCases:

    def test_ledger_header_only(self):
        content = (
            "HDFC BANK Ltd.\n"
            "MR. RAHUL SHARMA\n"
            ",,,,Account No : 50100123456789\n"
            "Date,Narration,Chq./Ref.No.,Value Dt,Withdrawal Amt.,Deposit Amt.,Closing Balance\n"
        )
        result = hdfc.extract(content)
        assert result.success is True
        assert result.data.transactions == []
        assert result.data.metadata.total_transactions == 0

    def test_empty(self):
        with pytest.raises(ExtractionFailure):
            hdfc.extract("")

    def test_quoted_narration_spanning_lines(self, hdfc_full):
        content = hdfc_full.replace(
            "02/01/24,NEFT CR-ACME CORP SALARY JAN,",
            '02/01/24,"NEFT CR-ACME CORP\nSALARY JAN",'
        )
        statement = hdfc.extract(content).data

        assert len(statement.transactions) == 3
        assert statement.transactions[1].particulars == 'NEFT CR-ACME CORP SALARY JAN'
        assert statement.metadata.total_credits == 75000.00

    def test_note_row_inside_ledger_is_skipped(self, hdfc_full):
        content = hdfc_full.replace(
            "05/01/24,ATM WDL",
            "Cheque book issued,,,,,,\n05/01/24,ATM WDL"
        )
        statement = hdfc.extract(content).data

        assert len(statement.transactions) == 3
        assert statement.metadata.total_debits == 5450.00
