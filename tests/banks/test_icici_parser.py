"""
Unit tests for the ICICI statement extractor

Tests cover:
- Every section of the detailed statement export
- Zero-amount ledger rows (B/F) being dropped
- Metadata derived from the final ledger
- First-match-wins for scalar fields
- Table terminators: Total rows, blank rows, the rewards stop row
- Too-short and unidentifiable content
"""
import pytest

from src.common.models import CREDIT, DEBIT
from src.statement_engine.banks import icici
from src.statement_engine.exceptions import ExtractionFailure


@pytest.fixture
def statement(icici_full):
    result = icici.extract(icici_full)
    assert result.success is True
    assert result.errors == []
    return result.data


# =============================================================================
# TEST: SECTIONS
# =============================================================================

class TestFullStatement:

    def test_customer_info(self, statement):
        assert statement.customer_info.name == 'MR. JOHN DOE'
        assert statement.customer_info.customer_id == 'CUST123'
        assert '123 MAIN STREET' in statement.customer_info.address
        assert 'CITY, STATE 12345' in statement.customer_info.address

    def test_account_summary(self, statement):
        summary = statement.account_summary
        assert summary.statement_date == 'as on 31/12/2024'
        assert summary.savings_balance == 50000.00
        assert summary.linked_fd_balance == 100000.00
        assert summary.total_savings_balance == 150000.00
        assert summary.total_deposits == 150000.00

    def test_account_details(self, statement):
        assert len(statement.account_details) == 2
        assert statement.account_details[0].account_type == 'Savings'
        assert statement.account_details[0].account_number == '1234567890'
        assert statement.account_details[0].balance == 50000.00
        assert statement.account_details[1].account_type == 'Current'

    def test_fixed_deposits(self, statement):
        assert len(statement.fixed_deposits) == 2
        fd = statement.fixed_deposits[0]
        assert fd.deposit_no == 'FD001'
        assert fd.open_date == '01/01/2024'
        assert fd.amount == 50000.00
        assert fd.roi == 7.5
        assert fd.maturity_date == '01/01/2025'
        assert statement.fixed_deposits[1].roi == 7.0

    def test_transactions_drop_zero_rows(self, statement):
        assert len(statement.transactions) == 3
        salary, atm, upi = statement.transactions
        assert salary.date == '02/01/2024'
        assert salary.type == CREDIT
        assert salary.amount == 25000
        assert salary.mode == 'NEFT'
        assert atm.type == DEBIT
        assert atm.amount == 5000
        assert upi.balance == 68000.00

    def test_reward_points(self, statement):
        assert len(statement.reward_points) == 1
        assert statement.reward_points[0].reward_points == 1500
        assert statement.reward_points[0].tier == 'GOLD'

    def test_account_info(self, statement):
        assert len(statement.account_info) == 1
        info = statement.account_info[0]
        assert info.ifsc_code == 'ICIC0001234'
        assert info.branch == 'MAIN BRANCH'
        assert info.status == 'ACTIVE'


# =============================================================================
# TEST: METADATA
# =============================================================================

class TestMetadata:

    def test_totals_match_transactions(self, statement):
        metadata = statement.metadata
        assert metadata.bank_name == 'ICICI Bank'
        assert metadata.total_transactions == len(statement.transactions)
        assert metadata.total_credits == sum(t.amount for t in statement.transactions if t.type == CREDIT)
        assert metadata.total_debits == sum(t.amount for t in statement.transactions if t.type == DEBIT)
        assert metadata.total_credits == 25000
        assert metadata.total_debits == 7000

    def test_date_range(self, statement):
        assert statement.metadata.date_range.start.day == 2
        assert statement.metadata.date_range.end.day == 4

    def test_extraction_is_repeatable(self, icici_full):
        first = icici.extract(icici_full).data.metadata
        second = icici.extract(icici_full).data.metadata
        assert (first.total_transactions, first.total_credits, first.total_debits) == \
               (second.total_transactions, second.total_credits, second.total_debits)


# =============================================================================
# TEST: EDGE CASES
# =============================================================================

class TestEdgeCases:

    def test_minimal_ledger(self, icici_minimal):
        result = icici.extract(icici_minimal)

        assert result.success is True
        assert len(result.data.transactions) == 1
        assert result.data.transactions[0].type == CREDIT
        assert result.data.transactions[0].amount == 25000

    def test_first_customer_id_wins(self, icici_full):
        content = icici_full.replace("as on 31/12/2024", "as on 31/12/2024\nCustomer ID: OTHER999")
        result = icici.extract(content)
        assert result.data.customer_info.customer_id == 'CUST123'

    def test_repeated_ledger_header_is_skipped(self, icici_minimal):
        content = icici_minimal + (
            "DATE,MODE,PARTICULARS,DEPOSITS,WITHDRAWALS,BALANCE\n"
            "03/01/2024,UPI,Grocery,0,1200,73800.00\n"
        )
        result = icici.extract(content)
        assert len(result.data.transactions) == 2

    def test_empty_content(self):
        with pytest.raises(ExtractionFailure, match="CSV content is empty"):
            icici.extract("")

    def test_too_short(self):
        with pytest.raises(ExtractionFailure, match="Expected at least 3 rows, found 2"):
            icici.extract("ICICI BANK\nDATE,MODE\n")

    def test_nothing_identifying(self):
        content = "ICICI BANK\nSome heading\nAnother heading\n"
        with pytest.raises(ExtractionFailure, match="No valid ICICI bank statement data found"):
            icici.extract(content)

    def test_parser_reports_failures_as_result(self):
        result = icici.PARSER.extract("ICICI BANK\nDATE,MODE\n")
        assert result.success is False
        assert "too short" in result.errors[0]


class TestRemarksLayout:

    def test_internet_banking_export(self):
        content = (
            "ICICI Bank\n"
            "Account Number,000401234567\n"
            "S No.,Value Date,Transaction Date,Cheque Number,Transaction Remarks,"
            "Withdrawal Amount (INR ),Deposit Amount (INR ),Balance (INR )\n"
            "1,01/03/2024,01/03/2024,-,UPI/412345678901/Swiggy/paytm/SWIGGY,250.00,0.00,9750.00\n"
            "2,02/03/2024,02/03/2024,-,NEFT-ACME CORP-SALARY,0.00,50000.00,59750.00\n"
        )
        assert icici.detect(content) is True

        result = icici.extract(content)
        transactions = result.data.transactions
        assert len(transactions) == 2
        assert transactions[0].type == DEBIT
        assert transactions[0].particulars.startswith('UPI/')
        assert transactions[1].amount == 50000.00


# =============================================================================
# TEST: TABLE BOUNDARIES
# =============================================================================

class TestTableTerminators:

    @pytest.mark.parametrize("label", ["Total", "SUB TOTAL"])
    def test_total_row_ends_fixed_deposits(self, icici_full, label):
        fd002 = "FD002,01/02/2024,50000.00,7.0,01/02/2025,50000.00\n"
        content = icici_full.replace(fd002, fd002 + (
            f"{label},,100000.00,,,100000.00\n"
            "FD003,01/03/2024,10000.00,6.5,01/03/2025,10000.00\n"
        ))
        statement = icici.extract(content).data

        assert [fd.deposit_no for fd in statement.fixed_deposits] == ['FD001', 'FD002']
        assert len(statement.transactions) == 3

    @pytest.mark.parametrize("label", ["Total", "SUB TOTAL"])
    def test_total_row_ends_account_details(self, icici_full, label):
        current = "Current,0987654321,25000.00\n"
        content = icici_full.replace(current, current + f"{label},,75000.00\nOverdraft,5555000011,100.00\n")
        statement = icici.extract(content).data

        assert [d.account_type for d in statement.account_details] == ['Savings', 'Current']
        assert len(statement.fixed_deposits) == 2

    def test_blank_row_ends_account_details(self, icici_full):
        content = icici_full.replace(
            "Current,0987654321,25000.00\n\n",
            "Current,0987654321,25000.00\n\nStatement of Transactions in Savings Account Number 1234567890\n"
        )
        statement = icici.extract(content).data

        assert len(statement.account_details) == 2
        assert statement.account_details[-1].account_number == '0987654321'
        assert len(statement.fixed_deposits) == 2

    def test_other_information_row_ends_rewards(self, icici_full):
        reward = "1234567890,1500,31/12/2025,GOLD\n"
        content = icici_full.replace(reward, reward + (
            "Account Related Other Information\n"
            "9999999999,10,31/12/2026,SILVER\n"
        ))
        statement = icici.extract(content).data

        assert len(statement.reward_points) == 1
        assert statement.reward_points[0].tier == 'GOLD'
        assert len(statement.account_info) == 1

    def test_footer_after_blank_row_is_not_account_info(self, icici_full):
        content = icici_full + "\nThis is a computer generated statement and needs no signature\n"
        statement = icici.extract(content).data

        assert len(statement.account_info) == 1
        assert statement.account_info[0].status == 'ACTIVE'

    def test_quoted_narration_spanning_lines(self):
        content = (
            "ICICI Bank\n"
            "Detailed Statement\n"
            "DATE,MODE,PARTICULARS,DEPOSITS,WITHDRAWALS,BALANCE\n"
            '02/01/2024,NEFT,"Salary\nCredit ACME",25000,0,75000.00\n'
        )
        statement = icici.extract(content).data

        assert len(statement.transactions) == 1
        assert statement.transactions[0].particulars == 'Salary Credit ACME'
        assert statement.metadata.total_credits == 25000

    def test_note_row_inside_ledger_is_skipped(self, icici_minimal):
        content = icici_minimal + (
            "Cheque returned charges apply,,,,,\n"
            "03/01/2024,UPI,Grocery,0,1200,73800.00\n"
        )
        statement = icici.extract(content).data

        assert len(statement.transactions) == 2
        assert statement.metadata.total_debits == 1200

    def test_blank_rows_do_not_count_towards_minimum(self):
        with pytest.raises(ExtractionFailure, match="Expected at least 3 rows, found 2"):
            icici.extract("ICICI BANK\n\n\nDATE,MODE\n")
