"""
Shared statement fixtures.

Each fixture is the text of a small but complete export for one bank, laid
out the way the bank's CSV download lays it out.
"""
import pytest


ICICI_FULL = """ICICI BANK LIMITED
MR. JOHN DOE
123 MAIN STREET
CITY, STATE 12345

STATEMENT SUMMARY
Customer ID: CUST123
as on 31/12/2024

RELATIONSHIP,BALANCE
Savings Account Balance,50000.00
Fixed Deposits linked,100000.00
Total Savings Balance,150000.00
TOTAL DEPOSITS,150000.00

ACCOUNT TYPE,ACCOUNT NUMBER,BALANCE
Savings,1234567890,50000.00
Current,0987654321,25000.00

DEPOSIT NO.,OPEN DATE,DEP. AMT. #,ROI%,MAT. DATE,BALANCE *
FD001,01/01/2024,50000.00,7.5,01/01/2025,50000.00
FD002,01/02/2024,50000.00,7.0,01/02/2025,50000.00

DATE,MODE,PARTICULARS,DEPOSITS,WITHDRAWALS,BALANCE
01/01/2024,B/F,Balance Forward,0,0,50000.00
02/01/2024,NEFT,Salary Credit,25000,0,75000.00
03/01/2024,ATM,ATM Withdrawal,0,5000,70000.00
04/01/2024,UPI,UPI Payment,0,2000,68000.00

SAVINGS ACCOUNT NUMBER,REWARD POINTS,EXPIRY DATE,TIER
1234567890,1500,31/12/2025,GOLD

ACCOUNT TYPE, ACCOUNT NUMBER,IFSC CODE,BRANCH,STATUS
Savings,1234567890,ICIC0001234,MAIN BRANCH,ACTIVE
"""

ICICI_MINIMAL = """ICICI Bank
Detailed Statement
DATE,MODE,PARTICULARS,DEPOSITS,WITHDRAWALS,BALANCE
01/01/2024,B/F,Balance Forward,0,0,50000.00
02/01/2024,NEFT,Salary Credit,25000,0,75000.00
"""

HDFC_FULL = """HDFC BANK Ltd.
MR. RAHUL SHARMA,,,,Account Branch : MG ROAD
FLAT 12 GREEN PARK,,,,Address : MG ROAD BANGALORE
BANGALORE 560001,,,,City : BANGALORE
JOINT HOLDERS :,,,,Phone no. : 08012345678
,,,,Email : rahul@example.com
,,,,Cust ID : 12345678
,,,,Account No : 50100123456789
,,,,A/C Open Date : 15/06/2018
,,,,Account Status : Regular
,,,,RTGS/NEFT IFSC : HDFC0001234
,,,,MICR : 560240002
Nomination : Registered,,,,Statement From : 01/01/2024 To : 31/01/2024
Date,Narration,Chq./Ref.No.,Value Dt,Withdrawal Amt.,Deposit Amt.,Closing Balance
********,********,********,********,********,********,********
01/01/24,UPI-SWIGGY-swiggy@icici-401234567890,0000401234567890,01/01/24,450.00,,49550.00
02/01/24,NEFT CR-ACME CORP SALARY JAN,N002240012345,02/01/24,,75000.00,124550.00
05/01/24,ATM WDL-MG ROAD BANGALORE,0000000012,05/01/24,5000.00,,119550.00
********,********,********,********,********,********,********
STATEMENT SUMMARY :-
Opening Balance,Dr Count,Cr Count,Debits,Credits,Closing Bal
50000.00,2,1,5450.00,75000.00,119550.00
"""

IDFC_FULL = """IDFC FIRST Bank
Statement of Account
CUSTOMER ID,5012345678,,ACCOUNT BRANCH,Koramangala
CUSTOMER NAME,PRIYA NAIR,,BRANCH ADDRESS,80 Feet Road,Bangalore
ACCOUNT NUMBER,10012345678,,IFSC,IDFB0080123
STATEMENT PERIOD,01-Aug-2025 to 31-Aug-2025,,MICR,560751002
COMMUNICATION ADDRESS,22 LAKE VIEW,INDIRANAGAR,,ACCOUNT OPENING DATE,10-Jan-2020
EMAIL,priya@example.com,,ACCOUNT STATUS,ACTIVE
OPENING BALANCE,TOTAL DEBIT,TOTAL CREDIT,CLOSING BALANCE
50000.00,12450.00,75000.00,112550.00
TOTAL NUMBER OF DEBITS,2,TOTAL NUMBER OF CREDITS,1
Transaction Date,Value Date,Particulars,Cheque No.,Debit,Credit,Balance
02-Aug-2025,02-Aug-2025,UPI/123456789012/swiggy@ybl/Swiggy Order/SWIGGY,,450.00,,49550.00
05-Aug-2025,05-Aug-2025,NEFT/ACME CORP/SALARY AUG,,,75000.00,124550.00
10-Aug-2025,10-Aug-2025,ATM CASH WITHDRAWAL MG ROAD,000123,12000.00,,112550.00
End of Statement
"""

AMBIGUOUS_HDFC_IDFC = """HDFC Bank / IDFC FIRST Bank joint statement
Date,Narration,Chq./Ref.No.,Value Dt,Withdrawal Amt.,Deposit Amt.,Closing Balance
01/01/24,NEFT CR-ACME,N001,01/01/24,,1000.00,1000.00
"""

NO_TOKENS = """Hello there
This document has no dates and no money in it
Just words
"""


@pytest.fixture
def icici_full():
    return ICICI_FULL


@pytest.fixture
def icici_minimal():
    return ICICI_MINIMAL


@pytest.fixture
def hdfc_full():
    return HDFC_FULL


@pytest.fixture
def idfc_full():
    return IDFC_FULL


@pytest.fixture
def ambiguous_hdfc_idfc():
    return AMBIGUOUS_HDFC_IDFC


@pytest.fixture
def no_tokens():
    return NO_TOKENS
