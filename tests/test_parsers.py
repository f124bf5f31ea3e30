# tests/test_parsers.py

from decimal import Decimal

from ledger.routes_import import SAMPLE_QIF
from ledger.services.parsers import parse_csv, parse_qif, parse_qif_amount, read_csv_headers


def test_parse_qif_sample():
    records = parse_qif(SAMPLE_QIF)

    assert len(records) == 3
    first = records[0]
    assert first.date == "12/1/2024"
    assert first.amount == Decimal("-50.00")
    assert first.description == "Grocery Store"
    assert first.category == "Food"
    assert first.cleared == "X"
    assert first.reference == "Check 1001"
    assert records[1].amount == Decimal("2500.00")
    assert records[1].reference is None


def test_parse_qif_joins_payee_and_memo():
    records = parse_qif("D1/2/2024\nT-5\nPCoffee Shop\nMMorning latte\n^")
    assert records[0].description == "Coffee Shop - Morning latte"


def test_parse_qif_memo_alone_is_description():
    records = parse_qif("D1/2/2024\nT-5\nMJust a memo\n^")
    assert records[0].description == "Just a memo"


def test_parse_qif_drops_entries_without_date_or_amount():
    content = "T-10.00\nPNo date\n^\nD1/2/2024\nPNo amount\n^\nD1/3/2024\nT7\n^"
    records = parse_qif(content)
    assert len(records) == 1
    assert records[0].date == "1/3/2024"


def test_parse_qif_keeps_trailing_entry_without_terminator():
    records = parse_qif("D1/2/2024\nT12.00\nPLast one")
    assert len(records) == 1
    assert records[0].description == "Last one"


def test_parse_qif_invalid_amount_is_nan():
    records = parse_qif("D1/2/2024\nTabc\n^")
    assert len(records) == 1
    assert records[0].amount.is_nan()
    assert records[0].as_raw()["amount"] is None


def test_parse_qif_handles_crlf_and_ignores_unknown_tags():
    records = parse_qif("!Type:Bank\r\nD1/2/2024\r\nT3\r\nXsomething\r\n^\r\n")
    assert len(records) == 1
    assert records[0].amount == Decimal("3")


def test_parse_qif_amount_strips_thousands_separator():
    assert parse_qif_amount("1,234.56") == Decimal("1234.56")
    assert parse_qif_amount("oops").is_nan()


def test_parse_csv_rows_and_quotes():
    content = 'Date,Description,Amount\n12/1/2024,"Grocery Store",-50.00\n\n12/2/2024,"Payroll",2500\n'
    rows = parse_csv(content)

    assert rows == [
        {"Date": "12/1/2024", "Description": "Grocery Store", "Amount": "-50.00"},
        {"Date": "12/2/2024", "Description": "Payroll", "Amount": "2500"},
    ]


def test_parse_csv_truncates_short_rows():
    rows = parse_csv("a,b,c\n1,2")
    assert rows == [{"a": "1", "b": "2"}]


def test_parse_csv_needs_header_and_data():
    assert parse_csv("Date,Amount") == []
    assert parse_csv("") == []


def test_parse_csv_custom_delimiter():
    rows = parse_csv("Date;Amount\n1/2/2024;5", delimiter=";")
    assert rows == [{"Date": "1/2/2024", "Amount": "5"}]


def test_read_csv_headers():
    assert read_csv_headers(' "Date" , Amount \n1,2') == ["Date", "Amount"]
    assert read_csv_headers("") == []
