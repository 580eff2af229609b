from datetime import date

import pytest

from domain.classifier import Classification, TransactionClassifier
from utils.import_core import (
    as_float,
    build_transaction,
    norm_key,
    parse_date_flexible,
    parse_import_row,
    resolve_direction,
)


def test_norm_key() -> None:
    assert norm_key(" Is Expense ") == "is_expense"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12.50", 12.5),
        ("1,234.00", 1234.0),
        ("¥88", 88.0),
        ("$ -3.10", -3.1),
        ("(45.00)", -45.0),
        (7, 7.0),
    ],
)
def test_as_float_accepts_statement_amounts(raw, expected) -> None:
    assert as_float(raw) == pytest.approx(expected)


def test_as_float_default_for_garbage() -> None:
    assert as_float("abc") is None
    assert as_float(None, 0.0) == 0.0
    assert as_float("nan") is None
    assert as_float("-inf", 0.0) == 0.0


def test_parse_import_row_rejects_nan_amount() -> None:
    tx, error = parse_import_row(
        {"Date": "2024-01-05", "Amount": "NaN", "Description": "weird"},
        row_label="row 2",
        classifier=TransactionClassifier(),
    )
    assert tx is None
    assert error.startswith("row 2: invalid amount")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-03-05", date(2024, 3, 5)),
        ("03/05/2024", date(2024, 3, 5)),
        ("25/03/2024", date(2024, 3, 25)),
        ("2024/03/05", date(2024, 3, 5)),
        ("05.03.2024", date(2024, 3, 5)),
    ],
)
def test_parse_date_flexible(raw, expected) -> None:
    assert parse_date_flexible(raw) == expected


def test_parse_date_flexible_rejects() -> None:
    with pytest.raises(ValueError):
        parse_date_flexible("")
    with pytest.raises(ValueError):
        parse_date_flexible("March 5th")


def test_resolve_direction_order() -> None:
    income = Classification("Salary", False, True)
    expense = Classification("Food", True, True)
    assert resolve_direction(10, False, expense) is False
    assert resolve_direction(-10, None, income) is True
    assert resolve_direction(10, None, income) is False
    assert resolve_direction(10, None, expense) is True


def test_resolve_direction_unmatched_follows_sign() -> None:
    unmatched = TransactionClassifier().classify("Transfer from Alice", 500.0)
    assert not unmatched.matched
    assert resolve_direction(500.0, None, unmatched) is False
    assert resolve_direction(-500.0, None, unmatched) is True
    assert resolve_direction(0.0, None, unmatched) is False


def test_build_transaction_unmatched_pair_keeps_sign() -> None:
    classifier = TransactionClassifier()
    incoming = build_transaction("2024-01-05", 500.0, "Transfer from Alice", classifier=classifier)
    outgoing = build_transaction("2024-01-05", -500.0, "Transfer to Alice", classifier=classifier)
    assert incoming.is_expense is False
    assert outgoing.is_expense is True
    assert incoming.amount == outgoing.amount == 500.0
    assert incoming.category == outgoing.category == "Other"


def test_build_transaction_normalizes_amount() -> None:
    tx = build_transaction(
        "2024-01-02", -19.9, "Supermarket run", classifier=TransactionClassifier(), notes="  "
    )
    assert tx.amount == pytest.approx(19.9)
    assert tx.is_expense
    assert tx.category == "Food"
    assert tx.notes is None


def test_parse_import_row_reports_errors() -> None:
    classifier = TransactionClassifier()
    tx, error = parse_import_row({"Amount": "5"}, row_label="row 3", classifier=classifier)
    assert tx is None
    assert error == "row 3: missing required field 'date'"

    tx, error = parse_import_row(
        {"Date": "2024-01-01", "Amount": "n/a"}, row_label="row 4", classifier=classifier
    )
    assert tx is None
    assert "invalid amount" in error


def test_parse_import_row_explicit_columns() -> None:
    row = {
        "DATE": "2024-01-01",
        "amount": "200",
        "Description": "Lunch money from mom",
        "Category": "Gift",
        "Type": "income",
        "Participant": "Mom",
    }
    tx, error = parse_import_row(row, row_label="row 2", classifier=TransactionClassifier())
    assert error is None
    assert tx.category == "Gift"
    assert tx.is_expense is False
    assert tx.participant == "Mom"
