import csv
import os

from domain.records import Transaction
from domain.reports import Report
from utils.csv_utils import (
    TRANSACTION_HEADERS,
    export_transactions_by_month,
    export_transactions_to_csv,
    import_transactions_from_csv,
    report_to_csv,
)


def _transactions() -> list[Transaction]:
    return [
        Transaction(date="2024-02-03", amount=50.0, description="Lunch, with team", category="Food"),
        Transaction(date="2024-01-01", amount=3000.0, category="Salary", is_expense=False),
        Transaction(date="2024-02-10", amount=20.0, category="Transportation", participant="Me"),
    ]


def _read_rows(path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_report_to_csv_statement(tmp_path) -> None:
    path = tmp_path / "report.csv"
    report_to_csv(Report(_transactions()), str(path))
    rows = _read_rows(path)
    assert rows[0][0] == "Transaction statement"
    assert rows[1] == ["Date", "Type", "Category", "Description", "Amount"]
    assert rows[2] == ["2024-01-01", "Income", "Salary", "", "3000.00"]
    assert rows[3] == ["2024-02-03", "Expense", "Food", "Lunch, with team", "-50.00"]
    assert rows[-3] == ["TOTAL INCOME", "", "", "", "3000.00"]
    assert rows[-2] == ["TOTAL EXPENSE", "", "", "", "70.00"]
    assert rows[-1] == ["NET", "", "", "", "2930.00"]


def test_report_to_csv_through_report(tmp_path) -> None:
    path = tmp_path / "period.csv"
    Report(_transactions()).filter_by_period_range("2024-02-01", "2024-02-29").to_csv(str(path))
    rows = _read_rows(path)
    assert rows[0][0] == "Transaction statement (2024-02-01 - 2024-02-29)"
    assert len(rows) == 2 + 2 + 3


def test_export_transactions_to_csv(tmp_path) -> None:
    path = tmp_path / "all.csv"
    assert export_transactions_to_csv(_transactions(), str(path)) == 3
    rows = _read_rows(path)
    assert rows[0] == TRANSACTION_HEADERS
    assert [r[1] for r in rows[1:]] == ["2024-01-01", "2024-02-03", "2024-02-10"]
    assert rows[3][5] == "Me"
    assert rows[1][7] == "false"


def test_export_by_month(tmp_path) -> None:
    result = export_transactions_by_month(_transactions(), str(tmp_path / "out"))
    assert result.exported == 3
    assert sorted(result.monthly_files) == ["2024-01", "2024-02"]
    assert os.path.basename(result.monthly_files["2024-02"]) == "transactions_2024-02.csv"
    assert len(_read_rows(result.monthly_files["2024-02"])) == 3
    assert os.path.basename(result.all_file) == "transactions_all.csv"


def test_import_bank_statement(tmp_path) -> None:
    path = tmp_path / "bank.csv"
    path.write_text(
        "\ufeffDate,Amount,Description\n"
        "2024-03-01,-35.20,Supermarket\n"
        "2024-03-02,4200,Monthly salary\n"
        "2024-03-03,,Broken row\n"
        "2024-13-01,10,Bad date\n",
        encoding="utf-8",
    )
    transactions, (imported, skipped, errors) = import_transactions_from_csv(str(path))
    assert imported == 2
    assert skipped == 2
    assert errors[0].startswith("row 4")
    assert errors[1].startswith("row 5")
    food, salary = transactions
    assert (food.category, food.is_expense, food.amount) == ("Food", True, 35.2)
    assert (salary.category, salary.is_expense) == ("Salary", False)


def test_exported_file_imports_back(tmp_path) -> None:
    path = tmp_path / "all.csv"
    export_transactions_to_csv(_transactions(), str(path))
    transactions, (imported, skipped, _) = import_transactions_from_csv(str(path))
    assert (imported, skipped) == (3, 0)
    salary = next(t for t in transactions if t.category == "Salary")
    assert salary.is_expense is False
    assert salary.amount == 3000.0
