from __future__ import annotations

import csv
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field

from domain.classifier import TransactionClassifier
from domain.records import Transaction
from domain.reports import Report
from utils.import_core import ImportSummary, parse_import_row

logger = logging.getLogger(__name__)

REPORT_HEADERS = ["Date", "Type", "Category", "Description", "Amount"]
TRANSACTION_HEADERS = [
    "ID",
    "Date",
    "Amount",
    "Description",
    "Category",
    "Participant",
    "Notes",
    "IsExpense",
]


@dataclass
class ExportResult:
    directory: str
    monthly_files: dict[str, str] = field(default_factory=dict)
    all_file: str | None = None
    exported: int = 0


def _transaction_row(transaction: Transaction) -> list[str]:
    return [
        transaction.id,
        transaction.date.isoformat(),
        f"{transaction.amount:.2f}",
        transaction.description,
        transaction.category,
        transaction.participant or "",
        transaction.notes or "",
        "true" if transaction.is_expense else "false",
    ]


def report_to_csv(report: Report, filepath: str) -> None:
    """Statement view of a report, with income/expense/net footer rows."""
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([report.statement_title, "", "", "", ""])
        writer.writerow(REPORT_HEADERS)
        for transaction in report.sorted_by_date():
            writer.writerow(
                [
                    transaction.date.isoformat(),
                    "Expense" if transaction.is_expense else "Income",
                    transaction.category,
                    transaction.description,
                    f"{transaction.signed_amount():.2f}",
                ]
            )
        writer.writerow(["TOTAL INCOME", "", "", "", f"{report.total_income():.2f}"])
        writer.writerow(["TOTAL EXPENSE", "", "", "", f"{report.total_expense():.2f}"])
        writer.writerow(["NET", "", "", "", f"{report.net_amount():.2f}"])


def export_transactions_to_csv(transactions: Iterable[Transaction], filepath: str) -> int:
    count = 0
    with open(filepath, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(TRANSACTION_HEADERS)
        for transaction in sorted(transactions, key=lambda t: t.date):
            writer.writerow(_transaction_row(transaction))
            count += 1
    return count


def export_transactions_by_month(
    transactions: Iterable[Transaction], directory: str
) -> ExportResult:
    """One `transactions_YYYY-MM.csv` per month present, plus `transactions_all.csv`."""
    items = sorted(transactions, key=lambda t: t.date)
    os.makedirs(directory, exist_ok=True)
    result = ExportResult(directory=directory)

    by_month: dict[str, list[Transaction]] = {}
    for transaction in items:
        by_month.setdefault(transaction.date.strftime("%Y-%m"), []).append(transaction)

    for month, month_items in by_month.items():
        path = os.path.join(directory, f"transactions_{month}.csv")
        export_transactions_to_csv(month_items, path)
        result.monthly_files[month] = path

    all_path = os.path.join(directory, "transactions_all.csv")
    result.exported = export_transactions_to_csv(items, all_path)
    result.all_file = all_path
    logger.info(
        "Exported %s transactions into %s monthly files under %s",
        result.exported,
        len(result.monthly_files),
        directory,
    )
    return result


def import_transactions_from_csv(
    filepath: str, classifier: TransactionClassifier | None = None
) -> tuple[list[Transaction], ImportSummary]:
    """Read a bank-style CSV with date/amount/description columns.

    Column names are matched case-insensitively; rows failing validation are
    reported in the summary and left out.
    """
    classifier = classifier or TransactionClassifier()
    transactions: list[Transaction] = []
    errors: list[str] = []
    with open(filepath, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        for index, row in enumerate(reader, start=2):
            transaction, error = parse_import_row(
                row, row_label=f"row {index}", classifier=classifier
            )
            if error:
                errors.append(error)
            elif transaction is not None:
                transactions.append(transaction)
    for error in errors:
        logger.warning("CSV import skipped %s", error)
    return transactions, (len(transactions), len(errors), errors)
