from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date as dt_date

from prettytable import PrettyTable

from .records import Transaction
from .validation import format_year_month, parse_ymd


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    amount: float
    percent: float


def filter_by_date_range(
    transactions: Iterable[Transaction], start: dt_date | str, end: dt_date | str
) -> list[Transaction]:
    """Keep transactions with `start <= date <= end`."""
    start_date = parse_ymd(start)
    end_date = parse_ymd(end)
    return [t for t in transactions if start_date <= t.date <= end_date]


def filter_by_category(transactions: Iterable[Transaction], category: str) -> list[Transaction]:
    return [t for t in transactions if t.category == category]


def sum_where(
    transactions: Iterable[Transaction], predicate: Callable[[Transaction], bool]
) -> float:
    return sum((t.amount for t in transactions if predicate(t)), 0.0)


def total_expense(transactions: Iterable[Transaction]) -> float:
    return sum_where(transactions, lambda t: t.is_expense)


def total_income(transactions: Iterable[Transaction]) -> float:
    return sum_where(transactions, lambda t: not t.is_expense)


def total_amount(transactions: Iterable[Transaction], is_expense: bool) -> float:
    return sum_where(transactions, lambda t: t.is_expense == is_expense)


def net_amount(transactions: Iterable[Transaction]) -> float:
    items = list(transactions)
    return total_income(items) - total_expense(items)


def group_by_category(
    transactions: Iterable[Transaction], is_expense: bool
) -> list[CategoryTotal]:
    """Sum amounts per category for one direction, largest first.

    Ties keep first-appearance order. A zero group total yields 0.0 percent
    for every listed category.
    """
    totals: dict[str, float] = {}
    for transaction in transactions:
        if transaction.is_expense != is_expense:
            continue
        totals[transaction.category] = totals.get(transaction.category, 0.0) + transaction.amount
    grand_total = sum(totals.values(), 0.0)
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryTotal(
            category=category,
            amount=amount,
            percent=(amount / grand_total * 100.0) if grand_total > 0 else 0.0,
        )
        for category, amount in ordered
    ]


def monthly_totals(transactions: Iterable[Transaction]) -> list[tuple[str, float, float]]:
    """`(YYYY-MM, income, expense)` per month present, oldest month first."""
    aggregates: dict[str, tuple[float, float]] = {}
    for transaction in transactions:
        key = format_year_month(transaction.date.year, transaction.date.month)
        income, expense = aggregates.get(key, (0.0, 0.0))
        if transaction.is_expense:
            expense += transaction.amount
        else:
            income += transaction.amount
        aggregates[key] = (income, expense)
    return [(key, *aggregates[key]) for key in sorted(aggregates)]


def _money(value: float) -> str:
    return f"{value:.2f}" if value >= 0 else f"({abs(value):.2f})"


class Report:
    def __init__(
        self,
        transactions: Iterable[Transaction],
        currency: str = "CNY",
        period_start_date: dt_date | None = None,
        period_end_date: dt_date | None = None,
    ):
        self._transactions = list(transactions)
        self._currency = currency
        self._period_start_date = period_start_date
        self._period_end_date = period_end_date

    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def period_start_date(self) -> dt_date | None:
        return self._period_start_date

    @property
    def period_end_date(self) -> dt_date | None:
        return self._period_end_date

    @property
    def statement_title(self) -> str:
        if self._period_start_date and self._period_end_date:
            return (
                f"Transaction statement ({self._period_start_date.isoformat()} - "
                f"{self._period_end_date.isoformat()})"
            )
        return "Transaction statement"

    def total_income(self) -> float:
        return total_income(self._transactions)

    def total_expense(self) -> float:
        return total_expense(self._transactions)

    def net_amount(self) -> float:
        return net_amount(self._transactions)

    def filter_by_period_range(self, start: dt_date | str, end: dt_date | str) -> Report:
        start_date = parse_ymd(start)
        end_date = parse_ymd(end)
        if end_date < start_date:
            raise ValueError("Period end date cannot be earlier than period start date")
        return Report(
            filter_by_date_range(self._transactions, start_date, end_date),
            currency=self._currency,
            period_start_date=start_date,
            period_end_date=end_date,
        )

    def filter_by_category(self, category: str) -> Report:
        return Report(
            filter_by_category(self._transactions, category),
            currency=self._currency,
            period_start_date=self._period_start_date,
            period_end_date=self._period_end_date,
        )

    def category_breakdown(self, is_expense: bool = True) -> list[CategoryTotal]:
        return group_by_category(self._transactions, is_expense)

    def sorted_by_date(self) -> list[Transaction]:
        return sorted(self._transactions, key=lambda t: t.date)

    def monthly_income_expense_rows(
        self, year: int | None = None
    ) -> tuple[int, list[tuple[str, float, float]]]:
        """Twelve `(YYYY-MM, income, expense)` rows for `year` (latest year by default)."""
        if year is None:
            years = [t.date.year for t in self._transactions]
            year = max(years) if years else dt_date.today().year
        by_month = {
            label: (income, expense)
            for label, income, expense in monthly_totals(
                t for t in self._transactions if t.date.year == year
            )
        }
        rows: list[tuple[str, float, float]] = []
        for month in range(1, 13):
            label = format_year_month(year, month)
            income, expense = by_month.get(label, (0.0, 0.0))
            rows.append((label, income, expense))
        return year, rows

    def monthly_income_expense_table(self, year: int | None = None) -> str:
        year, rows = self.monthly_income_expense_rows(year)
        table = PrettyTable()
        table.field_names = [
            "Month",
            f"Income ({self._currency})",
            f"Expense ({self._currency})",
        ]
        total_in = 0.0
        total_out = 0.0
        for index, (month_label, income, expense) in enumerate(rows, start=1):
            total_in += income
            total_out += expense
            table.add_row(
                [month_label, f"{income:.2f}", f"{expense:.2f}"], divider=index == len(rows)
            )
        table.add_row(["TOTAL", f"{total_in:.2f}", f"{total_out:.2f}"])
        return str(table)

    def category_table(self, is_expense: bool = True) -> str:
        table = PrettyTable()
        table.field_names = ["Category", f"Amount ({self._currency})", "Share"]
        for row in self.category_breakdown(is_expense):
            table.add_row([row.category, f"{row.amount:.2f}", f"{row.percent:.1f}%"])
        return str(table)

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Date", "Type", "Category", "Description", f"Amount ({self._currency})"]
        transactions = self.sorted_by_date()
        for index, transaction in enumerate(transactions, start=1):
            table.add_row(
                [
                    transaction.date.isoformat(),
                    "Expense" if transaction.is_expense else "Income",
                    transaction.category,
                    transaction.description,
                    _money(transaction.signed_amount()),
                ],
                divider=index == len(transactions),
            )
        table.add_row(["TOTAL INCOME", "", "", "", _money(self.total_income())])
        table.add_row(["TOTAL EXPENSE", "", "", "", _money(-self.total_expense())])
        table.add_row(["NET", "", "", "", _money(self.net_amount())])
        return str(table)

    def to_csv(self, filepath: str) -> None:
        from utils.csv_utils import report_to_csv

        report_to_csv(self, filepath)
