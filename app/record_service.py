from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import date as dt_date
from typing import Any, Generic, TypeVar

from domain.classifier import TransactionClassifier
from domain.errors import DomainError
from domain.records import Budget, SavingGoal, SpecialDate, Transaction
from domain import reports
from domain.settings import Settings
from domain.validation import add_months, month_bounds, parse_ymd
from infrastructure.repositories import RecordRepository
from utils.import_core import ImportSummary, build_transaction, parse_import_row

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordService(Generic[T]):
    """CRUD and date queries over one record collection.

    Reads always go back to storage. Mutations report success as a bool;
    storage failures are logged and reported as False.
    """

    newest_first = False

    def __init__(self, repository: RecordRepository[T]) -> None:
        self._repository = repository

    @property
    def repository(self) -> RecordRepository[T]:
        return self._repository

    @staticmethod
    def record_date(record: T) -> dt_date:
        return record.date

    def get_all(self) -> list[T]:
        return sorted(
            self._repository.load_all(), key=self.record_date, reverse=self.newest_first
        )

    def get_by_id(self, record_id: str) -> T | None:
        for record in self._repository.load_all():
            if record.id == record_id:
                return record
        return None

    def get_for_date_range(self, start: dt_date | str, end: dt_date | str) -> list[T]:
        start_date = parse_ymd(start)
        end_date = parse_ymd(end)
        return [r for r in self.get_all() if start_date <= self.record_date(r) <= end_date]

    def get_for_month(self, year: int, month: int) -> list[T]:
        start, end = month_bounds(year, month)
        return self.get_for_date_range(start, end)

    def get_for_current_month(self, today: dt_date | None = None) -> list[T]:
        today = today or dt_date.today()
        return self.get_for_month(today.year, today.month)

    def add(self, record: T) -> bool:
        return self._guarded("add", record.id, lambda: self._repository.save(record) or True)

    def update(self, record: T) -> bool:
        updated = self._guarded("update", record.id, lambda: self._repository.replace(record))
        if not updated:
            logger.warning("Update skipped, record id=%s not found", record.id)
        return updated

    def delete(self, record: T | str) -> bool:
        record_id = record if isinstance(record, str) else record.id
        deleted = self._guarded("delete", record_id, lambda: self._repository.delete(record_id))
        if not deleted:
            logger.warning("Delete skipped, record id=%s not found", record_id)
        return deleted

    def save_all(self, records: Iterable[T]) -> bool:
        items = list(records)
        return self._guarded(
            "save_all", f"{len(items)} records", lambda: self._repository.replace_all(items) or True
        )

    def create_backup(self) -> bool:
        return self._repository.backup()

    def _guarded(self, action: str, label: str, operation: Callable[[], Any]) -> bool:
        try:
            result = bool(operation())
        except DomainError:
            logger.exception("Failed to %s record %s", action, label)
            return False
        if result:
            logger.info("Record %s: %s", action, label)
        return result


class TransactionService(RecordService[Transaction]):
    newest_first = True

    def __init__(
        self,
        repository: RecordRepository[Transaction],
        classifier: TransactionClassifier | None = None,
    ) -> None:
        super().__init__(repository)
        self._classifier = classifier or TransactionClassifier()

    @property
    def classifier(self) -> TransactionClassifier:
        return self._classifier

    def get_for_category(self, category: str) -> list[Transaction]:
        return reports.filter_by_category(self.get_all(), category)

    def get_for_category_and_date_range(
        self, category: str, start: dt_date | str, end: dt_date | str
    ) -> list[Transaction]:
        return reports.filter_by_category(
            reports.filter_by_date_range(self.get_all(), start, end), category
        )

    def get_for_financial_month(
        self, settings: Settings, today: dt_date | None = None
    ) -> list[Transaction]:
        start, end = settings.financial_month_range(today)
        return [t for t in self.get_all() if start <= t.date < end]

    def get_for_financial_month_of(self, settings: Settings, year: int, month: int) -> list[Transaction]:
        start, end = settings.financial_month_bounds(year, month)
        return self.get_for_date_range(start, end)

    def get_for_previous_month(self, today: dt_date | None = None) -> list[Transaction]:
        today = today or dt_date.today()
        year, month = add_months(today.year, today.month, -1)
        return self.get_for_month(year, month)

    @staticmethod
    def total_amount(transactions: Iterable[Transaction], is_expense: bool) -> float:
        return reports.total_amount(transactions, is_expense)

    @staticmethod
    def sum_where(
        transactions: Iterable[Transaction], predicate: Callable[[Transaction], bool]
    ) -> float:
        return reports.sum_where(transactions, predicate)

    def total_expense(self, transactions: Iterable[Transaction] | None = None) -> float:
        return reports.total_expense(self.get_all() if transactions is None else transactions)

    def total_income(self, transactions: Iterable[Transaction] | None = None) -> float:
        return reports.total_income(self.get_all() if transactions is None else transactions)

    def net_amount(self, transactions: Iterable[Transaction] | None = None) -> float:
        return reports.net_amount(self.get_all() if transactions is None else transactions)

    def suggest_category(self, description: str, amount: float = 0.0) -> str:
        return self._classifier.classify(description, amount).category

    def import_row(
        self,
        date: dt_date | str,
        amount: float,
        description: str,
        category: str | None = None,
        is_expense: bool | None = None,
        participant: str | None = None,
        notes: str | None = None,
    ) -> Transaction | None:
        """Create and store one transaction from raw statement values.

        The stored amount is non-negative; a negative raw amount marks an
        expense. A missing category comes from the classifier.
        """
        try:
            transaction = build_transaction(
                date,
                amount,
                description,
                classifier=self._classifier,
                category=category,
                is_expense=is_expense,
                participant=participant,
                notes=notes,
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Rejected imported row (%s, %s, %r): %s", date, amount, description, exc)
            return None
        if not self.add(transaction):
            return None
        return transaction

    def import_rows(self, rows: Iterable[dict[str, Any]]) -> ImportSummary:
        """Parse and bulk-append rows. Returns (imported, skipped, errors)."""
        parsed: list[Transaction] = []
        errors: list[str] = []
        for index, row in enumerate(rows, start=1):
            transaction, error = parse_import_row(
                row, row_label=f"row {index}", classifier=self._classifier
            )
            if error:
                errors.append(error)
                continue
            if transaction is not None:
                parsed.append(transaction)
        if parsed:
            try:
                self._repository.save_many(parsed)
            except DomainError:
                logger.exception("Failed to store %s imported transactions", len(parsed))
                return 0, len(parsed) + len(errors), errors + ["storage write failed"]
        for error in errors:
            logger.warning("Import skipped %s", error)
        logger.info("Imported %s transactions, skipped %s", len(parsed), len(errors))
        return len(parsed), len(errors), errors

    def export_by_month(self, directory: str):
        from utils.csv_utils import export_transactions_by_month

        return export_transactions_by_month(self.get_all(), directory)


class SpecialDateService(RecordService[SpecialDate]):
    def get_for_next_month(self, today: dt_date | None = None) -> list[SpecialDate]:
        today = today or dt_date.today()
        year, month = add_months(today.year, today.month, 1)
        return self.get_for_month(year, month)

    def find_by_date(self, day: dt_date | str) -> list[SpecialDate]:
        wanted = parse_ymd(day)
        return [d for d in self.get_all() if d.date == wanted]


class BudgetService(RecordService[Budget]):
    @staticmethod
    def record_date(record: Budget) -> dt_date:
        return record.start_date

    def get_active_on(self, day: dt_date | str) -> list[Budget]:
        wanted = parse_ymd(day)
        return [b for b in self.get_all() if b.covers(wanted)]


class SavingGoalService(RecordService[SavingGoal]):
    @staticmethod
    def record_date(record: SavingGoal) -> dt_date:
        return record.start_date

    def get_active(self) -> list[SavingGoal]:
        return [g for g in self.get_all() if g.is_active and not g.is_completed()]

    def add_contribution(self, goal_id: str, amount: float) -> bool:
        goal = self.get_by_id(goal_id)
        if goal is None:
            logger.warning("Contribution skipped, saving goal id=%s not found", goal_id)
            return False
        return self.update(goal.with_contribution(amount))
