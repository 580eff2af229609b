from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import date as dt_date
from datetime import timedelta

from app.record_service import TransactionService
from app.settings_service import SettingsService
from config import ASSISTANT_TIMEOUT_SECONDS
from domain.classifier import Classification
from domain.records import Transaction
from domain.reports import CategoryTotal, group_by_category, total_expense, total_income
from domain.validation import add_months, format_year_month

logger = logging.getLogger(__name__)

SCOPE_MONTH = "month"
SCOPE_ALL = "all"

CLOSING_INSTRUCTION = (
    "Based on the financial data above, give the user a specific, practical and helpful answer."
)
DISABLED_MESSAGE = "The assistant is disabled in settings."
TIMEOUT_MESSAGE = "The assistant did not answer within {timeout:.0f} seconds. Please try again later."
FAILURE_MESSAGE = "The assistant is unavailable right now: {error}"


@dataclass(frozen=True)
class FinancialSnapshot:
    scope_label: str
    income: float
    expense: float
    net: float
    breakdown: tuple[CategoryTotal, ...]
    income_breakdown: tuple[CategoryTotal, ...] = ()


def build_snapshot(transactions: Iterable[Transaction], scope_label: str) -> FinancialSnapshot:
    items = list(transactions)
    income = total_income(items)
    expense = total_expense(items)
    return FinancialSnapshot(
        scope_label=scope_label,
        income=income,
        expense=expense,
        net=income - expense,
        breakdown=tuple(group_by_category(items, is_expense=True)),
        income_breakdown=tuple(group_by_category(items, is_expense=False)),
    )


def _breakdown_lines(title: str, rows: Iterable[CategoryTotal]) -> list[str]:
    rows = list(rows)
    if not rows:
        return []
    lines = [title]
    lines.extend(f"- {row.category}: {row.amount:.2f} ({row.percent:.1f}%)" for row in rows)
    lines.append("")
    return lines


def render_brief(snapshot: FinancialSnapshot) -> str:
    lines = [
        "Here is a summary of the user's financial data:",
        "",
        f"{snapshot.scope_label}:",
        f"- Total income: {snapshot.income:.2f}",
        f"- Total expense: {snapshot.expense:.2f}",
        f"- Net balance: {snapshot.net:.2f}",
        "",
    ]
    lines.extend(_breakdown_lines("Expense by category:", snapshot.breakdown))
    return "\n".join(lines)


def compose_prompt(snapshot: FinancialSnapshot, question: str | None) -> str:
    return (
        f"{render_brief(snapshot)}\n"
        f"User question: {(question or '').strip()}\n\n"
        f"{CLOSING_INSTRUCTION}"
    )


class AssistantService:
    """Builds finance-aware prompts and runs them through `generate`.

    `generate` is any callable taking a prompt and returning text. Its call
    is bounded by `timeout`; every failure becomes a readable message.
    """

    def __init__(
        self,
        transactions: TransactionService,
        settings_service: SettingsService,
        generate: Callable[[str], str],
        timeout: float = ASSISTANT_TIMEOUT_SECONDS,
    ) -> None:
        self._transactions = transactions
        self._settings_service = settings_service
        self._generate = generate
        self._timeout = timeout

    def snapshot(self, scope: str = SCOPE_MONTH, today: dt_date | None = None) -> FinancialSnapshot:
        settings = self._settings_service.settings
        if scope == SCOPE_ALL:
            return build_snapshot(self._transactions.get_all(), "All-time totals")
        if scope != SCOPE_MONTH:
            raise ValueError(f"Unknown assistant scope: {scope}")
        start, end = settings.financial_month_range(today)
        last_day = end - timedelta(days=1)
        label = f"Current month ({start.isoformat()} to {last_day.isoformat()})"
        return build_snapshot(self._transactions.get_for_financial_month(settings, today), label)

    def ask(self, question: str | None, scope: str = SCOPE_MONTH, today: dt_date | None = None) -> str:
        try:
            prompt = compose_prompt(self.snapshot(scope, today), question)
        except ValueError as e:
            return FAILURE_MESSAGE.format(error=e)
        return self._call(prompt)

    def monthly_analysis(self, today: dt_date | None = None) -> str:
        snapshot = self.snapshot(SCOPE_MONTH, today)
        lines = [render_brief(snapshot)]
        lines.extend(_breakdown_lines("Income by category:", snapshot.income_breakdown))
        lines.append(
            "Analyse this month's spending habits, point out unusual categories "
            "and suggest concrete ways to save."
        )
        return self._call("\n".join(lines))

    def next_month_budget(self, today: dt_date | None = None) -> str:
        today = today or dt_date.today()
        snapshot = self.snapshot(SCOPE_MONTH, today)
        next_label = format_year_month(*add_months(today.year, today.month, 1))
        settings = self._settings_service.settings
        prompt = "\n".join(
            [
                render_brief(snapshot),
                f"Current monthly budget: {settings.monthly_budget:.2f}",
                f"Propose a budget for {next_label} with an amount per expense category "
                "and a savings target, and explain the reasoning briefly.",
            ]
        )
        return self._call(prompt)

    def analyze_transaction(self, description: str, amount: float) -> Classification:
        return self._transactions.classifier.classify(description, amount)

    def _call(self, prompt: str) -> str:
        if not self._settings_service.settings.ai_assistance_enabled:
            return DISABLED_MESSAGE
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="assistant")
        future = executor.submit(self._generate, prompt)
        try:
            result = future.result(timeout=self._timeout)
        except FutureTimeoutError:
            logger.warning("Assistant call timed out after %.1f seconds", self._timeout)
            return TIMEOUT_MESSAGE.format(timeout=self._timeout)
        except Exception as e:
            logger.exception("Assistant call failed")
            return FAILURE_MESSAGE.format(error=e)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return "" if result is None else str(result)
