from __future__ import annotations

import logging
from datetime import date as dt_date

from app.budget_planning import DEFAULT_LOOKBACK_MONTHS, BudgetPlanner
from app.record_service import SavingGoalService, TransactionService
from app.settings_service import SettingsService
from domain.records import Transaction
from domain.reports import net_amount
from domain.validation import add_months, day_in_month, format_year_month, parse_year_month

logger = logging.getLogger(__name__)

SAVINGS_CATEGORY = "Savings"


class FinancialCycleService:
    """Month-level bookkeeping: saving contributions and month-end closing."""

    def __init__(
        self,
        transactions: TransactionService,
        saving_goals: SavingGoalService,
        settings_service: SettingsService,
        planner: BudgetPlanner | None = None,
    ) -> None:
        self._transactions = transactions
        self._saving_goals = saving_goals
        self._settings_service = settings_service
        self._planner = planner

    def process_monthly_savings_contributions(
        self, year: int, month: int, day: int = 1, category: str = SAVINGS_CATEGORY
    ) -> list[Transaction]:
        """Book one contribution per eligible goal and return the new expenses.

        A goal contributes when active, not completed, with a positive monthly
        contribution and a start/target window covering the booking date. The
        amount never exceeds what is left to reach the target.
        """
        booking_date = day_in_month(year, month, day)
        created: list[Transaction] = []
        for goal in self._saving_goals.get_active():
            if goal.monthly_contribution <= 0 or not goal.accepts_contribution_on(booking_date):
                continue
            amount = min(goal.monthly_contribution, goal.remaining_amount())
            if amount <= 0:
                continue
            transaction = Transaction(
                date=booking_date,
                amount=amount,
                description=f"Savings contribution for: {goal.name}",
                category=category,
                participant="Self",
                notes=f"Automated monthly savings for goal ID: {goal.id}",
                is_expense=True,
            )
            if not self._transactions.add(transaction):
                logger.warning("Failed to book savings contribution for goal %s", goal.id)
                continue
            self._saving_goals.update(goal.with_contribution(amount))
            created.append(transaction)
        if created:
            logger.info(
                "Booked %s savings contributions for %s",
                len(created),
                format_year_month(year, month),
            )
        return created

    def perform_month_end_closing(self, today: dt_date | None = None) -> list[str]:
        """Close every finished financial month not closed yet.

        Each closed month's net amount is added to the overall balance and the
        month marker advances. Returns the `YYYY-MM` labels closed in this run.
        """
        settings = self._settings_service.settings
        current_start = settings.financial_month_start(today)

        if settings.last_month_closed:
            year, month = add_months(*parse_year_month(settings.last_month_closed), 1)
        else:
            all_transactions = self._transactions.get_all()
            if not all_transactions:
                return []
            first = settings.financial_month_start(min(t.date for t in all_transactions))
            year, month = first.year, first.month

        closed: list[str] = []
        surplus = 0.0
        while True:
            start, end = settings.financial_month_bounds(year, month)
            if start >= current_start:
                break
            month_net = net_amount(self._transactions.get_for_date_range(start, end))
            surplus += month_net
            label = format_year_month(year, month)
            settings.last_month_closed = label
            closed.append(label)
            logger.info("Closed financial month %s with net %.2f", label, month_net)
            year, month = add_months(year, month, 1)

        if not closed:
            return []

        settings.overall_account_balance += surplus
        if self._planner is not None:
            next_year, next_month = add_months(*parse_year_month(closed[-1]), 1)
            forecast = self._planner.forecast_budget_for_month(
                next_year, next_month, DEFAULT_LOOKBACK_MONTHS
            )
            if forecast > 0:
                settings.set_monthly_budget(forecast)
        if not self._settings_service.save():
            logger.warning("Month-end closing state could not be persisted")
        return closed
