from __future__ import annotations

import logging
from datetime import date as dt_date
from datetime import timedelta

from app.record_service import SpecialDateService, TransactionService
from app.settings_service import SettingsService
from domain.records import Budget, SpecialDate
from domain.reports import total_expense
from domain.validation import add_months, days_in_month, format_year_month

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_MONTHS = 6


def apply_impacts(base: float, special_dates: list[SpecialDate]) -> float:
    """Compound each special date's percentage impact onto `base`."""
    adjusted = float(base)
    for special_date in special_dates:
        adjusted *= 1 + special_date.expected_impact / 100.0
    return adjusted


class BudgetPlanner:
    """Average-based budget forecasts and special-date adjustments."""

    def __init__(
        self,
        transactions: TransactionService,
        special_dates: SpecialDateService,
        settings_service: SettingsService,
    ) -> None:
        self._transactions = transactions
        self._special_dates = special_dates
        self._settings_service = settings_service
        self._forecasts: dict[str, float] = {}
        self._last_forecast: float | None = None

    @property
    def last_forecast(self) -> float | None:
        return self._last_forecast

    def average_monthly_expense(
        self, year: int, month: int, months: int = DEFAULT_LOOKBACK_MONTHS
    ) -> float:
        """Mean expense of the `months` calendar months before `year`/`month`.

        Months without any transaction are left out of the mean.
        """
        if months <= 0:
            return 0.0
        total = 0.0
        analysed = 0
        for offset in range(1, months + 1):
            past_year, past_month = add_months(year, month, -offset)
            transactions = self._transactions.get_for_month(past_year, past_month)
            if transactions:
                total += total_expense(transactions)
                analysed += 1
        if analysed == 0:
            logger.warning(
                "No transactions in the %s months before %s to forecast from",
                months,
                format_year_month(year, month),
            )
            return 0.0
        return total / analysed

    def forecast_budget_for_month(
        self, year: int, month: int, months: int = DEFAULT_LOOKBACK_MONTHS
    ) -> float:
        forecast = self.average_monthly_expense(year, month, months)
        self._forecasts[format_year_month(year, month)] = forecast
        self._last_forecast = forecast
        logger.info("Budget forecast for %s: %.2f", format_year_month(year, month), forecast)
        return forecast

    def forecast_next_month_budget(
        self, months: int = DEFAULT_LOOKBACK_MONTHS, today: dt_date | None = None
    ) -> float:
        today = today or dt_date.today()
        year, month = add_months(today.year, today.month, 1)
        return self.forecast_budget_for_month(year, month, months)

    def budget_for_month(self, year: int, month: int) -> float:
        """Forecast for the month, else the previous month's, else the settings budget."""
        key = format_year_month(year, month)
        if key in self._forecasts:
            return self._forecasts[key]
        previous = format_year_month(*add_months(year, month, -1))
        if previous in self._forecasts:
            return self._forecasts[previous]
        return self._settings_service.settings.monthly_budget

    def save_forecast_to_settings(self) -> bool:
        if not self._last_forecast or self._last_forecast <= 0:
            logger.warning("No positive budget forecast to save")
            return False
        return self._settings_service.set_monthly_budget(self._last_forecast)

    def adjusted_budget_for_month(
        self, year: int, month: int, base: float | None = None
    ) -> float:
        if base is None:
            base = self._settings_service.settings.monthly_budget
        special_dates = self._special_dates.get_for_month(year, month)
        adjusted = apply_impacts(base, special_dates)
        for special_date in special_dates:
            logger.debug(
                "Budget for %s adjusted by %s (%+.1f%%)",
                format_year_month(year, month),
                special_date.name,
                special_date.expected_impact,
            )
        return adjusted

    def adjusted_budget_for_date(self, day: dt_date, base: float | None = None) -> float:
        if base is None:
            base = self._settings_service.settings.monthly_budget
        return apply_impacts(base, self._special_dates.find_by_date(day))

    def category_adjustments_for_month(
        self, budget: Budget, year: int, month: int
    ) -> dict[str, float]:
        """Category limits after the impacts of special dates naming that category."""
        special_dates = self._special_dates.get_for_month(year, month)
        adjusted: dict[str, float] = {}
        for category, limit in budget.category_budgets.items():
            relevant = [d for d in special_dates if d.affects(category)]
            adjusted[category] = apply_impacts(limit, relevant)
        return adjusted

    def budget_for_date_range(self, start: dt_date, end: dt_date) -> float:
        """Sum of daily shares of each month's adjusted budget, both ends inclusive."""
        total = 0.0
        monthly: dict[tuple[int, int], float] = {}
        current = start
        while current <= end:
            key = (current.year, current.month)
            if key not in monthly:
                monthly[key] = self.adjusted_budget_for_month(*key)
            total += monthly[key] / days_in_month(*key)
            current += timedelta(days=1)
        return total
