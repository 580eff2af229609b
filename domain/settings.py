from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date as dt_date

from .records import SavingGoal, SpecialDate
from .validation import add_months, day_in_month, parse_year_month

DEFAULT_EXPENSE_CATEGORIES = (
    "Food",
    "Transportation",
    "Housing",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Healthcare",
    "Education",
    "Other",
)
DEFAULT_INCOME_CATEGORIES = ("Salary", "Investment", "Gift", "Other")

STORAGE_BACKENDS = ("csv", "json")


def _clamp_int(value, low: int, high: int, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def _clean_categories(values) -> list[str]:
    result: list[str] = []
    for raw in values or ():
        name = str(raw or "").strip()
        if name and name not in result:
            result.append(name)
    return result


@dataclass
class Settings:
    """User preferences plus the month-closing bookkeeping state.

    Loaded once at startup, mutated through the setters and persisted by
    `app.settings_service.SettingsService`. `special_dates` and `saving_goals`
    are display snapshots; the record services own the real data.
    """

    month_start_day: int = 1
    default_currency: str = "CNY"
    date_format: str = "yyyy-MM-dd"
    dark_mode_enabled: bool = False
    expense_categories: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXPENSE_CATEGORIES)
    )
    income_categories: list[str] = field(default_factory=lambda: list(DEFAULT_INCOME_CATEGORIES))
    data_storage_path: str = "data"
    storage_backend: str = "csv"
    auto_backup_enabled: bool = True
    backup_frequency_days: int = 7
    ai_assistance_enabled: bool = True
    monthly_budget: float = 5000.0
    budget_start_day: int = 1
    special_dates: list[SpecialDate] = field(default_factory=list)
    saving_goals: list[SavingGoal] = field(default_factory=list)
    overall_account_balance: float = 0.0
    last_month_closed: str | None = None

    def __post_init__(self) -> None:
        self.month_start_day = _clamp_int(self.month_start_day, 1, 31, 1)
        self.budget_start_day = _clamp_int(self.budget_start_day, 1, 28, 1)
        self.backup_frequency_days = _clamp_int(self.backup_frequency_days, 1, 3650, 7)
        self.monthly_budget = max(0.0, float(self.monthly_budget or 0.0))
        self.overall_account_balance = float(self.overall_account_balance or 0.0)
        self.expense_categories = _clean_categories(self.expense_categories)
        self.income_categories = _clean_categories(self.income_categories)
        backend = str(self.storage_backend or "csv").strip().lower()
        self.storage_backend = backend if backend in STORAGE_BACKENDS else "csv"
        if self.last_month_closed:
            parse_year_month(self.last_month_closed)
        else:
            self.last_month_closed = None

    def set_month_start_day(self, day: int) -> None:
        self.month_start_day = _clamp_int(day, 1, 31, self.month_start_day)

    def set_budget_start_day(self, day: int) -> None:
        self.budget_start_day = _clamp_int(day, 1, 28, self.budget_start_day)

    def set_monthly_budget(self, amount: float) -> None:
        self.monthly_budget = max(0.0, float(amount))

    def set_backup_frequency_days(self, days: int) -> None:
        self.backup_frequency_days = _clamp_int(days, 1, 3650, self.backup_frequency_days)

    def set_storage_backend(self, backend: str) -> None:
        backend = (backend or "").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ValueError(f"Unsupported storage backend: {backend}")
        self.storage_backend = backend

    def add_expense_category(self, name: str) -> bool:
        return self._add_category(self.expense_categories, name)

    def add_income_category(self, name: str) -> bool:
        return self._add_category(self.income_categories, name)

    def remove_expense_category(self, name: str) -> bool:
        return self._remove_category(self.expense_categories, name)

    def remove_income_category(self, name: str) -> bool:
        return self._remove_category(self.income_categories, name)

    def all_categories(self) -> list[str]:
        return _clean_categories([*self.expense_categories, *self.income_categories])

    def reset_to_default(self) -> None:
        """Restore preferences; month-closing state and snapshots are kept."""
        defaults = Settings()
        for name in (
            "month_start_day",
            "default_currency",
            "date_format",
            "dark_mode_enabled",
            "expense_categories",
            "income_categories",
            "auto_backup_enabled",
            "backup_frequency_days",
            "ai_assistance_enabled",
            "monthly_budget",
            "budget_start_day",
        ):
            setattr(self, name, getattr(defaults, name))

    def financial_month_start(self, today: dt_date | None = None) -> dt_date:
        today = today or dt_date.today()
        if today.day >= self.month_start_day:
            return day_in_month(today.year, today.month, self.month_start_day)
        candidate = day_in_month(today.year, today.month, self.month_start_day)
        if candidate <= today:
            # day clamped to a short month's last day, already reached
            return candidate
        year, month = add_months(today.year, today.month, -1)
        return day_in_month(year, month, self.month_start_day)

    def financial_month_range(self, today: dt_date | None = None) -> tuple[dt_date, dt_date]:
        """Half-open `[start, next_start)` window of the current financial month."""
        start = self.financial_month_start(today)
        year, month = add_months(start.year, start.month, 1)
        return start, day_in_month(year, month, self.month_start_day)

    def financial_month_bounds(self, year: int, month: int) -> tuple[dt_date, dt_date]:
        """Inclusive bounds of the financial month starting in `year`/`month`."""
        start = day_in_month(year, month, self.month_start_day)
        next_year, next_month = add_months(year, month, 1)
        next_start = day_in_month(next_year, next_month, self.month_start_day)
        return start, dt_date.fromordinal(next_start.toordinal() - 1)

    def is_in_current_financial_month(self, day: dt_date, today: dt_date | None = None) -> bool:
        start, end = self.financial_month_range(today)
        return start <= day < end

    @staticmethod
    def _add_category(target: list[str], name: str) -> bool:
        name = (name or "").strip()
        if not name or name in target:
            return False
        target.append(name)
        return True

    @staticmethod
    def _remove_category(target: list[str], name: str) -> bool:
        name = (name or "").strip()
        if name not in target:
            return False
        target.remove(name)
        return True
