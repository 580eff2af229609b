"""Record codecs: field order and value coercion per record kind.

Values produced by ``to_dict`` are JSON-friendly. ``from_dict`` accepts both
the typed values a JSON file holds and the plain strings a CSV row holds.
"""

from __future__ import annotations

import json
import logging
from datetime import date as dt_date
from typing import Any

from domain.errors import RecordParseError
from domain.records import Budget, SavingGoal, SpecialDate, Transaction
from domain.settings import Settings
from domain.validation import parse_ymd

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes", "y"}
_FALSE = {"false", "0", "no", "n", ""}


def _require(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RecordParseError(f"missing required field '{key}'")
    return value


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> str | None:
    text = _text(value).strip()
    return text or None


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise RecordParseError(f"invalid number {value!r}") from exc


def _as_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return default if text == "" else False
    raise RecordParseError(f"invalid boolean {value!r}")


def _as_date(value: Any) -> dt_date:
    try:
        return parse_ymd(value)
    except (TypeError, ValueError) as exc:
        raise RecordParseError(f"invalid date {value!r}") from exc


def _as_optional_date(value: Any) -> dt_date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _as_date(value)


def _as_json(value: Any, expected: type, default):
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise RecordParseError(f"invalid embedded JSON {value!r}") from exc
    if not isinstance(value, expected):
        raise RecordParseError(f"expected {expected.__name__}, got {type(value).__name__}")
    return value


def _iso(value: dt_date | None) -> str | None:
    return value.isoformat() if value is not None else None


class TransactionCodec:
    fields = (
        "id",
        "date",
        "amount",
        "description",
        "category",
        "participant",
        "notes",
        "is_expense",
    )

    def to_dict(self, item: Transaction) -> dict[str, Any]:
        return {
            "id": item.id,
            "date": item.date.isoformat(),
            "amount": item.amount,
            "description": item.description,
            "category": item.category,
            "participant": item.participant,
            "notes": item.notes,
            "is_expense": item.is_expense,
        }

    def from_dict(self, data: dict[str, Any]) -> Transaction:
        try:
            return Transaction(
                id=_text(_require(data, "id")),
                date=_as_date(_require(data, "date")),
                amount=_as_float(_require(data, "amount")),
                description=_text(data.get("description")),
                category=_text(data.get("category")),
                participant=_optional_text(data.get("participant")),
                notes=_optional_text(data.get("notes")),
                is_expense=_as_bool(data.get("is_expense"), default=True),
            )
        except RecordParseError:
            raise
        except ValueError as exc:
            raise RecordParseError(str(exc)) from exc


class BudgetCodec:
    fields = ("id", "name", "start_date", "end_date", "total_budget", "category_budgets", "notes")

    def to_dict(self, item: Budget) -> dict[str, Any]:
        return {
            "id": item.id,
            "name": item.name,
            "start_date": item.start_date.isoformat(),
            "end_date": item.end_date.isoformat(),
            "total_budget": item.total_budget,
            "category_budgets": dict(item.category_budgets),
            "notes": item.notes,
        }

    def from_dict(self, data: dict[str, Any]) -> Budget:
        try:
            raw_budgets = _as_json(data.get("category_budgets"), dict, {})
            return Budget(
                id=_text(_require(data, "id")),
                name=_text(data.get("name")),
                start_date=_as_date(_require(data, "start_date")),
                end_date=_as_date(_require(data, "end_date")),
                total_budget=_as_float(data.get("total_budget")),
                category_budgets={str(k): _as_float(v) for k, v in raw_budgets.items()},
                notes=_optional_text(data.get("notes")),
            )
        except RecordParseError:
            raise
        except ValueError as exc:
            raise RecordParseError(str(exc)) from exc


class SpecialDateCodec:
    fields = ("id", "name", "date", "description", "affected_categories", "expected_impact")

    def to_dict(self, item: SpecialDate) -> dict[str, Any]:
        return {
            "id": item.id,
            "name": item.name,
            "date": item.date.isoformat(),
            "description": item.description,
            "affected_categories": list(item.affected_categories),
            "expected_impact": item.expected_impact,
        }

    def from_dict(self, data: dict[str, Any]) -> SpecialDate:
        try:
            return SpecialDate(
                id=_text(_require(data, "id")),
                name=_text(data.get("name")),
                date=_as_date(_require(data, "date")),
                description=_text(data.get("description")),
                affected_categories=tuple(
                    _text(c) for c in _as_json(data.get("affected_categories"), list, [])
                ),
                expected_impact=_as_float(data.get("expected_impact")),
            )
        except RecordParseError:
            raise
        except ValueError as exc:
            raise RecordParseError(str(exc)) from exc


class SavingGoalCodec:
    fields = (
        "id",
        "name",
        "description",
        "target_amount",
        "current_amount",
        "monthly_contribution",
        "start_date",
        "target_date",
        "is_active",
        "associated_account",
    )

    def to_dict(self, item: SavingGoal) -> dict[str, Any]:
        return {
            "id": item.id,
            "name": item.name,
            "description": item.description,
            "target_amount": item.target_amount,
            "current_amount": item.current_amount,
            "monthly_contribution": item.monthly_contribution,
            "start_date": item.start_date.isoformat(),
            "target_date": _iso(item.target_date),
            "is_active": item.is_active,
            "associated_account": item.associated_account,
        }

    def from_dict(self, data: dict[str, Any]) -> SavingGoal:
        try:
            return SavingGoal(
                id=_text(_require(data, "id")),
                name=_text(data.get("name")),
                description=_optional_text(data.get("description")),
                target_amount=_as_float(data.get("target_amount")),
                current_amount=_as_float(data.get("current_amount")),
                monthly_contribution=_as_float(data.get("monthly_contribution")),
                start_date=_as_date(_require(data, "start_date")),
                target_date=_as_optional_date(data.get("target_date")),
                is_active=_as_bool(data.get("is_active"), default=True),
                associated_account=_optional_text(data.get("associated_account")),
            )
        except RecordParseError:
            raise
        except ValueError as exc:
            raise RecordParseError(str(exc)) from exc


class SettingsCodec:
    fields = (
        "month_start_day",
        "default_currency",
        "date_format",
        "dark_mode_enabled",
        "expense_categories",
        "income_categories",
        "data_storage_path",
        "storage_backend",
        "auto_backup_enabled",
        "backup_frequency_days",
        "ai_assistance_enabled",
        "monthly_budget",
        "budget_start_day",
        "special_dates",
        "saving_goals",
        "overall_account_balance",
        "last_month_closed",
    )

    def __init__(self) -> None:
        self._special_dates = SpecialDateCodec()
        self._saving_goals = SavingGoalCodec()

    def to_dict(self, item: Settings) -> dict[str, Any]:
        return {
            "month_start_day": item.month_start_day,
            "default_currency": item.default_currency,
            "date_format": item.date_format,
            "dark_mode_enabled": item.dark_mode_enabled,
            "expense_categories": list(item.expense_categories),
            "income_categories": list(item.income_categories),
            "data_storage_path": item.data_storage_path,
            "storage_backend": item.storage_backend,
            "auto_backup_enabled": item.auto_backup_enabled,
            "backup_frequency_days": item.backup_frequency_days,
            "ai_assistance_enabled": item.ai_assistance_enabled,
            "monthly_budget": item.monthly_budget,
            "budget_start_day": item.budget_start_day,
            "special_dates": [self._special_dates.to_dict(d) for d in item.special_dates],
            "saving_goals": [self._saving_goals.to_dict(g) for g in item.saving_goals],
            "overall_account_balance": item.overall_account_balance,
            "last_month_closed": item.last_month_closed,
        }

    def from_dict(self, data: dict[str, Any]) -> Settings:
        defaults = Settings()
        try:
            return Settings(
                month_start_day=int(_as_float(data.get("month_start_day"), defaults.month_start_day)),
                default_currency=_text(data.get("default_currency") or defaults.default_currency),
                date_format=_text(data.get("date_format") or defaults.date_format),
                dark_mode_enabled=_as_bool(data.get("dark_mode_enabled"), defaults.dark_mode_enabled),
                expense_categories=_as_json(
                    data.get("expense_categories"), list, list(defaults.expense_categories)
                ),
                income_categories=_as_json(
                    data.get("income_categories"), list, list(defaults.income_categories)
                ),
                data_storage_path=_text(data.get("data_storage_path") or defaults.data_storage_path),
                storage_backend=_text(data.get("storage_backend") or defaults.storage_backend),
                auto_backup_enabled=_as_bool(
                    data.get("auto_backup_enabled"), defaults.auto_backup_enabled
                ),
                backup_frequency_days=int(
                    _as_float(data.get("backup_frequency_days"), defaults.backup_frequency_days)
                ),
                ai_assistance_enabled=_as_bool(
                    data.get("ai_assistance_enabled"), defaults.ai_assistance_enabled
                ),
                monthly_budget=_as_float(data.get("monthly_budget"), defaults.monthly_budget),
                budget_start_day=int(
                    _as_float(data.get("budget_start_day"), defaults.budget_start_day)
                ),
                special_dates=self._decode_nested(
                    data.get("special_dates"), self._special_dates.from_dict
                ),
                saving_goals=self._decode_nested(
                    data.get("saving_goals"), self._saving_goals.from_dict
                ),
                overall_account_balance=_as_float(data.get("overall_account_balance")),
                last_month_closed=_optional_text(data.get("last_month_closed")),
            )
        except RecordParseError:
            raise
        except ValueError as exc:
            raise RecordParseError(str(exc)) from exc

    @staticmethod
    def _decode_nested(value: Any, decode) -> list:
        items = []
        for raw in _as_json(value, list, []):
            if not isinstance(raw, dict):
                continue
            try:
                items.append(decode(raw))
            except RecordParseError as e:
                logger.warning("Skipping invalid nested settings record: %s", e)
        return items
