from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import date as dt_date

from .validation import parse_ymd


def new_record_id() -> str:
    return uuid.uuid4().hex


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_id(value) -> str:
    record_id = str(value or "").strip()
    if not record_id:
        raise ValueError("id must be a non-empty string")
    return record_id


class Entity:
    """Identity is the record id; field values never take part in equality."""

    id: str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity) or type(other) is not type(self):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))


@dataclass(frozen=True, eq=False)
class Transaction(Entity):
    date: dt_date | str
    amount: float
    description: str = ""
    category: str = "Other"
    participant: str | None = None
    notes: str | None = None
    is_expense: bool = True
    id: str = field(default_factory=new_record_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _coerce_id(self.id))
        object.__setattr__(self, "date", parse_ymd(self.date))
        try:
            amount = float(self.amount)
        except (TypeError, ValueError) as exc:
            raise ValueError("amount must be a number") from exc
        if not math.isfinite(amount):
            raise ValueError("amount must be a finite number")
        if amount < 0:
            raise ValueError("amount must be non-negative, use is_expense for direction")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "description", str(self.description or "").strip())
        object.__setattr__(self, "category", str(self.category or "").strip() or "Other")
        object.__setattr__(self, "participant", _optional_text(self.participant))
        object.__setattr__(self, "notes", _optional_text(self.notes))
        object.__setattr__(self, "is_expense", bool(self.is_expense))

    def signed_amount(self) -> float:
        return -self.amount if self.is_expense else self.amount

    def with_category(self, category: str) -> Transaction:
        return replace(self, category=category)

    def with_amount(self, amount: float) -> Transaction:
        return replace(self, amount=amount)


@dataclass(frozen=True, eq=False)
class Budget(Entity):
    name: str
    start_date: dt_date | str
    end_date: dt_date | str
    total_budget: float = 0.0
    category_budgets: dict[str, float] = field(default_factory=dict)
    notes: str | None = None
    id: str = field(default_factory=new_record_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _coerce_id(self.id))
        start = parse_ymd(self.start_date)
        end = parse_ymd(self.end_date)
        if end < start:
            raise ValueError("Budget end_date cannot be earlier than start_date")
        object.__setattr__(self, "start_date", start)
        object.__setattr__(self, "end_date", end)
        object.__setattr__(self, "name", str(self.name or "").strip())
        object.__setattr__(self, "total_budget", float(self.total_budget or 0.0))
        object.__setattr__(
            self,
            "category_budgets",
            {str(k): float(v) for k, v in dict(self.category_budgets or {}).items()},
        )
        object.__setattr__(self, "notes", _optional_text(self.notes))

    def category_budget(self, category: str) -> float:
        return self.category_budgets.get(category, 0.0)

    def with_category_budget(self, category: str, amount: float) -> Budget:
        budgets = dict(self.category_budgets)
        budgets[category] = float(amount)
        return replace(self, category_budgets=budgets)

    def covers(self, day: dt_date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True, eq=False)
class SpecialDate(Entity):
    name: str
    date: dt_date | str
    description: str = ""
    affected_categories: tuple[str, ...] = ()
    expected_impact: float = 0.0
    id: str = field(default_factory=new_record_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _coerce_id(self.id))
        object.__setattr__(self, "date", parse_ymd(self.date))
        object.__setattr__(self, "name", str(self.name or "").strip())
        object.__setattr__(self, "description", str(self.description or "").strip())
        categories: list[str] = []
        for raw in self.affected_categories or ():
            name = str(raw or "").strip()
            if name and name not in categories:
                categories.append(name)
        object.__setattr__(self, "affected_categories", tuple(categories))
        object.__setattr__(self, "expected_impact", float(self.expected_impact or 0.0))

    def affects(self, category: str) -> bool:
        wanted = (category or "").strip().lower()
        return any(item.lower() == wanted for item in self.affected_categories)


@dataclass(frozen=True, eq=False)
class SavingGoal(Entity):
    name: str
    target_amount: float = 0.0
    current_amount: float = 0.0
    monthly_contribution: float = 0.0
    description: str | None = None
    start_date: dt_date | str = field(default_factory=dt_date.today)
    target_date: dt_date | str | None = None
    is_active: bool = True
    associated_account: str | None = None
    id: str = field(default_factory=new_record_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _coerce_id(self.id))
        object.__setattr__(self, "name", str(self.name or "").strip())
        object.__setattr__(self, "target_amount", max(0.0, float(self.target_amount or 0.0)))
        object.__setattr__(self, "current_amount", float(self.current_amount or 0.0))
        object.__setattr__(
            self, "monthly_contribution", max(0.0, float(self.monthly_contribution or 0.0))
        )
        object.__setattr__(self, "description", _optional_text(self.description))
        object.__setattr__(self, "start_date", parse_ymd(self.start_date))
        if self.target_date is not None and self.target_date != "":
            object.__setattr__(self, "target_date", parse_ymd(self.target_date))
        else:
            object.__setattr__(self, "target_date", None)
        object.__setattr__(self, "is_active", bool(self.is_active))
        object.__setattr__(self, "associated_account", _optional_text(self.associated_account))

    def progress_percentage(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        percent = self.current_amount / self.target_amount * 100.0
        return max(0.0, min(100.0, percent))

    def remaining_amount(self) -> float:
        return max(0.0, self.target_amount - self.current_amount)

    def is_completed(self) -> bool:
        return self.target_amount > 0 and self.current_amount >= self.target_amount

    def with_target_amount(self, amount: float) -> SavingGoal:
        return replace(self, target_amount=amount)

    def with_monthly_contribution(self, amount: float) -> SavingGoal:
        return replace(self, monthly_contribution=amount)

    def with_contribution(self, amount: float) -> SavingGoal:
        return replace(self, current_amount=self.current_amount + float(amount))

    def accepts_contribution_on(self, day: dt_date) -> bool:
        if day < self.start_date:
            return False
        return self.target_date is None or day <= self.target_date
