from __future__ import annotations

import math
import re
from datetime import date as dt_date
from datetime import datetime
from typing import Any

from domain.classifier import Classification, TransactionClassifier
from domain.records import Transaction

ImportSummary = tuple[int, int, list[str]]

# Ordered: ISO first, then month-first before day-first for slash dates.
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%Y/%m/%d",
    "%d-%m-%Y",
    "%d.%m.%Y",
)


def norm_key(value: str) -> str:
    return value.strip().lower().replace(" ", "_")


def as_float(value: Any, default: float | None = None) -> float | None:
    try:
        raw = re.sub(r"[\s,¥$€£₸]", "", str(value))
        if raw.startswith("(") and raw.endswith(")"):
            raw = "-" + raw[1:-1]
        number = float(raw)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def parse_date_flexible(value: str | dt_date) -> dt_date:
    if isinstance(value, dt_date):
        return value
    text = str(value or "").strip()
    if not text:
        raise ValueError("Date value is empty")
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date format: {text!r}")


def resolve_direction(
    raw_amount: float, explicit: bool | None, classification: Classification
) -> bool:
    """Expense flag for an imported amount.

    An explicit flag wins and a negative bank amount is always an expense.
    A positive amount takes the direction of a matched rule; without a match
    it is income.
    """
    if explicit is not None:
        return bool(explicit)
    if raw_amount < 0:
        return True
    if not classification.matched:
        return False
    return classification.is_expense


def _parse_flag(value: Any) -> bool | None:
    text = str(value or "").strip().lower()
    if text in {"true", "1", "yes", "expense", "out"}:
        return True
    if text in {"false", "0", "no", "income", "in"}:
        return False
    return None


def build_transaction(
    date_value: str | dt_date,
    amount: float,
    description: str,
    *,
    classifier: TransactionClassifier,
    category: str | None = None,
    is_expense: bool | None = None,
    participant: str | None = None,
    notes: str | None = None,
) -> Transaction:
    classification = classifier.classify(description, amount)
    return Transaction(
        date=parse_date_flexible(date_value),
        amount=abs(float(amount)),
        description=description or "",
        category=(category or "").strip() or classification.category,
        participant=participant,
        notes=notes,
        is_expense=resolve_direction(float(amount), is_expense, classification),
    )


def parse_import_row(
    row: dict[str, Any],
    *,
    row_label: str,
    classifier: TransactionClassifier,
) -> tuple[Transaction | None, str | None]:
    row_lc = {norm_key(str(k)): v for k, v in row.items() if k is not None}

    date_value = str(row_lc.get("date", "") or "").strip()
    if not date_value:
        return None, f"{row_label}: missing required field 'date'"
    try:
        parsed_date = parse_date_flexible(date_value)
    except ValueError as exc:
        return None, f"{row_label}: invalid date '{date_value}' ({exc})"

    amount = as_float(row_lc.get("amount"), None)
    if amount is None:
        return None, f"{row_label}: invalid amount '{row_lc.get('amount', '')}'"

    description = str(row_lc.get("description", "") or "").strip()
    flag = next(
        (row_lc[key] for key in ("is_expense", "isexpense", "type") if row_lc.get(key)), None
    )
    try:
        transaction = build_transaction(
            parsed_date,
            amount,
            description,
            classifier=classifier,
            category=str(row_lc.get("category", "") or ""),
            is_expense=_parse_flag(flag),
            participant=row_lc.get("participant"),
            notes=row_lc.get("notes"),
        )
    except ValueError as exc:
        return None, f"{row_label}: {exc}"
    return transaction, None
