import calendar
import re
from datetime import date


def parse_ymd(value: str | date) -> date:
    if isinstance(value, date):
        return value
    value = (value or "").strip()
    if not value:
        raise ValueError("Date value is empty")
    if not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise ValueError(f"Invalid date format: {value!r}, expected YYYY-MM-DD")
    year, month, day = map(int, value.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    last_day = calendar.monthrange(year, month)[1]
    if not (1 <= day <= last_day):
        raise ValueError("Invalid day")
    return date(year, month, day)


def format_ymd(value: date) -> str:
    return value.isoformat()


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of the month, both inclusive."""
    if not (1 <= month <= 12):
        raise ValueError(f"Invalid month: {month}")
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def day_in_month(year: int, month: int, day: int) -> date:
    """Build a date, pulling `day` back to the month's last day when it overflows."""
    return date(year, month, min(max(1, day), days_in_month(year, month)))


def parse_year_month(value: str) -> tuple[int, int]:
    value = (value or "").strip()
    if not re.fullmatch(r"\d{4}-\d{2}", value):
        raise ValueError(f"Invalid month marker: {value!r}, expected YYYY-MM")
    year, month = map(int, value.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month in month marker")
    return year, month


def format_year_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"
