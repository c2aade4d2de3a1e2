"""Record types and input validation for the budget tracker.

Expenses, earnings and fixed expenses are plain dataclasses that the
persistence layer reads and writes row by row. ``MonthlyData`` is a
frozen snapshot of the allocation that was in effect for a month and the
budget left at the time it was saved; once a month is in the past that
row is authoritative.

User input enters through the ``parse_*`` and ``build_*`` helpers. They
return ``None`` for anything that should be silently discarded (blank
names, non-positive or malformed amounts, unknown categories) instead of
raising.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd

try:
    from .config import DEFAULT_DAILY_ALLOCATION, DEFAULT_MONTHLY_NET_INCOME
except ImportError:
    from config import DEFAULT_DAILY_ALLOCATION, DEFAULT_MONTHLY_NET_INCOME

CATEGORIES = (
    "Leisure",
    "Groceries",
    "Eating Out",
    "Transportation",
    "Shopping",
    "Bills",
    "Other",
)
DEFAULT_CATEGORY = CATEGORIES[0]


class AllocationMode(str, Enum):
    """How the daily allocation for a month is derived."""

    MANUAL = "manual"
    INCOME = "income"

    @classmethod
    def parse(cls, value: Any) -> "AllocationMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.INCOME


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Expense:
    name: str
    amount: float
    category: str = DEFAULT_CATEGORY
    date: date = field(default_factory=date.today)
    paid_from_earnings: bool = False
    id: str = field(default_factory=new_id)

    @property
    def month(self) -> str:
        return month_key(self.date)


@dataclass
class Earning:
    name: str
    amount: float
    date: date = field(default_factory=date.today)
    id: str = field(default_factory=new_id)

    @property
    def month(self) -> str:
        return month_key(self.date)


@dataclass
class FixedExpense:
    """A recurring monthly obligation such as rent. Has no date."""

    name: str
    amount: float
    id: str = field(default_factory=new_id)


@dataclass(frozen=True)
class MonthlyData:
    month: str  # "YYYY-MM"
    daily_allocation: float
    leftover_budget: float = 0.0


@dataclass(frozen=True)
class Settings:
    daily_allocation: float = DEFAULT_DAILY_ALLOCATION
    monthly_net_income: float = DEFAULT_MONTHLY_NET_INCOME
    allocation_mode: AllocationMode = AllocationMode.INCOME


def month_key(value: Any) -> str:
    """Normalise a date, ``pandas.Period`` or ``YYYY-MM[-DD]`` string to ``YYYY-MM``."""
    if isinstance(value, pd.Period):
        return value.asfreq("M").strftime("%Y-%m")
    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}"
    text = str(value).strip()
    return pd.Period(text[:7], freq="M").strftime("%Y-%m")


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace(",", "")
        if not cleaned:
            return None
        value = cleaned
    number = pd.to_numeric(pd.Series([value]), errors="coerce").iloc[0]
    if pd.isna(number) or not np.isfinite(number):
        return None
    return float(number)


def parse_amount(value: Any) -> Optional[float]:
    """Parse a user-entered monetary amount; only values ``> 0`` are accepted."""
    number = _to_number(value)
    if number is None or number <= 0:
        return None
    return number


def parse_income(value: Any) -> Optional[float]:
    """Parse a monthly net income; zero is allowed."""
    number = _to_number(value)
    if number is None or number < 0:
        return None
    return number


def _clean_name(name: Any) -> Optional[str]:
    if name is None:
        return None
    text = str(name).strip()
    return text or None


def build_expense(
    name: Any,
    amount: Any,
    category: str = DEFAULT_CATEGORY,
    expense_date: Any = None,
    paid_from_earnings: bool = False,
    existing: Optional[Expense] = None,
) -> Optional[Expense]:
    """Validate form input and return a new or edited ``Expense``.

    Returns ``None`` when the input must be discarded. When ``existing`` is
    given the result keeps its id, which turns the save into an edit.
    """
    clean = _clean_name(name)
    value = parse_amount(amount)
    if clean is None or value is None or category not in CATEGORIES:
        return None
    when = parse_date(expense_date) if expense_date is not None else None
    if expense_date is not None and when is None:
        return None
    if existing is not None:
        return replace(
            existing,
            name=clean,
            amount=value,
            category=category,
            date=when or existing.date,
            paid_from_earnings=bool(paid_from_earnings),
        )
    return Expense(
        name=clean,
        amount=value,
        category=category,
        date=when or date.today(),
        paid_from_earnings=bool(paid_from_earnings),
    )


def build_earning(
    name: Any,
    amount: Any,
    earning_date: Any = None,
    existing: Optional[Earning] = None,
) -> Optional[Earning]:
    clean = _clean_name(name)
    value = parse_amount(amount)
    if clean is None or value is None:
        return None
    when = parse_date(earning_date) if earning_date is not None else None
    if earning_date is not None and when is None:
        return None
    if existing is not None:
        return replace(existing, name=clean, amount=value, date=when or existing.date)
    return Earning(name=clean, amount=value, date=when or date.today())


def build_fixed_expense(
    name: Any,
    amount: Any,
    existing: Optional[FixedExpense] = None,
) -> Optional[FixedExpense]:
    clean = _clean_name(name)
    value = parse_amount(amount)
    if clean is None or value is None:
        return None
    if existing is not None:
        return replace(existing, name=clean, amount=value)
    return FixedExpense(name=clean, amount=value)
