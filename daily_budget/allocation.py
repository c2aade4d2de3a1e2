"""Daily allocation and month budget resolution.

For any viewed month the engine decides which daily allocation applies and
how many days of it have been earned so far:

* In income mode the allocation for the current and future months is always
  recomputed as ``max(0, income - fixed expenses) / days in month``. Past
  months are frozen to whatever snapshot was last saved (or 0).
* In manual mode a stored snapshot (possibly a per-month override) wins;
  otherwise the current month uses the global daily allocation and every
  other month gets 0.

The decision is returned tagged as ``LIVE`` or ``FROZEN`` so callers can
tell a recomputed figure from a historical one. Everything here is pure
except :func:`refresh_month` and :func:`set_month_allocation`, which talk
to a :class:`~daily_budget.db.BudgetStore`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

import pandas as pd

try:
    from .models import (
        AllocationMode,
        Earning,
        Expense,
        FixedExpense,
        MonthlyData,
        Settings,
        month_key,
    )
except ImportError:
    from models import (
        AllocationMode,
        Earning,
        Expense,
        FixedExpense,
        MonthlyData,
        Settings,
        month_key,
    )

if TYPE_CHECKING:
    from .db import BudgetStore

logger = logging.getLogger(__name__)


class MonthPeriod(str, Enum):
    PAST = "past"
    CURRENT = "current"
    FUTURE = "future"


class AllocationSource(str, Enum):
    LIVE = "live"  # computed from current settings
    FROZEN = "frozen"  # taken from a stored MonthlyData row


@dataclass(frozen=True)
class AllocationDecision:
    source: AllocationSource
    daily_allocation: float
    snapshot: Optional[MonthlyData] = None


@dataclass(frozen=True)
class MonthContext:
    month: str
    period: MonthPeriod
    source: AllocationSource
    daily_allocation: float
    day_of_month: int
    allowed_budget: float
    # Last saved leftover; informational, excluded from equality
    stored_leftover: float = field(default=0.0, compare=False)


@dataclass(frozen=True)
class MonthSummary:
    context: MonthContext
    total_spent: float
    total_spent_from_earnings: float
    total_earnings: float

    @property
    def current_budget(self) -> float:
        return self.context.allowed_budget - self.total_spent

    @property
    def remaining_earnings(self) -> float:
        # Not clamped: earnings-funded spending may exceed earnings
        return self.total_earnings - self.total_spent_from_earnings


def to_period(value: Any) -> pd.Period:
    return pd.Period(month_key(value), freq="M")


def days_in_month(month: Any) -> int:
    return int(to_period(month).days_in_month)


def classify_month(target_month: Any, today: date) -> MonthPeriod:
    target = to_period(target_month)
    current = to_period(today)
    if target < current:
        return MonthPeriod.PAST
    if target > current:
        return MonthPeriod.FUTURE
    return MonthPeriod.CURRENT


def computed_daily_allocation(
    settings: Settings,
    fixed_expenses: Iterable[FixedExpense],
    days: int,
) -> float:
    """Spread income left after fixed expenses evenly over ``days``.

    A negative remainder clamps to 0 rather than producing a negative rate.
    """
    total_fixed = sum(fx.amount for fx in fixed_expenses)
    available = settings.monthly_net_income - total_fixed
    if days <= 0 or available <= 0:
        return 0.0
    return available / days


def resolve_allocation(
    target_month: Any,
    today: date,
    settings: Settings,
    fixed_expenses: Iterable[FixedExpense],
    snapshots: Mapping[str, MonthlyData],
) -> AllocationDecision:
    key = month_key(target_month)
    period = classify_month(key, today)
    stored = snapshots.get(key)

    if settings.allocation_mode == AllocationMode.INCOME:
        if period == MonthPeriod.PAST:
            if stored is None:
                return AllocationDecision(AllocationSource.FROZEN, 0.0)
            return AllocationDecision(AllocationSource.FROZEN, stored.daily_allocation, stored)
        daily = computed_daily_allocation(settings, fixed_expenses, days_in_month(key))
        return AllocationDecision(AllocationSource.LIVE, daily, stored)

    if stored is not None:
        return AllocationDecision(AllocationSource.FROZEN, stored.daily_allocation, stored)
    if period == MonthPeriod.CURRENT:
        return AllocationDecision(AllocationSource.LIVE, settings.daily_allocation)
    return AllocationDecision(AllocationSource.LIVE, 0.0)


def elapsed_days(target_month: Any, today: date) -> int:
    """Days of the month counted toward the allowance."""
    period = classify_month(target_month, today)
    if period == MonthPeriod.FUTURE:
        return 0
    if period == MonthPeriod.CURRENT:
        return today.day
    return days_in_month(target_month)


def resolve_month_context(
    target_month: Any,
    today: date,
    settings: Settings,
    fixed_expenses: Iterable[FixedExpense],
    snapshots: Mapping[str, MonthlyData],
) -> MonthContext:
    """Resolve the allocation, elapsed days and allowed budget for a month.

    Args:
        target_month: Month to resolve (date, ``YYYY-MM`` string or Period)
        today: Reference date that decides past / current / future
        settings: Settings value object
        fixed_expenses: Recurring monthly obligations
        snapshots: Stored MonthlyData rows keyed by ``YYYY-MM``

    Returns:
        MonthContext with ``allowed_budget = day_of_month * daily_allocation``
    """
    key = month_key(target_month)
    decision = resolve_allocation(key, today, settings, list(fixed_expenses), snapshots)
    day = elapsed_days(key, today)
    return MonthContext(
        month=key,
        period=classify_month(key, today),
        source=decision.source,
        daily_allocation=decision.daily_allocation,
        day_of_month=day,
        allowed_budget=day * decision.daily_allocation,
        stored_leftover=decision.snapshot.leftover_budget if decision.snapshot else 0.0,
    )


def summarize_month(
    context: MonthContext,
    expenses: Iterable[Expense],
    earnings: Iterable[Earning],
) -> MonthSummary:
    expenses = list(expenses)
    return MonthSummary(
        context=context,
        total_spent=sum(e.amount for e in expenses if not e.paid_from_earnings),
        total_spent_from_earnings=sum(e.amount for e in expenses if e.paid_from_earnings),
        total_earnings=sum(e.amount for e in earnings),
    )


def snapshot_for(summary: MonthSummary) -> Optional[MonthlyData]:
    """Row to persist for the viewed month, or None when nothing is allocated."""
    if summary.context.daily_allocation <= 0:
        return None
    return MonthlyData(
        month=summary.context.month,
        daily_allocation=summary.context.daily_allocation,
        leftover_budget=summary.current_budget,
    )


def refresh_month(
    store: "BudgetStore",
    target_month: Any,
    today: Optional[date] = None,
) -> MonthSummary:
    """Recompute a month from the store and save its snapshot.

    This is what a view calls whenever the viewed month, its expenses or
    the settings change. It is idempotent for unchanged inputs.
    """
    today = today or date.today()
    key = month_key(target_month)
    stored = store.get_monthly_data(key)
    snapshots = {key: stored} if stored is not None else {}
    context = resolve_month_context(
        key,
        today,
        store.get_settings(),
        store.list_fixed_expenses(),
        snapshots,
    )
    summary = summarize_month(context, store.list_expenses(key), store.list_earnings(key))
    snapshot = snapshot_for(summary)
    if snapshot is not None and snapshot != stored:
        store.upsert_monthly_data(snapshot)
        logger.debug(
            "Saved snapshot for %s: %.2f/day, leftover %.2f",
            key,
            snapshot.daily_allocation,
            snapshot.leftover_budget,
        )
    return summary


def set_month_allocation(store: "BudgetStore", target_month: Any, daily_allocation: float) -> MonthlyData:
    """Override the daily allocation stored for one month, keeping its leftover."""
    key = month_key(target_month)
    stored = store.get_monthly_data(key)
    row = MonthlyData(
        month=key,
        daily_allocation=max(0.0, float(daily_allocation)),
        leftover_budget=stored.leftover_budget if stored else 0.0,
    )
    store.upsert_monthly_data(row)
    logger.info("Daily allocation for %s set to %.2f", key, row.daily_allocation)
    return row
