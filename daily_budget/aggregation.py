"""Spending aggregation and statistics.

This module groups expenses and earnings by month, year and category,
computes totals, percentages and extrema, and builds the all-time
statistics report. All functions are read-only over records that were
already loaded from the store.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

import pandas as pd

try:
    from .models import Earning, Expense, MonthlyData
except ImportError:
    from models import Earning, Expense, MonthlyData

EXPENSE_FRAME_COLUMNS = ["id", "name", "amount", "category", "date", "paid_from_earnings"]
EARNING_FRAME_COLUMNS = ["id", "name", "amount", "date"]
MONTHLY_FRAME_COLUMNS = ["month", "daily_allocation", "leftover_budget"]


def to_frame(records: Iterable[Any], columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """Convert dataclass records into a DataFrame with a datetime ``date`` column."""
    rows = [asdict(r) for r in records]
    df = pd.DataFrame(rows, columns=list(columns) if columns else None)
    if 'amount' in df.columns:
        df['amount'] = pd.to_numeric(df['amount'], errors='coerce').fillna(0.0)
    if 'date' in df.columns:
        df['date'] = pd.to_datetime(df['date'])
    if 'paid_from_earnings' in df.columns:
        df['paid_from_earnings'] = df['paid_from_earnings'].fillna(False).astype(bool)
    return df


def expenses_frame(expenses: Iterable[Expense]) -> pd.DataFrame:
    return to_frame(expenses, EXPENSE_FRAME_COLUMNS)


def earnings_frame(earnings: Iterable[Earning]) -> pd.DataFrame:
    return to_frame(earnings, EARNING_FRAME_COLUMNS)


def monthly_frame(monthly_data: Iterable[MonthlyData]) -> pd.DataFrame:
    return to_frame(monthly_data, MONTHLY_FRAME_COLUMNS)


def total_by_predicate(items: Iterable[Any], predicate: Callable[[Any], bool]) -> float:
    return float(sum(item.amount for item in items if predicate(item)))


def split_spending(expenses: Iterable[Expense]) -> Tuple[float, float]:
    """Return ``(paid from budget, paid from earnings)``; the two always add up to the total."""
    expenses = list(expenses)
    from_budget = total_by_predicate(expenses, lambda e: not e.paid_from_earnings)
    from_earnings = total_by_predicate(expenses, lambda e: e.paid_from_earnings)
    return from_budget, from_earnings


def group_by_month(frame: pd.DataFrame, date_column: str = 'date', amount_column: str = 'amount') -> pd.Series:
    """Sum amounts per calendar month.

    Returns:
        Series indexed by ``YYYY-MM`` strings, ascending
    """
    if frame.empty:
        return pd.Series(dtype=float, name=amount_column)
    months = pd.to_datetime(frame[date_column]).dt.to_period('M').astype(str)
    totals = frame.groupby(months)[amount_column].sum().sort_index()
    totals.index.name = 'Month'
    return totals.astype(float)


def group_by_year(frame: pd.DataFrame, date_column: str = 'date', amount_column: str = 'amount') -> pd.Series:
    if frame.empty:
        return pd.Series(dtype=float, name=amount_column)
    years = pd.to_datetime(frame[date_column]).dt.year
    totals = frame.groupby(years)[amount_column].sum().sort_index()
    totals.index.name = 'Year'
    return totals.astype(float)


def group_by_category(expenses: pd.DataFrame) -> pd.DataFrame:
    """Per-category totals, counts and share of the grand total.

    Returns:
        DataFrame with columns Category, Total, Count, Percentage sorted by
        Total descending. Percentage is 0 when the grand total is 0.
    """
    columns = ['Category', 'Total', 'Count', 'Percentage']
    if expenses.empty:
        return pd.DataFrame(columns=columns)
    grouped = expenses.groupby('category')['amount'].agg(['sum', 'count']).reset_index()
    grouped.columns = ['Category', 'Total', 'Count']
    grand_total = grouped['Total'].sum()
    grouped['Percentage'] = (grouped['Total'] / grand_total * 100) if grand_total > 0 else 0.0
    # Stable sort keeps alphabetical order among equal totals
    grouped = grouped.sort_values('Category').sort_values('Total', ascending=False, kind='mergesort')
    return grouped.reset_index(drop=True)[columns]


def _in_period(frame: pd.DataFrame, period: Optional[str]) -> pd.DataFrame:
    if period is None or frame.empty:
        return frame
    iso = pd.to_datetime(frame['date']).dt.strftime('%Y-%m-%d')
    return frame[iso.str.startswith(str(period))]


def net_earnings_for_period(
    earnings: pd.DataFrame,
    expenses: pd.DataFrame,
    period: Optional[str] = None,
) -> float:
    """Earnings minus earnings-funded spending for a ``YYYY`` or ``YYYY-MM`` period.

    The result may be negative; it is not clamped.
    """
    earned = _in_period(earnings, period)
    spent = _in_period(expenses, period)
    total_earned = float(earned['amount'].sum()) if not earned.empty else 0.0
    if spent.empty:
        return total_earned
    return total_earned - float(spent.loc[spent['paid_from_earnings'], 'amount'].sum())


def extreme_month(month_totals: pd.Series, which: str = 'max') -> Optional[Tuple[str, float]]:
    """Most (``max``) or least (``min``) expensive month.

    Ties go to the earliest month key.
    """
    if which not in {'max', 'min'}:
        raise ValueError(f"which must be 'max' or 'min', got {which!r}")
    if month_totals.empty:
        return None
    ordered = month_totals.sort_index()
    key = ordered.idxmax() if which == 'max' else ordered.idxmin()
    return str(key), float(ordered[key])


def total_leftover(monthly_data: Iterable[MonthlyData], month_keys: Optional[Iterable[str]] = None) -> float:
    """Sum leftover budget, optionally only over ``month_keys``."""
    if month_keys is None:
        return float(sum(row.leftover_budget for row in monthly_data))
    wanted = set(month_keys)
    return float(sum(row.leftover_budget for row in monthly_data if row.month in wanted))


def leftover_by_year(monthly_data: Iterable[MonthlyData]) -> pd.Series:
    frame = monthly_frame(monthly_data)
    if frame.empty:
        return pd.Series(dtype=float)
    years = pd.to_numeric(frame['month'].str[:4], errors='coerce').fillna(0).astype(int)
    totals = frame.groupby(years)['leftover_budget'].sum().sort_index()
    totals.index.name = 'Year'
    return totals.astype(float)


class BudgetStatistics:
    """All-time statistics over every tracked month."""

    def __init__(
        self,
        expenses: Iterable[Expense],
        earnings: Iterable[Earning] = (),
        monthly_data: Iterable[MonthlyData] = (),
    ):
        self.expenses = list(expenses)
        self.earnings = list(earnings)
        self.monthly_data = list(monthly_data)
        self.expense_df = expenses_frame(self.expenses)
        self.earning_df = earnings_frame(self.earnings)

    def monthly_totals(self) -> pd.Series:
        return group_by_month(self.expense_df)

    def yearly_totals(self) -> pd.Series:
        return group_by_year(self.expense_df)

    def general_summary(self) -> Dict[str, Any]:
        """Headline numbers for the statistics page."""
        total_spent = float(self.expense_df['amount'].sum()) if not self.expense_df.empty else 0.0
        count = len(self.expense_df)
        by_month = self.monthly_totals()
        months_tracked = len(by_month)
        categories = group_by_category(self.expense_df)
        top_category = None
        if not categories.empty:
            top_category = (categories.iloc[0]['Category'], float(categories.iloc[0]['Total']))

        from_budget, from_earnings = split_spending(self.expenses)
        total_earned = float(self.earning_df['amount'].sum()) if not self.earning_df.empty else 0.0

        return {
            'total_spent': total_spent,
            'spent_from_budget': from_budget,
            'spent_from_earnings': from_earnings,
            'expense_count': count,
            'months_tracked': months_tracked,
            'average_per_month': total_spent / months_tracked if months_tracked else 0.0,
            'average_expense': total_spent / count if count else 0.0,
            'top_category': top_category,
            'total_leftover': total_leftover(self.monthly_data, by_month.index),
            'most_expensive_month': extreme_month(by_month, 'max'),
            'least_expensive_month': extreme_month(by_month, 'min'),
            'total_earnings': total_earned,
            'net_earnings': net_earnings_for_period(self.earning_df, self.expense_df),
        }

    def category_breakdown(self) -> pd.DataFrame:
        return group_by_category(self.expense_df)

    def monthly_history(self) -> pd.DataFrame:
        """Spent and stored leftover per month with expenses, newest first."""
        by_month = self.monthly_totals()
        if by_month.empty:
            return pd.DataFrame(columns=['Month', 'Spent', 'Leftover'])
        leftovers = {row.month: row.leftover_budget for row in self.monthly_data}
        history = pd.DataFrame({'Month': by_month.index, 'Spent': by_month.values})
        history['Leftover'] = history['Month'].map(leftovers).astype(float)
        return history.sort_values('Month', ascending=False).reset_index(drop=True)

    def yearly_history(self) -> pd.DataFrame:
        """Spent per year with the sum of that year's stored leftovers, newest first."""
        by_year = self.yearly_totals()
        if by_year.empty:
            return pd.DataFrame(columns=['Year', 'Spent', 'Leftover'])
        leftovers = leftover_by_year(self.monthly_data)
        history = pd.DataFrame({'Year': by_year.index.astype(int), 'Spent': by_year.values})
        history['Leftover'] = history['Year'].map(leftovers).astype(float)
        return history.sort_values('Year', ascending=False).reset_index(drop=True)
