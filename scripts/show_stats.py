#!/usr/bin/env python3
"""Print the all-time spending statistics report."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from daily_budget.aggregation import BudgetStatistics
from daily_budget.config import configure_logging
from daily_budget.db import BudgetStore
from daily_budget.formatting import format_currency, format_month_label


def main(db_path: Optional[Path] = None, months: int = 12) -> None:
    configure_logging()
    store = BudgetStore(db_path).init_db()
    stats = BudgetStatistics(store.list_expenses(), store.list_earnings(), store.list_monthly_data())
    summary = stats.general_summary()

    if summary['expense_count'] == 0:
        print("No expenses recorded yet.")
        return

    print(f"Total spent:        {format_currency(summary['total_spent'])}")
    print(f"Expenses:           {summary['expense_count']}")
    print(f"Months tracked:     {summary['months_tracked']}")
    print(f"Average per month:  {format_currency(summary['average_per_month'])}")
    print(f"Average expense:    {format_currency(summary['average_expense'])}")
    print(f"Total leftover:     {format_currency(summary['total_leftover'])}")
    if summary['top_category']:
        category, amount = summary['top_category']
        print(f"Top category:       {category} ({format_currency(amount)})")
    for label, key in (('Most expensive', 'most_expensive_month'), ('Least expensive', 'least_expensive_month')):
        month, amount = summary[key]
        print(f"{label + ':':<20}{format_month_label(month)} {format_currency(amount)}")

    print("\nBy category:")
    print(stats.category_breakdown().to_string(index=False, float_format=lambda v: f"{v:,.2f}"))

    print("\nRecent months:")
    print(stats.monthly_history().head(months).to_string(index=False, na_rep='-'))


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Show spending statistics.')
    parser.add_argument('--db', type=Path, default=None, help='Database file (defaults to BUDGET_DB_PATH)')
    parser.add_argument('--months', type=int, default=12, help='How many recent months to list')
    args = parser.parse_args()
    main(db_path=args.db, months=args.months)
