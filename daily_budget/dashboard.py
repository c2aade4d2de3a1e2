"""Streamlit app for the daily budget tracker.

Pages:

* **Budget** - the viewed month's budget card, expenses and earnings, with
  month navigation and an optional per-category analysis.
* **Fixed Expenses** - monthly net income and recurring obligations that
  feed the income-mode allocation.
* **Statistics** - all-time totals, category breakdown and month / year
  history.
* **Settings** - allocation mode, manual daily allocation and per-month
  overrides.

Every render recomputes the viewed month through
:func:`allocation.refresh_month`, which also saves its snapshot.

To run the dashboard from the command line::

    streamlit run daily_budget/dashboard.py
"""

from __future__ import annotations

import logging
import os
import sqlite3
import sys
from datetime import date
from typing import Any, List, Optional

import pandas as pd
import streamlit as st

# Conditional imports to support execution both as part of a package and
# directly via ``streamlit run daily_budget/dashboard.py``.
if __package__:
    from . import allocation
    from . import visualization as viz
    from .aggregation import BudgetStatistics, expenses_frame, group_by_category
    from .config import configure_logging
    from .db import BudgetStore, get_store
    from .export import ExportResult, export_expenses_csv
    from .formatting import escape_dollar_for_markdown, format_currency, format_month_label
    from .models import (
        CATEGORIES,
        AllocationMode,
        Earning,
        Expense,
        FixedExpense,
        build_earning,
        build_expense,
        build_fixed_expense,
        month_key,
        parse_amount,
        parse_income,
    )
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from daily_budget import allocation  # type: ignore
    from daily_budget import visualization as viz  # type: ignore
    from daily_budget.aggregation import BudgetStatistics, expenses_frame, group_by_category  # type: ignore
    from daily_budget.config import configure_logging  # type: ignore
    from daily_budget.db import BudgetStore, get_store  # type: ignore
    from daily_budget.export import ExportResult, export_expenses_csv  # type: ignore
    from daily_budget.formatting import escape_dollar_for_markdown, format_currency, format_month_label  # type: ignore
    from daily_budget.models import (  # type: ignore
        CATEGORIES,
        AllocationMode,
        Earning,
        Expense,
        FixedExpense,
        build_earning,
        build_expense,
        build_fixed_expense,
        month_key,
        parse_amount,
        parse_income,
    )

logger = logging.getLogger(__name__)

PAGES = ["Budget", "Fixed Expenses", "Statistics", "Settings"]
VIEWED_MONTH_KEY = "viewed_month"


# --- State helpers ---

def shift_month(month: Any, offset: int) -> str:
    return str(allocation.to_period(month) + offset)


def viewed_month(today: Optional[date] = None) -> str:
    state = st.session_state
    if VIEWED_MONTH_KEY not in state:
        state[VIEWED_MONTH_KEY] = month_key(today or date.today())
    return state[VIEWED_MONTH_KEY]


def navigate_month(offset: int) -> str:
    state = st.session_state
    state[VIEWED_MONTH_KEY] = shift_month(viewed_month(), offset)
    return state[VIEWED_MONTH_KEY]


# --- Form submission helpers (invalid input is silently discarded) ---

def save_expense(
    store: BudgetStore,
    name: str,
    amount: str,
    category: str,
    when: Any = None,
    paid_from_earnings: bool = False,
    existing: Optional[Expense] = None,
) -> bool:
    expense = build_expense(name, amount, category, when, paid_from_earnings, existing=existing)
    if expense is None:
        return False
    return store.upsert_expense(expense)


def save_earning(
    store: BudgetStore,
    name: str,
    amount: str,
    when: Any = None,
    existing: Optional[Earning] = None,
) -> bool:
    earning = build_earning(name, amount, when, existing=existing)
    if earning is None:
        return False
    return store.upsert_earning(earning)


def save_fixed_expense(
    store: BudgetStore,
    name: str,
    amount: str,
    existing: Optional[FixedExpense] = None,
) -> bool:
    fixed = build_fixed_expense(name, amount, existing=existing)
    if fixed is None:
        return False
    return store.upsert_fixed_expense(fixed)


def save_income(store: BudgetStore, text: str) -> bool:
    income = parse_income(text)
    if income is None:
        return False
    return store.update_monthly_net_income(income)


def save_manual_allocation(store: BudgetStore, text: str, today: Optional[date] = None) -> bool:
    """Set the global manual allocation and apply it to the current month."""
    value = parse_amount(text)
    if value is None:
        return False
    store.update_daily_allocation(value)
    allocation.set_month_allocation(store, today or date.today(), value)
    return True


def run_export(store: BudgetStore) -> ExportResult:
    try:
        expenses = store.list_expenses()
    except sqlite3.Error as exc:
        logger.error("Could not read expenses for export: %s", exc)
        return ExportResult(ok=False, message=f"Error exporting: {exc}")
    return export_expenses_csv(expenses)


def show_export_result(result: ExportResult) -> None:
    if not result.ok:
        st.error(result.message)
    elif result.path is None:
        st.info(result.message)
    else:
        st.success(result.message)


# --- Pages ---

def render_budget_card(summary: allocation.MonthSummary) -> None:
    ctx = summary.context
    st.metric("Current Budget", format_currency(summary.current_budget))
    allowed_col, spent_col, earnings_col = st.columns(3)
    allowed_col.metric("Allowed", format_currency(ctx.allowed_budget), f"Day {ctx.day_of_month}", delta_color="off")
    spent_col.metric("Spent", format_currency(summary.total_spent))
    earnings_col.metric(
        "Earnings",
        format_currency(summary.remaining_earnings),
        f"of {format_currency(summary.total_earnings)}",
        delta_color="off",
    )
    label = f"{escape_dollar_for_markdown(ctx.daily_allocation)}/day"
    if ctx.source == allocation.AllocationSource.FROZEN:
        label += " (saved)"
    st.caption(label)


def _expense_rows(expenses: List[Expense]) -> pd.DataFrame:
    df = expenses_frame(expenses)
    if df.empty:
        return df
    df['date'] = df['date'].dt.date
    return df[['date', 'name', 'category', 'amount', 'paid_from_earnings']].rename(
        columns={
            'date': 'Date',
            'name': 'Name',
            'category': 'Category',
            'amount': 'Amount',
            'paid_from_earnings': 'From Earnings',
        }
    )


def _record_label(record: Any) -> str:
    parts = [record.name, format_currency(record.amount)]
    if getattr(record, "date", None) is not None:
        parts.insert(0, record.date.isoformat())
    return "  ".join(parts)


def render_expense_editor(store: BudgetStore, expenses: List[Expense]) -> None:
    if not expenses:
        st.info("No expenses this month")
        return
    st.dataframe(_expense_rows(expenses), hide_index=True, use_container_width=True)
    by_id = {e.id: e for e in expenses}
    with st.expander("Edit or delete an expense"):
        choice = st.selectbox(
            "Expense",
            list(by_id),
            format_func=lambda i: _record_label(by_id[i]),
            key="edit_expense_choice",
        )
        expense = by_id[choice]
        with st.form(f"edit_expense_{expense.id}"):
            name = st.text_input("Name", value=expense.name)
            amount = st.text_input("Amount", value=f"{expense.amount:.2f}")
            category = st.selectbox(
                "Category",
                CATEGORIES,
                index=CATEGORIES.index(expense.category) if expense.category in CATEGORIES else 0,
            )
            when = st.date_input("Date", value=expense.date)
            from_earnings = st.checkbox("Paid from earnings", value=expense.paid_from_earnings)
            save_col, delete_col = st.columns(2)
            if save_col.form_submit_button("Save"):
                if save_expense(store, name, amount, category, when, from_earnings, existing=expense):
                    st.rerun()
            if delete_col.form_submit_button("Delete"):
                store.delete_expense(expense.id)
                st.rerun()


def render_earning_editor(store: BudgetStore, earnings: List[Earning]) -> None:
    if not earnings:
        return
    st.subheader("Earnings")
    for earning in earnings:
        name_col, amount_col = st.columns([3, 2])
        name_col.write(f"{earning.name} ({earning.date.isoformat()})")
        amount_col.write(escape_dollar_for_markdown(earning.amount))
    by_id = {e.id: e for e in earnings}
    with st.expander("Edit or delete an earning"):
        choice = st.selectbox(
            "Earning",
            list(by_id),
            format_func=lambda i: _record_label(by_id[i]),
            key="edit_earning_choice",
        )
        earning = by_id[choice]
        with st.form(f"edit_earning_{earning.id}"):
            name = st.text_input("Name", value=earning.name)
            amount = st.text_input("Amount", value=f"{earning.amount:.2f}")
            when = st.date_input("Date", value=earning.date)
            save_col, delete_col = st.columns(2)
            if save_col.form_submit_button("Save"):
                if save_earning(store, name, amount, when, existing=earning):
                    st.rerun()
            if delete_col.form_submit_button("Delete"):
                store.delete_earning(earning.id)
                st.rerun()


def render_add_forms(store: BudgetStore, month: str, today: date) -> None:
    default_day = today if month_key(today) == month else allocation.to_period(month).start_time.date()
    expense_tab, earning_tab = st.tabs(["Add expense", "Add earning"])
    with expense_tab:
        with st.form("add_expense", clear_on_submit=True):
            name = st.text_input("Name")
            amount = st.text_input("Amount")
            category = st.selectbox("Category", CATEGORIES)
            when = st.date_input("Date", value=default_day)
            from_earnings = st.checkbox("Paid from earnings")
            if st.form_submit_button("Add"):
                if save_expense(store, name, amount, category, when, from_earnings):
                    st.rerun()
    with earning_tab:
        with st.form("add_earning", clear_on_submit=True):
            name = st.text_input("Name")
            amount = st.text_input("Amount")
            when = st.date_input("Date", value=default_day)
            if st.form_submit_button("Add"):
                if save_earning(store, name, amount, when):
                    st.rerun()


def render_category_analysis(expenses: List[Expense]) -> None:
    st.subheader("Category Analysis")
    breakdown = group_by_category(expenses_frame(expenses))
    if breakdown.empty:
        st.info("No expenses this month")
        return
    for row in breakdown.itertuples(index=False):
        st.write(f"**{row.Category}** ({row.Count}) {escape_dollar_for_markdown(row.Total)}, {row.Percentage:.1f}% of total")
        st.progress(min(max(float(row.Percentage) / 100, 0.0), 1.0))


def render_budget_page(store: BudgetStore, today: date) -> None:
    month = viewed_month(today)
    prev_col, label_col, next_col = st.columns([1, 3, 1])
    if prev_col.button("< Previous"):
        navigate_month(-1)
        st.rerun()
    if next_col.button("Next >"):
        navigate_month(1)
        st.rerun()
    label_col.subheader(format_month_label(month))

    summary = allocation.refresh_month(store, month, today)
    render_budget_card(summary)

    expenses = store.list_expenses(month)
    if st.toggle("Analysis mode", key="analysis_mode"):
        st.plotly_chart(
            viz.create_budget_gauge(summary.context.allowed_budget, summary.total_spent),
            use_container_width=True,
        )
        render_category_analysis(expenses)
    else:
        st.subheader("Expenses")
        render_expense_editor(store, expenses)
        render_earning_editor(store, store.list_earnings(month))
        render_add_forms(store, month, today)


def render_fixed_expense_editor(store: BudgetStore, fixed: List[FixedExpense]) -> None:
    if not fixed:
        st.info("No fixed expenses yet")
        return
    for fx in fixed:
        name_col, amount_col = st.columns([3, 2])
        name_col.write(fx.name)
        amount_col.write(escape_dollar_for_markdown(fx.amount))
    by_id = {fx.id: fx for fx in fixed}
    with st.expander("Edit or delete a fixed expense"):
        choice = st.selectbox(
            "Fixed expense",
            list(by_id),
            format_func=lambda i: _record_label(by_id[i]),
            key="edit_fixed_choice",
        )
        fx = by_id[choice]
        with st.form(f"edit_fixed_{fx.id}"):
            name = st.text_input("Name", value=fx.name)
            amount = st.text_input("Amount", value=f"{fx.amount:.2f}")
            save_col, delete_col = st.columns(2)
            if save_col.form_submit_button("Save"):
                if save_fixed_expense(store, name, amount, existing=fx):
                    st.rerun()
            if delete_col.form_submit_button("Delete"):
                store.delete_fixed_expense(fx.id)
                st.rerun()


def render_fixed_expenses_page(store: BudgetStore, today: date) -> None:
    st.header("Fixed Expenses")
    settings = store.get_settings()
    fixed = store.list_fixed_expenses()
    total_fixed = sum(fx.amount for fx in fixed)
    days = allocation.days_in_month(today)

    income_col, fixed_col, available_col = st.columns(3)
    income_col.metric("Monthly Net Income", format_currency(settings.monthly_net_income))
    fixed_col.metric("Fixed Expenses", format_currency(total_fixed))
    available_col.metric("Available", format_currency(settings.monthly_net_income - total_fixed))
    st.caption(
        f"Daily allocation this month: "
        f"{escape_dollar_for_markdown(allocation.computed_daily_allocation(settings, fixed, days))}/day"
    )

    with st.form("edit_income"):
        income = st.text_input("Monthly net income", value=f"{settings.monthly_net_income:.2f}")
        if st.form_submit_button("Save income"):
            if save_income(store, income):
                st.rerun()

    render_fixed_expense_editor(store, fixed)

    with st.form("add_fixed_expense", clear_on_submit=True):
        name = st.text_input("Name")
        amount = st.text_input("Amount")
        if st.form_submit_button("Add fixed expense"):
            if save_fixed_expense(store, name, amount):
                st.rerun()


def render_statistics_page(store: BudgetStore) -> None:
    st.header("Global Statistics")
    stats = BudgetStatistics(store.list_expenses(), store.list_earnings(), store.list_monthly_data())
    summary = stats.general_summary()

    cols = st.columns(3)
    cols[0].metric("Total Spent (All Time)", format_currency(summary['total_spent']))
    cols[1].metric("Total Expenses", summary['expense_count'])
    cols[2].metric("Months Tracked", summary['months_tracked'])
    cols = st.columns(3)
    cols[0].metric("Average per Month", format_currency(summary['average_per_month']))
    cols[1].metric("Average Expense", format_currency(summary['average_expense']))
    cols[2].metric("Total Leftover Budget", format_currency(summary['total_leftover']))
    if summary['top_category']:
        category, amount = summary['top_category']
        st.write(f"Top Category: **{category}** ({escape_dollar_for_markdown(amount)})")
    if summary['most_expensive_month']:
        month, amount = summary['most_expensive_month']
        st.write(f"Most Expensive Month: **{format_month_label(month)}** {escape_dollar_for_markdown(amount)}")
    if summary['least_expensive_month']:
        month, amount = summary['least_expensive_month']
        st.write(f"Least Expensive Month: **{format_month_label(month)}** {escape_dollar_for_markdown(amount)}")
    st.write(
        f"Earnings: {escape_dollar_for_markdown(summary['total_earnings'])}, "
        f"net of earnings-funded spending: {escape_dollar_for_markdown(summary['net_earnings'])}"
    )

    st.subheader("Category Breakdown")
    breakdown = stats.category_breakdown()
    st.plotly_chart(viz.create_category_pie_chart(breakdown), use_container_width=True)
    st.dataframe(breakdown, hide_index=True, use_container_width=True)

    st.subheader("Monthly Spending History")
    monthly = stats.monthly_history()
    st.plotly_chart(viz.create_monthly_history_chart(monthly), use_container_width=True)
    st.dataframe(monthly, hide_index=True, use_container_width=True)

    with st.expander("Yearly Spending History"):
        yearly = stats.yearly_history()
        st.plotly_chart(viz.create_yearly_history_chart(yearly), use_container_width=True)
        st.dataframe(yearly, hide_index=True, use_container_width=True)


def render_settings_page(store: BudgetStore, today: date) -> None:
    st.header("Settings")
    settings = store.get_settings()
    modes = [AllocationMode.INCOME, AllocationMode.MANUAL]
    labels = {
        AllocationMode.INCOME: "From income minus fixed expenses",
        AllocationMode.MANUAL: "Manual daily allocation",
    }
    mode = st.radio(
        "Daily allocation",
        modes,
        index=modes.index(settings.allocation_mode),
        format_func=lambda m: labels[m],
    )
    if mode != settings.allocation_mode:
        store.update_allocation_mode(mode)
        st.rerun()

    if mode == AllocationMode.MANUAL:
        with st.form("manual_allocation"):
            value = st.text_input("Daily allocation", value=f"{settings.daily_allocation:.2f}")
            if st.form_submit_button("Save"):
                if save_manual_allocation(store, value, today):
                    st.rerun()
        month = viewed_month(today)
        with st.form("month_override"):
            value = st.text_input(f"Daily allocation for {format_month_label(month)}")
            if st.form_submit_button("Override month"):
                amount = parse_amount(value)
                if amount is not None:
                    allocation.set_month_allocation(store, month, amount)
                    st.rerun()


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(page_title="Daily Budget", layout="centered")
    st.title("Daily Budget")

    page = st.sidebar.radio("Navigate", PAGES)
    export_clicked = st.sidebar.button("Export to CSV")

    today = date.today()
    try:
        store = get_store()
        if export_clicked:
            show_export_result(run_export(store))
        if page == "Budget":
            render_budget_page(store, today)
        elif page == "Fixed Expenses":
            render_fixed_expenses_page(store, today)
        elif page == "Statistics":
            render_statistics_page(store)
        else:
            render_settings_page(store, today)
    except sqlite3.Error as exc:  # pragma: no cover - UI display only
        logger.exception("Database error while rendering %s", page)
        st.error(f"Database error: {exc}")


if __name__ == "__main__":  # pragma: no cover
    main()
