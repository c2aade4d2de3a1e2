"""Plotly visualisation helpers for the budget dashboard.

Each function accepts one of the frames produced by
:mod:`daily_budget.aggregation` and returns a
``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``. Empty input yields an empty figure titled
"No data to display" instead of raising.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_category_pie_chart(breakdown: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Pie chart of spending share per category.

    Parameters
    ----------
    breakdown : pandas.DataFrame
        Output of :func:`aggregation.group_by_category` (Category, Total, ...).
    title : str, optional
        Chart title.
    """
    if breakdown.empty:
        return _empty_figure()
    fig = px.pie(breakdown, names="Category", values="Total")
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_monthly_history_chart(history: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Grouped bars of spent vs. leftover budget per month.

    Months without a stored snapshot show no leftover bar.
    """
    if history.empty:
        return _empty_figure()
    df = history.sort_values("Month")
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["Month"], y=df["Spent"], name="Spent"))
    fig.add_trace(go.Bar(x=df["Month"], y=df["Leftover"], name="Leftover"))
    fig.update_layout(
        title=title or "Monthly spending history",
        barmode="group",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_yearly_history_chart(history: pd.DataFrame, title: str | None = None) -> go.Figure:
    if history.empty:
        return _empty_figure()
    df = history.sort_values("Year").copy()
    df["Year"] = df["Year"].astype(str)
    fig = px.bar(df, x="Year", y=["Spent", "Leftover"], barmode="group")
    fig.update_layout(
        title=title or "Yearly spending history",
        xaxis_title="Year",
        yaxis_title="Amount",
    )
    return fig


def create_budget_gauge(allowed: float, spent: float, title: str | None = None) -> go.Figure:
    """Indicator showing how much of the allowed budget has been spent."""
    upper = max(allowed, spent, 1.0)
    fig = go.Figure(
        go.Indicator(
            mode="gauge+number+delta",
            value=spent,
            delta={"reference": allowed, "increasing": {"color": "red"}, "decreasing": {"color": "green"}},
            gauge={
                "axis": {"range": [0, upper]},
                "threshold": {"line": {"color": "red", "width": 3}, "value": allowed},
            },
            title={"text": title or "Spent vs. allowed"},
        )
    )
    return fig
