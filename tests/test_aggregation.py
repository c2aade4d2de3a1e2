from datetime import date

import pandas as pd
import pytest

from daily_budget.aggregation import (
    BudgetStatistics,
    earnings_frame,
    expenses_frame,
    extreme_month,
    group_by_category,
    group_by_month,
    group_by_year,
    net_earnings_for_period,
    split_spending,
    total_leftover,
)
from daily_budget.models import Earning, Expense, MonthlyData


def _expenses():
    return [
        Expense(name='Cinema', amount=100.0, category='Leisure', date=date(2024, 1, 15)),
        Expense(name='Groceries', amount=300.0, category='Groceries', date=date(2024, 2, 3)),
        Expense(name='Bus', amount=50.0, category='Transportation', date=date(2024, 2, 20),
                paid_from_earnings=True),
    ]


def test_group_by_month_and_extremes():
    by_month = group_by_month(expenses_frame(_expenses()))
    assert list(by_month.index) == ['2024-01', '2024-02']
    assert by_month['2024-02'] == pytest.approx(350.0)
    assert extreme_month(by_month, 'max') == ('2024-02', 350.0)
    assert extreme_month(by_month, 'min') == ('2024-01', 100.0)


def test_extreme_month_ties_go_to_earliest_month():
    totals = pd.Series({'2024-03': 80.0, '2024-01': 80.0, '2024-02': 80.0})
    assert extreme_month(totals, 'max') == ('2024-01', 80.0)
    assert extreme_month(totals, 'min') == ('2024-01', 80.0)


def test_extreme_month_empty_and_invalid():
    assert extreme_month(pd.Series(dtype=float)) is None
    with pytest.raises(ValueError):
        extreme_month(pd.Series({'2024-01': 1.0}), 'median')


def test_group_by_year():
    expenses = _expenses() + [Expense(name='Gift', amount=20.0, date=date(2023, 12, 24))]
    by_year = group_by_year(expenses_frame(expenses))
    assert by_year.to_dict() == {2023: 20.0, 2024: 450.0}


def test_category_percentages_sum_to_100():
    breakdown = group_by_category(expenses_frame(_expenses()))
    assert list(breakdown['Category']) == ['Groceries', 'Leisure', 'Transportation']
    assert breakdown['Percentage'].sum() == pytest.approx(100.0)
    assert breakdown.iloc[0]['Count'] == 1
    assert breakdown.iloc[0]['Percentage'] == pytest.approx(300.0 / 450.0 * 100)


def test_category_ties_sorted_alphabetically():
    expenses = [
        Expense(name='a', amount=10.0, category='Shopping'),
        Expense(name='b', amount=10.0, category='Bills'),
    ]
    assert list(group_by_category(expenses_frame(expenses))['Category']) == ['Bills', 'Shopping']


def test_empty_inputs():
    empty = expenses_frame([])
    assert group_by_month(empty).empty
    assert group_by_category(empty).empty
    assert list(group_by_category(empty).columns) == ['Category', 'Total', 'Count', 'Percentage']


def test_split_spending_partitions_total():
    from_budget, from_earnings = split_spending(_expenses())
    assert from_budget == pytest.approx(400.0)
    assert from_earnings == pytest.approx(50.0)
    assert from_budget + from_earnings == pytest.approx(sum(e.amount for e in _expenses()))


def test_net_earnings_may_go_negative():
    earnings = earnings_frame([
        Earning(name='Tutoring', amount=30.0, date=date(2024, 2, 1)),
        Earning(name='Bonus', amount=200.0, date=date(2024, 1, 1)),
    ])
    expenses = expenses_frame(_expenses())
    assert net_earnings_for_period(earnings, expenses, '2024-02') == pytest.approx(-20.0)
    assert net_earnings_for_period(earnings, expenses, '2024-01') == pytest.approx(200.0)
    assert net_earnings_for_period(earnings, expenses, '2024') == pytest.approx(180.0)
    assert net_earnings_for_period(earnings_frame([]), expenses_frame([])) == 0.0


def test_total_leftover_filters_months():
    rows = [MonthlyData('2024-01', 50.0, 40.0), MonthlyData('2024-02', 50.0, -10.0),
            MonthlyData('2024-03', 50.0, 100.0)]
    assert total_leftover(rows) == pytest.approx(130.0)
    assert total_leftover(rows, ['2024-01', '2024-02']) == pytest.approx(30.0)


def test_statistics_summary():
    monthly = [
        MonthlyData('2024-01', 20.0, 520.0),
        MonthlyData('2024-02', 20.0, 180.0),
        MonthlyData('2024-03', 20.0, 999.0),  # no expenses that month
    ]
    earnings = [Earning(name='Gig', amount=80.0, date=date(2024, 2, 10))]
    summary = BudgetStatistics(_expenses(), earnings, monthly).general_summary()

    assert summary['total_spent'] == pytest.approx(450.0)
    assert summary['spent_from_budget'] == pytest.approx(400.0)
    assert summary['spent_from_earnings'] == pytest.approx(50.0)
    assert summary['expense_count'] == 3
    assert summary['months_tracked'] == 2
    assert summary['average_per_month'] == pytest.approx(225.0)
    assert summary['average_expense'] == pytest.approx(150.0)
    assert summary['top_category'] == ('Groceries', 300.0)
    assert summary['total_leftover'] == pytest.approx(700.0)
    assert summary['most_expensive_month'] == ('2024-02', 350.0)
    assert summary['least_expensive_month'] == ('2024-01', 100.0)
    assert summary['total_earnings'] == pytest.approx(80.0)
    assert summary['net_earnings'] == pytest.approx(30.0)


def test_statistics_summary_without_expenses():
    summary = BudgetStatistics([]).general_summary()
    assert summary['total_spent'] == 0.0
    assert summary['months_tracked'] == 0
    assert summary['average_per_month'] == 0.0
    assert summary['top_category'] is None
    assert summary['most_expensive_month'] is None


def test_monthly_history_newest_first():
    monthly = [MonthlyData('2024-02', 20.0, 180.0)]
    history = BudgetStatistics(_expenses(), monthly_data=monthly).monthly_history()
    assert list(history['Month']) == ['2024-02', '2024-01']
    assert list(history['Spent']) == [350.0, 100.0]
    assert history.loc[0, 'Leftover'] == 180.0
    assert pd.isna(history.loc[1, 'Leftover'])


def test_yearly_history_sums_leftovers():
    monthly = [
        MonthlyData('2024-01', 20.0, 500.0),
        MonthlyData('2024-02', 20.0, 200.0),
        MonthlyData('2023-11', 20.0, 10.0),
    ]
    expenses = _expenses() + [Expense(name='Gift', amount=20.0, date=date(2023, 12, 24))]
    history = BudgetStatistics(expenses, monthly_data=monthly).yearly_history()
    assert list(history['Year']) == [2024, 2023]
    assert list(history['Spent']) == [450.0, 20.0]
    assert list(history['Leftover']) == [700.0, 10.0]
