from datetime import date

import pytest

from daily_budget import allocation
from daily_budget.allocation import (
    AllocationSource,
    MonthPeriod,
    computed_daily_allocation,
    refresh_month,
    resolve_month_context,
    set_month_allocation,
    snapshot_for,
    summarize_month,
)
from daily_budget.models import AllocationMode, Earning, Expense, FixedExpense, MonthlyData, Settings

TODAY = date(2024, 6, 10)  # June has 30 days
RENT = FixedExpense(name='Rent', amount=1200.0)
INSURANCE = FixedExpense(name='Insurance', amount=300.0)
INCOME = Settings(monthly_net_income=3000.0, allocation_mode=AllocationMode.INCOME)
MANUAL = Settings(daily_allocation=25.0, allocation_mode=AllocationMode.MANUAL)


def test_days_in_month_and_classification():
    assert allocation.days_in_month('2024-02') == 29
    assert allocation.days_in_month(date(2023, 2, 1)) == 28
    assert allocation.classify_month('2024-05', TODAY) == MonthPeriod.PAST
    assert allocation.classify_month('2024-06', TODAY) == MonthPeriod.CURRENT
    assert allocation.classify_month('2025-01', TODAY) == MonthPeriod.FUTURE


def test_income_minus_fixed_expenses_over_thirty_days():
    assert computed_daily_allocation(INCOME, [RENT, INSURANCE], 30) == pytest.approx(50.0)


def test_negative_available_budget_clamps_to_zero():
    poor = Settings(monthly_net_income=1000.0)
    assert computed_daily_allocation(poor, [RENT], 30) == 0.0
    assert computed_daily_allocation(INCOME, [], 0) == 0.0


def test_current_month_in_income_mode_ignores_stored_allocation():
    snapshots = {'2024-06': MonthlyData('2024-06', 99.0, 123.0)}
    ctx = resolve_month_context('2024-06', TODAY, INCOME, [RENT, INSURANCE], snapshots)
    assert ctx.source == AllocationSource.LIVE
    assert ctx.daily_allocation == pytest.approx(50.0)
    assert ctx.day_of_month == 10
    assert ctx.allowed_budget == pytest.approx(500.0)
    assert ctx.stored_leftover == 123.0


def test_future_month_counts_zero_days():
    ctx = resolve_month_context('2024-08', TODAY, INCOME, [RENT, INSURANCE], {})
    assert ctx.period == MonthPeriod.FUTURE
    assert ctx.daily_allocation == pytest.approx(1500.0 / 31)
    assert ctx.day_of_month == 0
    assert ctx.allowed_budget == 0.0


def test_past_month_is_frozen_to_snapshot():
    snapshots = {'2024-02': MonthlyData('2024-02', 30.0, 12.0)}
    first = resolve_month_context('2024-02', TODAY, INCOME, [RENT, INSURANCE], snapshots)
    second = resolve_month_context('2024-02', TODAY, INCOME, [RENT], snapshots)
    assert first == second
    assert first.source == AllocationSource.FROZEN
    assert first.daily_allocation == 30.0
    assert first.day_of_month == 29
    assert first.allowed_budget == pytest.approx(29 * 30.0)


def test_past_month_without_snapshot_gets_zero():
    ctx = resolve_month_context('2024-01', TODAY, INCOME, [RENT], {})
    assert ctx.daily_allocation == 0.0
    assert ctx.allowed_budget == 0.0


def test_manual_mode_defaults():
    current = resolve_month_context('2024-06', TODAY, MANUAL, [], {})
    assert current.source == AllocationSource.LIVE
    assert current.daily_allocation == 25.0
    assert current.allowed_budget == 250.0

    for month in ('2024-05', '2024-07'):
        assert resolve_month_context(month, TODAY, MANUAL, [], {}).daily_allocation == 0.0


def test_manual_mode_uses_stored_override_for_any_month():
    snapshots = {
        '2024-06': MonthlyData('2024-06', 40.0, 0.0),
        '2024-07': MonthlyData('2024-07', 35.0, 0.0),
    }
    assert resolve_month_context('2024-06', TODAY, MANUAL, [], snapshots).daily_allocation == 40.0
    future = resolve_month_context('2024-07', TODAY, MANUAL, [], snapshots)
    assert future.source == AllocationSource.FROZEN
    assert future.daily_allocation == 35.0
    assert future.allowed_budget == 0.0


def test_summary_splits_spending_by_funding_source():
    ctx = resolve_month_context('2024-06', TODAY, INCOME, [RENT, INSURANCE], {})
    expenses = [
        Expense(name='Groceries', amount=300.0, date=date(2024, 6, 2)),
        Expense(name='Dinner', amount=120.0, date=date(2024, 6, 5)),
        Expense(name='Concert', amount=90.0, date=date(2024, 6, 6), paid_from_earnings=True),
    ]
    earnings = [Earning(name='Gig', amount=60.0, date=date(2024, 6, 7))]
    summary = summarize_month(ctx, expenses, earnings)

    assert summary.total_spent == pytest.approx(420.0)
    assert summary.current_budget == pytest.approx(80.0)
    assert summary.total_spent + summary.total_spent_from_earnings == pytest.approx(510.0)
    assert summary.remaining_earnings == pytest.approx(-30.0)


def test_snapshot_only_when_allocation_positive():
    ctx = resolve_month_context('2024-06', TODAY, Settings(), [], {})
    assert snapshot_for(summarize_month(ctx, [], [])) is None

    ctx = resolve_month_context('2024-06', TODAY, INCOME, [RENT, INSURANCE], {})
    expenses = [Expense(name='Groceries', amount=420.0, date=date(2024, 6, 2))]
    assert snapshot_for(summarize_month(ctx, expenses, [])) == MonthlyData('2024-06', 50.0, 80.0)


def test_refresh_month_persists_snapshot(store):
    store.update_monthly_net_income(3000.0)
    store.upsert_fixed_expense(RENT)
    store.upsert_fixed_expense(INSURANCE)
    store.upsert_expense(Expense(name='Groceries', amount=420.0, date=date(2024, 6, 3)))
    store.upsert_expense(Expense(name='Old', amount=5.0, date=date(2024, 5, 3)))

    summary = refresh_month(store, '2024-06', TODAY)

    assert summary.context.allowed_budget == pytest.approx(500.0)
    assert summary.current_budget == pytest.approx(80.0)
    assert store.get_monthly_data('2024-06') == MonthlyData('2024-06', 50.0, 80.0)
    assert refresh_month(store, '2024-06', TODAY) == summary


def test_snapshot_freezes_once_month_is_past(store):
    store.update_monthly_net_income(3000.0)
    store.upsert_fixed_expense(RENT)
    refresh_month(store, '2024-06', TODAY)

    # Income drops in July; June keeps its saved allocation
    store.update_monthly_net_income(1500.0)
    july = date(2024, 7, 2)
    june = refresh_month(store, '2024-06', july)
    assert june.context.source == AllocationSource.FROZEN
    assert june.context.daily_allocation == pytest.approx(60.0)
    assert june.context.allowed_budget == pytest.approx(1800.0)
    assert refresh_month(store, '2024-07', july).context.daily_allocation == pytest.approx(300.0 / 31)


def test_refresh_month_skips_snapshot_without_allocation(store):
    refresh_month(store, '2024-06', TODAY)
    assert store.get_monthly_data('2024-06') is None


def test_set_month_allocation_keeps_leftover(store):
    store.upsert_monthly_data(MonthlyData('2024-06', 20.0, 55.0))
    row = set_month_allocation(store, '2024-06', 30.0)
    assert row == MonthlyData('2024-06', 30.0, 55.0)
    assert set_month_allocation(store, '2024-09', 10.0) == MonthlyData('2024-09', 10.0, 0.0)


def test_repeated_refresh_is_stable_once_snapshot_exists(store):
    store.update_monthly_net_income(3000.0)
    store.upsert_fixed_expense(FixedExpense(name='Rent', amount=1500.0))

    first = refresh_month(store, '2024-06', TODAY)
    second = refresh_month(store, '2024-06', TODAY)

    assert first.context.stored_leftover == 0.0
    assert second.context.stored_leftover == pytest.approx(500.0)
    assert first == second
