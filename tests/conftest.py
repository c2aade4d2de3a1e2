"""Shared pytest fixtures for the daily budget tests."""

from __future__ import annotations

import pytest

from daily_budget.db import BudgetStore


@pytest.fixture
def store(tmp_path):
    """A fresh, initialised store in a temporary directory."""
    return BudgetStore(tmp_path / "budget.db").init_db()
