"""Formatting utilities for currency and month labels."""

from __future__ import annotations

from typing import Any, Union

import pandas as pd

try:
    from .models import month_key
except ImportError:
    from models import month_key


def format_currency(amount: Union[float, int]) -> str:
    """Format a currency amount with proper formatting.

    Args:
        amount: The amount to format; negatives keep their minus sign

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "-$80.00")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-80)
        '-$80.00'
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def escape_dollar_for_markdown(amount: float) -> str:
    """Format an amount and escape the dollar sign so Streamlit markdown
    does not treat it as a LaTeX delimiter."""
    return format_currency(amount).replace("$", "\\$")


def format_month_label(month: Any) -> str:
    """``2024-01`` -> ``January 2024``."""
    return pd.Period(month_key(month), freq="M").strftime("%B %Y")
