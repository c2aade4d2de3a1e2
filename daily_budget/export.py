"""CSV export of expenses.

Output contract: a plain ``ID,Name,Amount,Category,Date`` header followed by
one row per expense with string fields double-quoted and the amount left
unquoted, in the order the expenses were given (the store returns newest
first). Exporting an empty list writes nothing.
"""

from __future__ import annotations

import csv
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

try:
    from .config import EXPORT_DIR
    from .models import Expense
except ImportError:
    from config import EXPORT_DIR
    from models import Expense

logger = logging.getLogger(__name__)

CSV_HEADER = "ID,Name,Amount,Category,Date"
FILE_PREFIX = "daily_budget_expenses"
NOTHING_TO_EXPORT = "No expenses to export"


@dataclass(frozen=True)
class ExportResult:
    ok: bool
    message: str
    path: Optional[Path] = None
    count: int = 0


def expenses_to_csv(expenses: Iterable[Expense]) -> str:
    """Render expenses in the export format, header included."""
    rows = [
        {
            'ID': e.id,
            'Name': e.name,
            'Amount': float(e.amount),
            'Category': e.category,
            'Date': e.date.isoformat(),
        }
        for e in expenses
    ]
    df = pd.DataFrame(rows, columns=CSV_HEADER.split(','))
    body = df.to_csv(
        index=False,
        header=False,
        quoting=csv.QUOTE_NONNUMERIC,
        lineterminator='\n',
    )
    return f"{CSV_HEADER}\n{body}"


def export_filename(now: Optional[float] = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f"{FILE_PREFIX}_{millis}.csv"


def export_expenses_csv(
    expenses: Iterable[Expense],
    export_dir: Optional[Path] = None,
    now: Optional[float] = None,
) -> ExportResult:
    """Write all expenses to a timestamped CSV file.

    Args:
        expenses: Expenses to export, already in output order
        export_dir: Target directory, defaults to EXPORT_DIR from config
        now: Epoch seconds used for the file name (defaults to the clock)

    Returns:
        ExportResult; ``ok`` is False only for I/O failures. An empty
        expense list creates no file and reports NOTHING_TO_EXPORT.
    """
    expenses = list(expenses)
    if not expenses:
        return ExportResult(ok=True, message=NOTHING_TO_EXPORT)

    target_dir = Path(export_dir) if export_dir is not None else EXPORT_DIR
    path = target_dir / export_filename(now)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8', newline='') as handle:
            handle.write(expenses_to_csv(expenses))
    except OSError as exc:
        logger.error("Export to %s failed: %s", path, exc)
        return ExportResult(ok=False, message=f"Error exporting: {exc}")

    logger.info("Exported %d expenses to %s", len(expenses), path)
    return ExportResult(
        ok=True,
        message=f"Exported {len(expenses)} expenses to {path}",
        path=path,
        count=len(expenses),
    )
