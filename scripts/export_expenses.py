#!/usr/bin/env python3
"""Export every stored expense to a timestamped CSV file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from daily_budget.config import configure_logging
from daily_budget.db import BudgetStore
from daily_budget.export import export_expenses_csv


def main(db_path: Optional[Path] = None, output_dir: Optional[Path] = None) -> int:
    configure_logging()
    store = BudgetStore(db_path).init_db()
    result = export_expenses_csv(store.list_expenses(), export_dir=output_dir)
    print(result.message)
    return 0 if result.ok else 1


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Export all expenses to CSV.')
    parser.add_argument('--db', type=Path, default=None, help='Database file (defaults to BUDGET_DB_PATH)')
    parser.add_argument('--output-dir', type=Path, default=None, help='Directory for the CSV file')
    args = parser.parse_args()
    sys.exit(main(db_path=args.db, output_dir=args.output_dir))
