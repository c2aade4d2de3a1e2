from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

# Import configuration
try:
    from .config import (
        DB_PATH,
        DEFAULT_DAILY_ALLOCATION,
        DEFAULT_MONTHLY_NET_INCOME,
        ensure_data_directories,
    )
    from .models import (
        AllocationMode,
        Earning,
        Expense,
        FixedExpense,
        MonthlyData,
        Settings,
        month_key,
    )
except ImportError:
    from config import (
        DB_PATH,
        DEFAULT_DAILY_ALLOCATION,
        DEFAULT_MONTHLY_NET_INCOME,
        ensure_data_directories,
    )
    from models import (
        AllocationMode,
        Earning,
        Expense,
        FixedExpense,
        MonthlyData,
        Settings,
        month_key,
    )

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS settings (
    id INTEGER PRIMARY KEY,
    daily_allocation REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    amount REAL NOT NULL,
    category TEXT NOT NULL,
    date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS earnings (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    amount REAL NOT NULL,
    date TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS monthly_data (
    month TEXT PRIMARY KEY,
    daily_allocation REAL NOT NULL,
    leftover_budget REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS fixed_expenses (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    amount REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS ix_expenses_date ON expenses (date);
CREATE INDEX IF NOT EXISTS ix_earnings_date ON earnings (date);
"""

# (table, column, definition) added after the first schema version
ADDITIVE_COLUMNS: Tuple[Tuple[str, str, str], ...] = (
    ("settings", "monthly_net_income", f"REAL NOT NULL DEFAULT {DEFAULT_MONTHLY_NET_INCOME}"),
    ("settings", "allocation_mode", f"TEXT NOT NULL DEFAULT '{AllocationMode.INCOME.value}'"),
    ("expenses", "paid_from_earnings", "INTEGER NOT NULL DEFAULT 0"),
)

EXPENSE_COLUMNS = "id, name, amount, category, date, paid_from_earnings"
EARNING_COLUMNS = "id, name, amount, date"


def _month_prefix(month) -> str:
    return f"{month_key(month)}%"


def _row_to_expense(row: sqlite3.Row) -> Expense:
    return Expense(
        id=row["id"],
        name=row["name"],
        amount=float(row["amount"]),
        category=row["category"],
        date=date.fromisoformat(row["date"][:10]),
        paid_from_earnings=bool(row["paid_from_earnings"]),
    )


def _row_to_earning(row: sqlite3.Row) -> Earning:
    return Earning(
        id=row["id"],
        name=row["name"],
        amount=float(row["amount"]),
        date=date.fromisoformat(row["date"][:10]),
    )


def _row_to_monthly_data(row: sqlite3.Row) -> MonthlyData:
    return MonthlyData(
        month=row["month"],
        daily_allocation=float(row["daily_allocation"]),
        leftover_budget=float(row["leftover_budget"]),
    )


class BudgetStore:
    """sqlite3-backed CRUD gateway for settings, expenses, earnings,
    fixed expenses and monthly snapshots.

    The store does no budget arithmetic; it only reads and writes rows.
    Lookups that find nothing return ``None`` or an empty list.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the store.

        Args:
            db_path: Optional custom database file. Defaults to DB_PATH
                     from config.
        """
        self.db_path = Path(db_path) if db_path is not None else DB_PATH

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        if self.db_path == DB_PATH:
            ensure_data_directories()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def init_db(self) -> "BudgetStore":
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()
            # Run migrations to add new columns if they don't exist
            self._migrate_database(conn)
            conn.execute(
                "INSERT OR IGNORE INTO settings (id, daily_allocation) VALUES (1, ?)",
                (DEFAULT_DAILY_ALLOCATION,),
            )
            conn.commit()
        return self

    @staticmethod
    def _migrate_database(conn: sqlite3.Connection) -> None:
        """Add new columns to existing database if they don't exist."""
        cursor = conn.cursor()
        for table, column_name, definition in ADDITIVE_COLUMNS:
            cursor.execute(f"PRAGMA table_info({table})")
            existing_columns = [row[1] for row in cursor.fetchall()]
            if column_name in existing_columns:
                continue
            try:
                cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column_name} {definition}")
                logger.info("Added column %s to %s table", column_name, table)
            except sqlite3.OperationalError as e:
                if "duplicate column name" not in str(e):
                    raise
        conn.commit()

    # --- Settings ---

    def get_settings(self) -> Settings:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT daily_allocation, monthly_net_income, allocation_mode FROM settings WHERE id = 1"
            ).fetchone()
        if row is None:
            return Settings()
        return Settings(
            daily_allocation=float(row["daily_allocation"]),
            monthly_net_income=float(row["monthly_net_income"]),
            allocation_mode=AllocationMode.parse(row["allocation_mode"]),
        )

    def _update_setting(self, column: str, value) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(f"UPDATE settings SET {column} = ? WHERE id = 1", (value,))
            conn.commit()
            return cursor.rowcount > 0

    def update_daily_allocation(self, allocation: float) -> bool:
        return self._update_setting("daily_allocation", float(allocation))

    def update_monthly_net_income(self, income: float) -> bool:
        return self._update_setting("monthly_net_income", float(income))

    def update_allocation_mode(self, mode: AllocationMode) -> bool:
        return self._update_setting("allocation_mode", AllocationMode.parse(mode).value)

    # --- Expenses ---

    def list_expenses(self, month=None) -> List[Expense]:
        """Return expenses newest first, optionally only those in ``month``."""
        sql = f"SELECT {EXPENSE_COLUMNS} FROM expenses"
        params: List[str] = []
        if month is not None:
            sql += " WHERE date LIKE ?"
            params.append(_month_prefix(month))
        sql += " ORDER BY date DESC"
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_expense(row) for row in rows]

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT {EXPENSE_COLUMNS} FROM expenses WHERE id = ?", (expense_id,)
            ).fetchone()
        return _row_to_expense(row) if row else None

    def upsert_expense(self, expense: Expense) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO expenses (id, name, amount, category, date, paid_from_earnings) "
                "VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, amount = excluded.amount, "
                "category = excluded.category, date = excluded.date, "
                "paid_from_earnings = excluded.paid_from_earnings",
                (
                    expense.id,
                    expense.name,
                    float(expense.amount),
                    expense.category,
                    expense.date.isoformat(),
                    int(bool(expense.paid_from_earnings)),
                ),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_expense(self, expense_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            conn.commit()
            return cursor.rowcount > 0

    # --- Earnings ---

    def list_earnings(self, month=None) -> List[Earning]:
        sql = f"SELECT {EARNING_COLUMNS} FROM earnings"
        params: List[str] = []
        if month is not None:
            sql += " WHERE date LIKE ?"
            params.append(_month_prefix(month))
        sql += " ORDER BY date DESC"
        with self.connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [_row_to_earning(row) for row in rows]

    def get_earning(self, earning_id: str) -> Optional[Earning]:
        with self.connect() as conn:
            row = conn.execute(
                f"SELECT {EARNING_COLUMNS} FROM earnings WHERE id = ?", (earning_id,)
            ).fetchone()
        return _row_to_earning(row) if row else None

    def upsert_earning(self, earning: Earning) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO earnings (id, name, amount, date) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, amount = excluded.amount, "
                "date = excluded.date",
                (earning.id, earning.name, float(earning.amount), earning.date.isoformat()),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_earning(self, earning_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM earnings WHERE id = ?", (earning_id,))
            conn.commit()
            return cursor.rowcount > 0

    # --- Fixed expenses ---

    def list_fixed_expenses(self) -> List[FixedExpense]:
        """Return fixed expenses sorted by amount, highest first."""
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT id, name, amount FROM fixed_expenses ORDER BY amount DESC"
            ).fetchall()
        return [FixedExpense(id=r["id"], name=r["name"], amount=float(r["amount"])) for r in rows]

    def upsert_fixed_expense(self, fixed_expense: FixedExpense) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO fixed_expenses (id, name, amount) VALUES (?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, amount = excluded.amount",
                (fixed_expense.id, fixed_expense.name, float(fixed_expense.amount)),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete_fixed_expense(self, fixed_expense_id: str) -> bool:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM fixed_expenses WHERE id = ?", (fixed_expense_id,))
            conn.commit()
            return cursor.rowcount > 0

    # --- Monthly snapshots ---

    def get_monthly_data(self, month) -> Optional[MonthlyData]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT month, daily_allocation, leftover_budget FROM monthly_data WHERE month = ?",
                (month_key(month),),
            ).fetchone()
        return _row_to_monthly_data(row) if row else None

    def list_monthly_data(self) -> List[MonthlyData]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT month, daily_allocation, leftover_budget FROM monthly_data ORDER BY month DESC"
            ).fetchall()
        return [_row_to_monthly_data(row) for row in rows]

    def upsert_monthly_data(self, data: MonthlyData) -> bool:
        with self.connect() as conn:
            cursor = conn.execute(
                "INSERT OR REPLACE INTO monthly_data (month, daily_allocation, leftover_budget) "
                "VALUES (?, ?, ?)",
                (month_key(data.month), float(data.daily_allocation), float(data.leftover_budget)),
            )
            conn.commit()
            return cursor.rowcount > 0


_default_store: Optional[BudgetStore] = None


def get_store() -> BudgetStore:
    """Return the process-wide store at DB_PATH, initialising it on first use."""
    global _default_store
    if _default_store is None:
        _default_store = BudgetStore().init_db()
    return _default_store
