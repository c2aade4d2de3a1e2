from datetime import date

from daily_budget.export import (
    CSV_HEADER,
    NOTHING_TO_EXPORT,
    export_expenses_csv,
    export_filename,
    expenses_to_csv,
)
from daily_budget.models import Expense


def _lunch():
    return Expense(id='e1', name='Lunch', amount=12.5, category='Eating Out', date=date(2024, 5, 2))


def test_csv_content_quotes_strings_only():
    bus = Expense(id='e2', name='Bus, return', amount=3.0, category='Transportation',
                  date=date(2024, 5, 1))
    text = expenses_to_csv([_lunch(), bus])
    assert text.splitlines() == [
        CSV_HEADER,
        '"e1","Lunch",12.5,"Eating Out","2024-05-02"',
        '"e2","Bus, return",3.0,"Transportation","2024-05-01"',
    ]


def test_export_filename_uses_millis():
    assert export_filename(1700000000.123) == 'daily_budget_expenses_1700000000123.csv'


def test_export_writes_file(tmp_path):
    result = export_expenses_csv([_lunch()], export_dir=tmp_path / 'out', now=1.5)

    assert result.ok
    assert result.count == 1
    assert result.path == tmp_path / 'out' / 'daily_budget_expenses_1500.csv'
    assert result.message == f"Exported 1 expenses to {result.path}"
    assert result.path.read_text(encoding='utf-8').startswith(CSV_HEADER + '\n"e1"')


def test_export_without_expenses_creates_no_file(tmp_path):
    result = export_expenses_csv([], export_dir=tmp_path)
    assert result.ok
    assert result.message == NOTHING_TO_EXPORT
    assert result.path is None
    assert list(tmp_path.iterdir()) == []


def test_export_reports_io_error(tmp_path):
    blocker = tmp_path / 'not_a_dir'
    blocker.write_text('x')
    result = export_expenses_csv([_lunch()], export_dir=blocker)
    assert not result.ok
    assert result.message.startswith('Error exporting:')
    assert result.path is None
