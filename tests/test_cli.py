from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from admin_records import config as config_mod
from admin_records.cli import app

from tests.helpers.db import bootstrap_sqlite_db, seed_documents

runner = CliRunner()

TREE = {
    "PettyCash": {
        "admin": {
            "e1": {
                "date": "2024-01-05",
                "amount": 250,
                "category": "Food",
                "description": "Snacks",
                "approval": "Approved",
            },
            "v1": {
                "date": "2024-03-01",
                "items": [
                    {"amount": 100, "category": "Stationery", "description": "Pens", "date": "2024-03-01"},
                    {"amount": 40, "category": "Travel", "description": "Auto", "date": "2024-03-02"},
                ],
            },
        }
    },
    "Expenses": {"PettyCash": [{"date": "2023-12-31", "amount": 75, "category": "Medical", "description": "Kit"}]},
    "Assets": {"a1": {"description": "Dell laptop", "category": "IT Assets", "price": 50000, "date": "2024-02-01"}},
    "Employees": {"e1": {"name": "Kiran", "phone": "98450"}},
    "PettyCashDeleteReport": {
        "2024": {
            "d1": {"date": "2024-03-10", "description": "Broken chair", "total": 1200, "approval": "Delete"},
            "r1": {"date": "2024-03-12", "description": "Team lunch", "total": 800, "approval": "Rejected"},
        }
    },
}


@pytest.fixture
def dump(tmp_path: Path) -> Path:
    p = tmp_path / "dump.json"
    p.write_text(json.dumps(TREE), encoding="utf-8")
    return p


def test_petty_cash_lists_entries_and_totals(dump):
    result = runner.invoke(app, ["petty-cash", "--dump-path", str(dump)])
    assert result.exit_code == 0, result.output
    assert "Entries: 4  Total: ₹465" in result.output
    assert "Approved: 1  Total: ₹250" in result.output


def test_petty_cash_period_filter(dump):
    result = runner.invoke(app, ["petty-cash", "--dump-path", str(dump), "--year", "2024", "--month", "3"])
    assert result.exit_code == 0, result.output
    assert "Entries: 2  Total: ₹140" in result.output


def test_month_without_year_is_an_error(dump):
    result = runner.invoke(app, ["petty-cash", "--dump-path", str(dump), "--month", "3"])
    assert result.exit_code == 1
    assert "Error: --month requires --year" in result.output


def test_matrix_exports_csv_and_xlsx(dump, tmp_path):
    csv_out = tmp_path / "exports" / "matrix.csv"
    xlsx_out = tmp_path / "exports" / "matrix.xlsx"
    result = runner.invoke(
        app,
        ["matrix", "--year", "2024", "--dump-path", str(dump), "--csv-out", str(csv_out), "--xlsx-out", str(xlsx_out)],
    )
    assert result.exit_code == 0, result.output
    assert "Entries: 3  Total: ₹390" in result.output
    text = csv_out.read_text(encoding="utf-8")
    assert text.startswith("Category,Jan,Feb,Mar,Apr,May,Jun,Jul,Aug,Sep,Oct,Nov,Dec,Total")
    assert "Grand Total" in text
    assert xlsx_out.exists()


def test_assets_command(dump):
    result = runner.invoke(app, ["assets", "--dump-path", str(dump)])
    assert result.exit_code == 0, result.output
    assert "Entries: 1  Total: ₹50,000" in result.output


def test_search_command(dump):
    result = runner.invoke(app, ["search", "kiran", "--dump-path", str(dump), "--path", "Employees"])
    assert result.exit_code == 0, result.output
    assert "Employees (1)" in result.output

    miss = runner.invoke(app, ["search", "nobody", "--dump-path", str(dump)])
    assert miss.exit_code == 0
    assert "No results." in miss.output


def test_approve_rewrites_dump(dump):
    result = runner.invoke(app, ["approve", "v1", "--by", "HR", "--dump-path", str(dump)])
    assert result.exit_code == 0, result.output
    saved = json.loads(dump.read_text(encoding="utf-8"))
    assert saved["PettyCash"]["admin"]["v1"]["approval"] == "Approved"
    assert saved["PettyCash"]["admin"]["v1"]["approvalBy"] == "HR"


def test_missing_source_is_an_error():
    result = runner.invoke(app, ["assets"])
    assert result.exit_code == 1
    assert "Error: provide --dump-path or --database-url" in result.output


def test_unreadable_dump_is_an_error(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    result = runner.invoke(app, ["petty-cash", "--dump-path", str(bad)])
    assert result.exit_code == 1
    assert "Error: petty-cash failed" in result.output


def test_database_url_from_dotenv(tmp_path):
    url = bootstrap_sqlite_db(tmp_path / "cli.sqlite3")
    seed_documents(database_url=url, tree={"Employees": TREE["Employees"]})
    # The CLI runs from the test's temp dir; DATABASE_URL comes from its .env
    (tmp_path / ".env").write_text(f"DATABASE_URL={url}\n", encoding="utf-8")
    try:
        result = runner.invoke(app, ["search", "98450", "--path", "Employees"])
    finally:
        os.environ.pop("DATABASE_URL", None)
    assert result.exit_code == 0, result.output
    assert "Employees (1)" in result.output


def test_dotenv_is_loaded_once_per_invocation(dump, monkeypatch: pytest.MonkeyPatch):
    calls: list[object] = []
    real = config_mod.load_dotenv

    def counting(*args, **kwargs):
        calls.append(kwargs.get("dotenv_path"))
        return real(*args, **kwargs)

    monkeypatch.setattr(config_mod, "load_dotenv", counting)
    result = runner.invoke(app, ["assets", "--dump-path", str(dump)])
    assert result.exit_code == 0, result.output
    assert len(calls) == 1


def test_deleted_command_lists_delete_and_rejected(dump, tmp_path):
    csv_out = tmp_path / "deleted.csv"
    result = runner.invoke(app, ["deleted", "--dump-path", str(dump), "--csv-out", str(csv_out)])
    assert result.exit_code == 0, result.output
    assert "Entries: 2  Total: ₹2,000" in result.output
    assert "PettyCashDeleteReport/2024/r1" in csv_out.read_text(encoding="utf-8")

    only = runner.invoke(app, ["deleted", "--dump-path", str(dump), "--action", "rejected"])
    assert only.exit_code == 0, only.output
    assert "Entries: 1  Total: ₹800" in only.output


def test_deleted_command_rejects_unknown_action(dump):
    result = runner.invoke(app, ["deleted", "--dump-path", str(dump), "--action", "approved"])
    assert result.exit_code == 1
    assert "Error: --action must be 'delete' or 'rejected'" in result.output
