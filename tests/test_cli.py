from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from statement_tracker import extraction
from statement_tracker.cli import app
from tests.helpers.db import make_record, seed_statement, transaction_rows
from tests.helpers.openai_stub import OpenAIStub

runner = CliRunner()


@pytest.fixture(autouse=True)
def _no_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # The CLI loads ``.env`` from the working directory.
    monkeypatch.chdir(tmp_path)


def _run(db_url: str, *args: str, user_id: int | None = None):
    argv = list(args) + ["--database-url", db_url]
    if user_id is not None:
        argv += ["--user-id", str(user_id)]
    return runner.invoke(app, argv)


def _stdout_lines(result) -> list[str]:
    return [line for line in result.stdout.splitlines() if line and not line.startswith("next:")]


def test_category_commands_round_trip(db_url, alice):
    created = _run(db_url, "create-category", "Groceries", "#22c55e", user_id=alice.user_id)
    assert created.exit_code == 0, created.output
    cat_id = int(created.stdout.strip())

    listed = _run(db_url, "categories", user_id=alice.user_id)
    assert _stdout_lines(listed) == [f"{cat_id}\tGroceries\t#22c55e"]

    updated = _run(db_url, "update-category", str(cat_id), "Food", "green", user_id=alice.user_id)
    assert updated.exit_code == 0
    assert _stdout_lines(_run(db_url, "categories", user_id=alice.user_id)) == [
        f"{cat_id}\tFood\tgreen"
    ]

    deleted = _run(db_url, "delete-category", str(cat_id), user_id=alice.user_id)
    assert deleted.exit_code == 0
    assert _stdout_lines(_run(db_url, "categories", user_id=alice.user_id)) == []


def test_foreign_category_reports_not_found(db_url, alice, bob):
    cat_id = int(_run(db_url, "create-category", "Rent", "red", user_id=alice.user_id).stdout)
    result = _run(db_url, "delete-category", str(cat_id), user_id=bob.user_id)
    assert result.exit_code == 1
    assert "Error: Category not found" in result.output


def test_transactions_page_and_categorize(db_url, alice):
    seed_statement(
        db_url,
        alice,
        [
            make_record(0, date="2025-08-03", amount=12.5, description="Bakery"),
            make_record(1, date="2025-08-01", amount=900, description="Rent"),
            make_record(2, date="2025-08-02", amount=40, direction="credit", description="Refund"),
        ],
    )

    first = _run(db_url, "transactions", "--num-items", "2", user_id=alice.user_id)
    assert first.exit_code == 0, first.output
    rows = [line.split("\t") for line in _stdout_lines(first)]
    assert [(r[1], r[2], r[3], r[4]) for r in rows] == [
        ("2025-08-01", "900.00", "debit", "Rent"),
        ("2025-08-02", "40.00", "credit", "Refund"),
    ]
    assert "next: " in first.output

    cat_id = int(_run(db_url, "create-category", "Housing", "blue", user_id=alice.user_id).stdout)
    rent_id = rows[0][0]
    done = _run(
        db_url,
        "categorize",
        rent_id,
        "--category-id",
        str(cat_id),
        "--note",
        "august",
        user_id=alice.user_id,
    )
    assert done.exit_code == 0, done.output

    filtered = _run(db_url, "transactions", "--category-id", str(cat_id), user_id=alice.user_id)
    (line,) = _stdout_lines(filtered)
    assert line.split("\t")[4:] == ["Rent", "Housing", "august"]

    assert _run(db_url, "count", user_id=alice.user_id).stdout.strip() == "3"
    assert (
        _run(db_url, "count", "--category-id", str(cat_id), user_id=alice.user_id).stdout.strip()
        == "1"
    )
    uncategorized = _run(db_url, "transactions", "--uncategorized", user_id=alice.user_id)
    assert [line.split("\t")[4] for line in _stdout_lines(uncategorized)] == ["Refund", "Bakery"]


def test_invalid_sort_is_reported(db_url, alice):
    result = _run(db_url, "transactions", "--sort-by", "category", user_id=alice.user_id)
    assert result.exit_code == 1
    assert "Error: sort_by" in result.output


def test_commands_without_user_fail(db_url):
    for args in (("transactions",), ("count",), ("categories",), ("statements",)):
        result = _run(db_url, *args)
        assert result.exit_code == 1
        assert "Error: Not authenticated" in result.output


def test_ingest_runs_extraction_and_lists_statement(db_url, alice, tmp_path, monkeypatch):
    payload = {
        "transactions": [
            {"date": "2025-08-01", "description": "Coffee", "amount": 4.5, "direction": "debit"},
            {"date": "2025-08-02", "description": "Salary", "amount": 2500, "direction": "credit"},
        ]
    }
    stub = OpenAIStub(payload)
    monkeypatch.setattr(extraction, "OpenAI", lambda: stub)
    statement = tmp_path / "august.csv"
    statement.write_text("Date,Description,Amount\n2025-08-01,Coffee,-4.50\n")

    result = _run(db_url, "ingest", str(statement), user_id=alice.user_id)
    assert result.exit_code == 0, result.output
    assert "processed 2 transactions" in result.stdout
    assert stub.calls[0]["input"][0]["content"][0]["type"] == "input_text"
    assert len(transaction_rows(db_url)) == 2

    (line,) = _stdout_lines(_run(db_url, "statements", user_id=alice.user_id))
    fields = line.split("\t")
    assert fields[2:] == ["completed", "2", "august.csv"]


def test_ingest_rejects_unsupported_file(db_url, alice, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    result = _run(db_url, "ingest", str(notes), user_id=alice.user_id)
    assert result.exit_code == 1
    assert "Please upload a CSV, PDF, Excel file, or image" in result.output
    assert _stdout_lines(_run(db_url, "statements", user_id=alice.user_id)) == []


def test_create_user(db_url):
    anon = _run(db_url, "create-user")
    assert anon.exit_code == 0
    assert int(anon.stdout.strip()) > 0

    short = _run(db_url, "create-user", "--email", "ann@example.com", "--password", "short")
    assert short.exit_code == 1
    assert "password" in short.output
