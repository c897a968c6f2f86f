from __future__ import annotations

from decimal import Decimal

import pytest
from db.client import session_scope

from statement_tracker.auth import AuthContext
from statement_tracker.errors import (
    ExtractionError,
    NoTransactionsParsedError,
    NotAuthenticatedError,
    NotFoundError,
)
from statement_tracker.extraction import OpenAIStatementExtractor
from statement_tracker.statements import (
    create_statement,
    get_statement,
    get_statements,
    process_statement,
    update_statement_status,
)
from statement_tracker.transactions import get_statement_transactions
from tests.helpers.db import make_record, statement_row, transaction_rows
from tests.helpers.openai_stub import FakeExtractor, OpenAIStub

CSV_BYTES = b"Date,Description,Amount\n2025-08-01,Coffee,-4.50\n2025-08-02,Salary,2500.00\n"


def _records():
    return [
        make_record(0, date="2025-08-01", amount=4.5, direction="debit", description="Coffee"),
        make_record(1, date="2025-08-02", amount=2500, direction="credit", description="Salary"),
        make_record(2, date="2025-08-03", amount=61.2, direction="debit", description="Groceries"),
    ]


def test_successful_ingestion_persists_transactions_and_completes(db_url, alice):
    extractor = FakeExtractor(_records())

    result = process_statement(
        alice,
        file_data=CSV_BYTES,
        file_name="august.csv",
        media_type="text/csv",
        extractor=extractor,
        database_url=db_url,
    )

    assert result["transaction_count"] == 3
    assert extractor.calls == [(CSV_BYTES, "text/csv", "august.csv")]

    st = statement_row(db_url, result["statement_id"])
    assert st.status == "completed"
    assert st.transaction_count == 3
    assert st.file_name == "august.csv"
    assert st.user_id == alice.user_id

    with session_scope(database_url=db_url) as s:
        rows = get_statement_transactions(s, alice, statement_id=result["statement_id"])
    assert len(rows) == result["transaction_count"]
    assert all(tx["amount"] > 0 for tx in rows)
    assert {tx["direction"] for tx in rows} <= {"credit", "debit"}
    assert all(tx["user_id"] == alice.user_id for tx in rows)
    assert [(tx["date"], tx["description"], tx["amount"]) for tx in rows] == [
        ("2025-08-01", "Coffee", 4.5),
        ("2025-08-02", "Salary", 2500.0),
        ("2025-08-03", "Groceries", 61.2),
    ]


def test_extraction_error_marks_statement_failed_and_reraises(db_url, alice):
    boom = ExtractionError("could not read corrupt.pdf")

    with pytest.raises(ExtractionError, match="corrupt.pdf") as excinfo:
        process_statement(
            alice,
            file_data=b"%PDF-garbage",
            file_name="corrupt.pdf",
            media_type="application/pdf",
            extractor=FakeExtractor(error=boom),
            database_url=db_url,
        )
    assert excinfo.value is boom

    with session_scope(database_url=db_url) as s:
        statements = get_statements(s, alice)
    assert len(statements) == 1
    assert statements[0]["status"] == "failed"
    assert statements[0]["transaction_count"] is None
    assert transaction_rows(db_url) == []


def test_arbitrary_provider_exception_propagates_verbatim(db_url, alice):
    class ProviderDown(Exception):
        pass

    with pytest.raises(ProviderDown):
        process_statement(
            alice,
            file_data=b"x",
            file_name="a.png",
            media_type="image/png",
            extractor=FakeExtractor(error=ProviderDown("503")),
            database_url=db_url,
        )
    with session_scope(database_url=db_url) as s:
        assert [st["status"] for st in get_statements(s, alice)] == ["failed"]


def test_zero_records_is_treated_as_failure(db_url, alice):
    with pytest.raises(NoTransactionsParsedError, match="No transactions parsed from the file"):
        process_statement(
            alice,
            file_data=CSV_BYTES,
            file_name="empty.csv",
            media_type="text/csv",
            extractor=FakeExtractor([]),
            database_url=db_url,
        )

    with session_scope(database_url=db_url) as s:
        (st,) = get_statements(s, alice)
    assert st["status"] == "failed"
    assert st["transaction_count"] is None
    assert transaction_rows(db_url) == []


def test_uploading_same_file_twice_duplicates_everything(db_url, alice):
    extractor = FakeExtractor(_records())
    first = process_statement(
        alice,
        file_data=CSV_BYTES,
        file_name="august.csv",
        media_type="text/csv",
        extractor=extractor,
        database_url=db_url,
    )
    second = process_statement(
        alice,
        file_data=CSV_BYTES,
        file_name="august.csv",
        media_type="text/csv",
        extractor=extractor,
        database_url=db_url,
    )

    assert first["statement_id"] != second["statement_id"]
    rows = transaction_rows(db_url)
    assert len(rows) == 6
    first_rows = [(r.date, r.description, r.amount) for r in rows if r.statement_id == first["statement_id"]]
    second_rows = [(r.date, r.description, r.amount) for r in rows if r.statement_id == second["statement_id"]]
    assert first_rows == second_rows
    with session_scope(database_url=db_url) as s:
        assert [st["status"] for st in get_statements(s, alice)] == ["completed", "completed"]


def test_unauthenticated_ingestion_creates_nothing(db_url):
    extractor = FakeExtractor(_records())
    with pytest.raises(NotAuthenticatedError):
        process_statement(
            AuthContext(),
            file_data=CSV_BYTES,
            file_name="august.csv",
            media_type="text/csv",
            extractor=extractor,
            database_url=db_url,
        )
    assert extractor.calls == []
    assert transaction_rows(db_url) == []


def test_status_only_moves_forward_from_processing(db_url, alice):
    with session_scope(database_url=db_url) as s:
        statement_id = create_statement(s, user_id=alice.user_id, file_name="x.csv")
        update_statement_status(s, statement_id=statement_id, status="completed", transaction_count=2)

    with session_scope(database_url=db_url) as s:
        with pytest.raises(ValueError, match="already completed"):
            update_statement_status(s, statement_id=statement_id, status="failed")
        with pytest.raises(ValueError, match="Cannot move"):
            update_statement_status(s, statement_id=statement_id, status="processing")


def test_get_statement_checks_ownership(db_url, alice, bob):
    with session_scope(database_url=db_url) as s:
        statement_id = create_statement(s, user_id=alice.user_id, file_name="mine.pdf")

    with session_scope(database_url=db_url) as s:
        assert get_statement(s, alice, statement_id=statement_id)["status"] == "processing"
        with pytest.raises(NotFoundError, match="Statement not found"):
            get_statement(s, bob, statement_id=statement_id)
        assert get_statements(s, bob) == []


def test_amounts_are_stored_without_rounding_to_cents(db_url, alice):
    records = [
        make_record(0, date="2025-08-01", amount=12.345, description="Dinar transfer"),
        make_record(1, date="2025-08-02", amount=0.004, description="Interest accrual"),
    ]

    result = process_statement(
        alice,
        file_data=CSV_BYTES,
        file_name="kwd.csv",
        media_type="text/csv",
        extractor=FakeExtractor(records),
        database_url=db_url,
    )

    assert result["transaction_count"] == 2
    assert statement_row(db_url, result["statement_id"]).status == "completed"
    assert [r.amount for r in transaction_rows(db_url)] == [Decimal("12.345"), Decimal("0.004")]
    with session_scope(database_url=db_url) as s:
        rows = get_statement_transactions(s, alice, statement_id=result["statement_id"])
    assert [tx["amount"] for tx in rows] == [12.345, 0.004]


@pytest.mark.parametrize("bad_date", ["2025-08-01T00:00:00", "01 Aug 2025"])
def test_non_iso_dates_fail_extraction_before_any_write(db_url, alice, bad_date):
    stub = OpenAIStub(
        {
            "transactions": [
                {"date": bad_date, "description": "Coffee", "amount": 4.5, "direction": "debit"}
            ]
        }
    )
    extractor = OpenAIStatementExtractor(model="gpt-test", client_factory=lambda: stub)

    with pytest.raises(ExtractionError, match="did not match"):
        process_statement(
            alice,
            file_data=CSV_BYTES,
            file_name="aug.csv",
            media_type="text/csv",
            extractor=extractor,
            database_url=db_url,
        )

    with session_scope(database_url=db_url) as s:
        assert [st["status"] for st in get_statements(s, alice)] == ["failed"]
    assert transaction_rows(db_url) == []
