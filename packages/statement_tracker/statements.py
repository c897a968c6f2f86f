"""Statement store and the statement ingestion workflow.

Workflow (:func:`process_statement`)
------------------------------------
1. Insert a ``processing`` statement and commit it before extraction, so an
   interrupted run still leaves a discoverable record.
2. Call the extractor outside of any database transaction.
3. On any exception, or when zero records come back, mark the statement
   ``failed`` (count left unset) and re-raise to the caller.
4. Otherwise insert one transaction per record and mark the statement
   ``completed`` with the count.

Each step commits in its own short transaction. There is no retry and no
idempotency key: processing the same bytes twice yields two statements and
duplicate transactions.
"""

from __future__ import annotations

import time

from db.client import session_scope
from db.models.finance import Statement
from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth import AuthContext, require_user_id
from .errors import NoTransactionsParsedError, NotFoundError
from .extraction import StatementExtractor
from .logging_setup import get_logger
from .models import IngestionResult, StatementDict, StatementStatus
from .transactions import save_transactions

_logger = get_logger("statement_tracker.statements")

_TERMINAL: frozenset[str] = frozenset({"completed", "failed"})


def _row_to_dict(row: Statement) -> StatementDict:
    return {
        "id": row.id,
        "file_name": row.file_name,
        "upload_date": row.upload_date.isoformat() if row.upload_date else "",
        "status": row.status,  # type: ignore[typeddict-item]
        "transaction_count": row.transaction_count,
        "user_id": row.user_id,
    }


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


def create_statement(session: Session, *, user_id: int, file_name: str) -> int:
    row = Statement(file_name=file_name, user_id=user_id, status="processing")
    session.add(row)
    session.flush()
    return row.id


def update_statement_status(
    session: Session,
    *,
    statement_id: int,
    status: StatementStatus,
    transaction_count: int | None = None,
) -> None:
    """Move a ``processing`` statement to a terminal status.

    Only ``processing -> completed`` and ``processing -> failed`` are allowed;
    anything else raises ``ValueError``. ``transaction_count`` is written only
    when provided.
    """

    row = session.get(Statement, statement_id)
    if row is None:
        raise NotFoundError("Statement not found")
    if status not in _TERMINAL:
        raise ValueError(f"Cannot move a statement to status {status!r}")
    if row.status != "processing":
        raise ValueError(f"Statement {statement_id} is already {row.status}")
    row.status = status
    if transaction_count is not None:
        row.transaction_count = transaction_count
    session.flush()


def get_statements(session: Session, ctx: AuthContext) -> list[StatementDict]:
    """Return the caller's statements, newest upload first."""

    user_id = require_user_id(ctx)
    rows = (
        session.execute(
            select(Statement)
            .where(Statement.user_id == user_id)
            .order_by(Statement.upload_date.desc(), Statement.id.desc())
        )
        .scalars()
        .all()
    )
    return [_row_to_dict(r) for r in rows]


def get_statement(session: Session, ctx: AuthContext, *, statement_id: int) -> StatementDict:
    user_id = require_user_id(ctx)
    row = session.get(Statement, statement_id)
    if row is None or row.user_id != user_id:
        raise NotFoundError("Statement not found")
    return _row_to_dict(row)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


def process_statement(
    ctx: AuthContext,
    *,
    file_data: bytes,
    file_name: str,
    media_type: str,
    extractor: StatementExtractor,
    database_url: str | None = None,
) -> IngestionResult:
    """Run the ingestion workflow for one uploaded file.

    Returns ``{"statement_id", "transaction_count"}`` on success. Any failure
    leaves the statement ``failed`` and propagates the original exception.
    """

    user_id = require_user_id(ctx)

    with session_scope(database_url=database_url) as session:
        statement_id = create_statement(session, user_id=user_id, file_name=file_name)
    _logger.info(
        "process_statement:start statement_id=%d user_id=%d file=%s media_type=%s bytes=%d",
        statement_id,
        user_id,
        file_name,
        media_type,
        len(file_data),
    )

    t0 = time.perf_counter()
    try:
        records = extractor.extract(file_data, media_type, file_name)
        if not records:
            raise NoTransactionsParsedError()

        with session_scope(database_url=database_url) as session:
            count = save_transactions(
                session,
                user_id=user_id,
                statement_id=statement_id,
                transactions=records,
            )
    except Exception as e:
        _logger.warning(
            "process_statement:failed statement_id=%d error=%s: %s",
            statement_id,
            type(e).__name__,
            e,
        )
        with session_scope(database_url=database_url) as session:
            update_statement_status(session, statement_id=statement_id, status="failed")
        raise

    with session_scope(database_url=database_url) as session:
        update_statement_status(
            session,
            statement_id=statement_id,
            status="completed",
            transaction_count=count,
        )
    _logger.info(
        "process_statement:completed statement_id=%d transactions=%d seconds=%.2f",
        statement_id,
        count,
        time.perf_counter() - t0,
    )
    return {"statement_id": statement_id, "transaction_count": count}


__all__ = [
    "create_statement",
    "get_statement",
    "get_statements",
    "process_statement",
    "update_statement_status",
]
