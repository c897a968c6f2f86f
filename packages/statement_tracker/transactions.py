"""Transaction store: bulk insert, paginated queries and categorization.

Queries always scope by the caller's ``user_id`` first, so each read walks one
of the composite indexes declared on ``transactions``:

- no category filter: ``(user_id, <sort field>, id)``;
- category filter: ``(user_id, category_id, id)``.

Ordering happens in the database (``ORDER BY <sort field>, id``) and pages are
cut with keyset conditions derived from the continuation cursor, so
concatenating pages yields every row exactly once for a fixed filter/sort.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from db.models.finance import Category, Transaction
from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.orm import Session

from .auth import AuthContext, require_user_id
from .categories import resolve_categories
from .errors import NotFoundError
from .logging_setup import get_logger
from .models import (
    SORT_FIELDS,
    CategoryDict,
    ExtractedTransaction,
    PaginationOptions,
    SortField,
    SortOrder,
    TransactionDict,
    TransactionPage,
)
from .pagination import decode_cursor, encode_cursor

_logger = get_logger("statement_tracker.transactions")

_SORT_COLUMNS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "description": Transaction.description,
}


def _to_amount(raw: float | Decimal) -> Decimal:
    # Stored as returned; str() avoids binary float noise.
    return Decimal(str(raw))


def _row_to_dict(row: Transaction, category: CategoryDict | None) -> TransactionDict:
    return {
        "id": row.id,
        "date": row.date,
        "description": row.description,
        "amount": float(row.amount),
        "direction": row.direction,  # type: ignore[typeddict-item]
        "category_id": row.category_id,
        "category_note": row.category_note,
        "user_id": row.user_id,
        "statement_id": row.statement_id,
        "category": category,
    }


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def save_transactions(
    session: Session,
    *,
    user_id: int,
    statement_id: int,
    transactions: Iterable[ExtractedTransaction],
) -> int:
    """Insert one row per extracted record and return the number inserted.

    No de-duplication: saving the same records twice stores them twice.
    """

    rows = [
        Transaction(
            date=tx.date,
            description=tx.description,
            amount=_to_amount(tx.amount),
            direction=tx.direction,
            user_id=user_id,
            statement_id=statement_id,
        )
        for tx in transactions
    ]
    session.add_all(rows)
    session.flush()
    return len(rows)


def update_transaction_category(
    session: Session,
    ctx: AuthContext,
    *,
    transaction_id: int,
    category_id: int | None = None,
    category_note: str | None = None,
) -> None:
    """Overwrite a transaction's category and note; omitted values clear them.

    The transaction must belong to the caller. A non-null ``category_id`` must
    also name one of the caller's own categories, so a foreign category id is
    rejected as "not found" rather than linked.
    """

    user_id = require_user_id(ctx)
    row = session.get(Transaction, transaction_id)
    if row is None or row.user_id != user_id:
        raise NotFoundError("Transaction not found")
    if category_id is not None:
        category = session.get(Category, category_id)
        if category is None or category.user_id != user_id:
            raise NotFoundError("Category not found")
    row.category_id = category_id
    row.category_note = category_note
    session.flush()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def _base_query(user_id: int, category_id: int | None) -> Select:
    stmt = select(Transaction).where(Transaction.user_id == user_id)
    if category_id is not None:
        stmt = stmt.where(Transaction.category_id == category_id)
    return stmt


def _paginate(
    session: Session,
    stmt: Select,
    *,
    pagination: PaginationOptions,
    sort_by: SortField,
    sort_order: SortOrder,
) -> tuple[Sequence[Transaction], str, bool]:
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"sort_by must be one of {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        raise ValueError("sort_order must be 'asc' or 'desc'")

    col = _SORT_COLUMNS[sort_by]
    descending = sort_order == "desc"

    if pagination.cursor:
        pos = decode_cursor(pagination.cursor, sort_by=sort_by, sort_order=sort_order)
        if descending:
            after = or_(col < pos.value, and_(col == pos.value, Transaction.id < pos.row_id))
        else:
            after = or_(col > pos.value, and_(col == pos.value, Transaction.id > pos.row_id))
        stmt = stmt.where(after)

    if descending:
        stmt = stmt.order_by(col.desc(), Transaction.id.desc())
    else:
        stmt = stmt.order_by(col.asc(), Transaction.id.asc())

    # One extra row tells us whether another page exists.
    rows = session.execute(stmt.limit(pagination.num_items + 1)).scalars().all()
    is_done = len(rows) <= pagination.num_items
    rows = rows[: pagination.num_items]

    if rows:
        last = rows[-1]
        continue_cursor = encode_cursor(
            sort_by=sort_by,
            sort_order=sort_order,
            value=getattr(last, sort_by),
            row_id=last.id,
        )
    else:
        continue_cursor = pagination.cursor or ""
    return rows, continue_cursor, is_done


def get_transactions(
    session: Session,
    ctx: AuthContext,
    *,
    pagination: PaginationOptions,
    category_id: int | None = None,
    sort_by: SortField = "date",
    sort_order: SortOrder = "asc",
) -> TransactionPage:
    """Return one page of the caller's transactions joined with their category.

    A ``category_id`` that no longer resolves (deleted category) yields
    ``category=None`` while ``category_id`` is reported as stored.
    """

    user_id = require_user_id(ctx)
    rows, cursor, is_done = _paginate(
        session,
        _base_query(user_id, category_id),
        pagination=pagination,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    categories = resolve_categories(
        session,
        user_id=user_id,
        category_ids={r.category_id for r in rows if r.category_id is not None},
    )
    page = [
        _row_to_dict(r, categories.get(r.category_id) if r.category_id is not None else None)
        for r in rows
    ]
    return {"page": page, "continue_cursor": cursor, "is_done": is_done}


def get_uncategorized_transactions(
    session: Session,
    ctx: AuthContext,
    *,
    pagination: PaginationOptions,
    sort_by: SortField = "date",
    sort_order: SortOrder = "asc",
) -> TransactionPage:
    """Return one page of the caller's transactions with no category assigned."""

    user_id = require_user_id(ctx)
    stmt = _base_query(user_id, None).where(Transaction.category_id.is_(None))
    rows, cursor, is_done = _paginate(
        session, stmt, pagination=pagination, sort_by=sort_by, sort_order=sort_order
    )
    return {
        "page": [_row_to_dict(r, None) for r in rows],
        "continue_cursor": cursor,
        "is_done": is_done,
    }


def get_transaction_count(
    session: Session, ctx: AuthContext, *, category_id: int | None = None
) -> int:
    """Count the caller's transactions (optionally for one category).

    Recomputed on every call; no running counter is maintained.
    """

    user_id = require_user_id(ctx)
    stmt = select(func.count()).select_from(
        _base_query(user_id, category_id).with_only_columns(Transaction.id).subquery()
    )
    return int(session.execute(stmt).scalar_one())


def get_statement_transactions(
    session: Session, ctx: AuthContext, *, statement_id: int
) -> list[TransactionDict]:
    """Return all of the caller's transactions for one statement in id order."""

    user_id = require_user_id(ctx)
    rows = (
        session.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id, Transaction.statement_id == statement_id)
            .order_by(Transaction.id)
        )
        .scalars()
        .all()
    )
    categories = resolve_categories(
        session,
        user_id=user_id,
        category_ids={r.category_id for r in rows if r.category_id is not None},
    )
    return [
        _row_to_dict(r, categories.get(r.category_id) if r.category_id is not None else None)
        for r in rows
    ]


__all__ = [
    "get_statement_transactions",
    "get_transaction_count",
    "get_transactions",
    "get_uncategorized_transactions",
    "save_transactions",
    "update_transaction_category",
]
