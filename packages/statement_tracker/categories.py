"""Category service operations.

Categories are user-owned labels (free-form ``name`` and ``color``). All
operations take the caller's :class:`~statement_tracker.auth.AuthContext` and
treat a category owned by someone else exactly like a missing one.

Deleting a category does not touch transactions: rows that referenced it keep
their ``category_id`` and resolve to ``category=None`` on read.
"""

from __future__ import annotations

from db.models.finance import Category
from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth import AuthContext, require_user_id
from .errors import NotFoundError
from .logging_setup import get_logger
from .models import CategoryDict

_logger = get_logger("statement_tracker.categories")


def _row_to_dict(row: Category) -> CategoryDict:
    return {
        "id": row.id,
        "name": row.name,
        "color": row.color,
        "user_id": row.user_id,
    }


def _get_owned(session: Session, *, user_id: int, category_id: int) -> Category:
    row = session.get(Category, category_id)
    if row is None or row.user_id != user_id:
        raise NotFoundError("Category not found")
    return row


def get_categories(session: Session, ctx: AuthContext) -> list[CategoryDict]:
    """Return the caller's categories in creation order."""

    user_id = require_user_id(ctx)
    rows = (
        session.execute(
            select(Category).where(Category.user_id == user_id).order_by(Category.id)
        )
        .scalars()
        .all()
    )
    return [_row_to_dict(r) for r in rows]


def create_category(session: Session, ctx: AuthContext, *, name: str, color: str) -> CategoryDict:
    user_id = require_user_id(ctx)
    row = Category(name=name, color=color, user_id=user_id)
    session.add(row)
    session.flush()
    _logger.debug("created category id=%s user=%s", row.id, user_id)
    return _row_to_dict(row)


def update_category(
    session: Session,
    ctx: AuthContext,
    *,
    category_id: int,
    name: str,
    color: str,
) -> CategoryDict:
    user_id = require_user_id(ctx)
    row = _get_owned(session, user_id=user_id, category_id=category_id)
    row.name = name
    row.color = color
    session.flush()
    return _row_to_dict(row)


def delete_category(session: Session, ctx: AuthContext, *, category_id: int) -> None:
    """Delete a category; referencing transactions keep a dangling ``category_id``."""

    user_id = require_user_id(ctx)
    row = _get_owned(session, user_id=user_id, category_id=category_id)
    session.delete(row)
    session.flush()
    _logger.debug("deleted category id=%s user=%s", category_id, user_id)


def resolve_categories(
    session: Session, *, user_id: int, category_ids: set[int]
) -> dict[int, CategoryDict]:
    """Map ids to the caller's categories; unknown or foreign ids are omitted."""

    if not category_ids:
        return {}
    rows = (
        session.execute(
            select(Category).where(
                Category.user_id == user_id,
                Category.id.in_(sorted(category_ids)),
            )
        )
        .scalars()
        .all()
    )
    return {r.id: _row_to_dict(r) for r in rows}


__all__ = [
    "create_category",
    "delete_category",
    "get_categories",
    "resolve_categories",
    "update_category",
]
