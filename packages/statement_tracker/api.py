"""Public API surface for the ``statement_tracker`` package.

This module is a stable import surface: service operations live in
``statement_tracker.{auth,categories,statements,transactions}`` and are
re-exported here. Every service function takes a SQLAlchemy ``Session`` and
the caller's :class:`AuthContext`; the ingestion workflow manages its own
short transactions and takes a ``database_url`` instead.
"""

from __future__ import annotations

from db import metadata
from db.client import get_engine

from .auth import (
    AuthContext,
    authenticate,
    convert_anonymous_user,
    create_anonymous_user,
    logged_in_user,
    register_user,
)
from .categories import create_category, delete_category, get_categories, update_category
from .extraction import OpenAIStatementExtractor, StatementExtractor
from .models import PaginationOptions
from .statements import get_statement, get_statements, process_statement
from .transactions import (
    get_statement_transactions,
    get_transaction_count,
    get_transactions,
    get_uncategorized_transactions,
    update_transaction_category,
)


def init_schema(*, database_url: str | None = None) -> None:
    """Create any missing tables directly from the ORM metadata.

    Development/test convenience; production schemas are managed by the
    Alembic migrations under ``libs/db/alembic``.
    """

    metadata.create_all(bind=get_engine(database_url=database_url))


__all__ = [
    "AuthContext",
    "OpenAIStatementExtractor",
    "PaginationOptions",
    "StatementExtractor",
    "authenticate",
    "convert_anonymous_user",
    "create_anonymous_user",
    "create_category",
    "delete_category",
    "get_categories",
    "get_statement",
    "get_statement_transactions",
    "get_statements",
    "get_transaction_count",
    "get_transactions",
    "get_uncategorized_transactions",
    "init_schema",
    "logged_in_user",
    "process_statement",
    "register_user",
    "update_category",
    "update_transaction_category",
]
