# ruff: noqa: I001
"""Users, categories, statements and transactions.

Revision ID: 0001_statement_tracker_core
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_statement_tracker_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("password_hash", sa.String(), nullable=True),
        _created_at(),
    )

    op.create_table(
        "categories",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("color", sa.String(), nullable=False),
        sa.Column(
            "user_id",
            _PK,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
    )
    op.create_index("ix_categories_by_user", "categories", ["user_id"])

    op.create_table(
        "statements",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column(
            "upload_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "user_id",
            _PK,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("transaction_count", sa.Integer(), nullable=True),
        sa.CheckConstraint(
            "status in ('processing','completed','failed')",
            name="ck_statements_status",
        ),
    )
    op.create_index("ix_statements_by_user", "statements", ["user_id"])

    # category_id intentionally has no FK: deleted categories leave dangling ids.
    op.create_table(
        "transactions",
        sa.Column("id", _PK, primary_key=True, autoincrement=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 6), nullable=False),
        sa.Column("direction", sa.String(), nullable=False),
        sa.Column("category_id", _PK, nullable=True),
        sa.Column("category_note", sa.Text(), nullable=True),
        sa.Column(
            "user_id",
            _PK,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "statement_id",
            _PK,
            sa.ForeignKey("statements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _created_at(),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.CheckConstraint(
            "direction in ('credit','debit')",
            name="ck_transactions_direction",
        ),
    )
    op.create_index("ix_transactions_by_user", "transactions", ["user_id", "id"])
    op.create_index(
        "ix_transactions_by_user_and_statement", "transactions", ["user_id", "statement_id"]
    )
    op.create_index(
        "ix_transactions_by_user_and_category",
        "transactions",
        ["user_id", "category_id", "id"],
    )
    op.create_index("ix_transactions_by_user_date", "transactions", ["user_id", "date", "id"])
    op.create_index(
        "ix_transactions_by_user_amount", "transactions", ["user_id", "amount", "id"]
    )
    op.create_index(
        "ix_transactions_by_user_description",
        "transactions",
        ["user_id", "description", "id"],
    )


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("statements")
    op.drop_table("categories")
    op.drop_table("users")
