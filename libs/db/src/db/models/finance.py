from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGINT identity on Postgres; SQLite only autoincrements an INTEGER PRIMARY KEY.
_PK = BigInteger().with_variant(Integer(), "sqlite")

STATEMENT_STATUSES: tuple[str, ...] = ("processing", "completed", "failed")
DIRECTIONS: tuple[str, ...] = ("credit", "debit")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Identity: users
# ---------------------------


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    # Anonymous accounts are converted in place; the id (and everything the
    # user owns) survives the conversion.
    is_anonymous: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )
    password_hash: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------
# Reference: categories
# ---------------------------


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    # Name and color are free-form; no uniqueness is enforced per user.
    name: Mapped[str] = mapped_column(String, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("ix_categories_by_user", "user_id"),)


# ---------------------------
# Uploads: statements
# ---------------------------


class Statement(Base):
    __tablename__ = "statements"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    user_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String, nullable=False)
    # Set only when the ingestion workflow completes; stays NULL on failure.
    transaction_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status in ('processing','completed','failed')",
            name="ck_statements_status",
        ),
        Index("ix_statements_by_user", "user_id"),
    )


# ---------------------------
# Core: transactions
# ---------------------------


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    # ISO-8601 calendar date (YYYY-MM-DD) as produced by extraction. Kept as
    # text so lexical order equals calendar order.
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # Always a positive magnitude as returned by extraction (no rounding to
    # cents); the sign lives in ``direction``.
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    direction: Mapped[str] = mapped_column(String, nullable=False)
    # Deliberately not a foreign key: deleting a category leaves existing
    # references dangling instead of nulling or blocking.
    category_id: Mapped[int | None] = mapped_column(_PK, nullable=True)
    category_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    statement_id: Mapped[int] = mapped_column(
        _PK, ForeignKey("statements.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        CheckConstraint(
            "direction in ('credit','debit')",
            name="ck_transactions_direction",
        ),
        Index("ix_transactions_by_user", "user_id", "id"),
        Index("ix_transactions_by_user_and_statement", "user_id", "statement_id"),
        Index("ix_transactions_by_user_and_category", "user_id", "category_id", "id"),
        # Ordered traversal per sortable field
        Index("ix_transactions_by_user_date", "user_id", "date", "id"),
        Index("ix_transactions_by_user_amount", "user_id", "amount", "id"),
        Index("ix_transactions_by_user_description", "user_id", "description", "id"),
    )


__all__ = [
    "Base",
    "Category",
    "DIRECTIONS",
    "STATEMENT_STATUSES",
    "Statement",
    "Transaction",
    "User",
]
