"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the statement/transaction/category models used by
``statement_tracker``.
"""

from .finance import Base, Category, Statement, Transaction, User

__all__ = [
    "Base",
    "Category",
    "Statement",
    "Transaction",
    "User",
]
