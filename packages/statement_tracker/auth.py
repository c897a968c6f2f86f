"""Caller identity and user accounts.

Every service operation receives an explicit :class:`AuthContext` instead of
looking up an ambient "current user". Surfaces (Flask session, CLI option)
resolve the context; services only call :func:`require_user_id`.

Accounts come in two flavors: anonymous users created on first visit and
password users. An anonymous account is converted in place, so everything it
already owns stays attached to the same id.
"""

from __future__ import annotations

from dataclasses import dataclass

from db.models.finance import User
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import InvalidCredentialsError, NotAuthenticatedError
from .logging_setup import get_logger
from .models import UserDict

_logger = get_logger("statement_tracker.auth")


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Identity of the caller; ``user_id=None`` means unauthenticated."""

    user_id: int | None = None

    @classmethod
    def anonymous(cls) -> AuthContext:
        return cls(user_id=None)


def require_user_id(ctx: AuthContext) -> int:
    """Return the caller's user id or raise :class:`NotAuthenticatedError`."""

    if ctx is None or ctx.user_id is None:
        raise NotAuthenticatedError()
    return ctx.user_id


def _user_to_dict(row: User) -> UserDict:
    return {
        "id": row.id,
        "email": row.email,
        "name": row.name,
        "is_anonymous": bool(row.is_anonymous),
    }


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _email_taken(session: Session, email: str, *, exclude_id: int | None = None) -> bool:
    stmt = select(User.id).where(func.lower(User.email) == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return session.execute(stmt).first() is not None


def create_anonymous_user(session: Session) -> UserDict:
    row = User(is_anonymous=True)
    session.add(row)
    session.flush()
    _logger.info("created anonymous user id=%s", row.id)
    return _user_to_dict(row)


def register_user(
    session: Session,
    *,
    email: str,
    password: str,
    name: str | None = None,
) -> UserDict:
    """Create a permanent password account.

    Raises ``ValueError`` when the email is already registered.
    """

    email_n = _normalize_email(email)
    if _email_taken(session, email_n):
        raise ValueError("An account with this email already exists")
    row = User(
        email=email_n,
        name=(name or "").strip() or None,
        is_anonymous=False,
        password_hash=generate_password_hash(password),
    )
    session.add(row)
    session.flush()
    _logger.info("registered user id=%s", row.id)
    return _user_to_dict(row)


def authenticate(session: Session, *, email: str, password: str) -> UserDict:
    """Return the user for valid credentials or raise ``InvalidCredentialsError``."""

    row = (
        session.execute(select(User).where(func.lower(User.email) == _normalize_email(email)))
        .scalars()
        .first()
    )
    if row is None or not row.password_hash or not check_password_hash(row.password_hash, password):
        raise InvalidCredentialsError()
    return _user_to_dict(row)


def convert_anonymous_user(
    session: Session,
    ctx: AuthContext,
    *,
    email: str,
    password: str,
    name: str | None = None,
) -> UserDict:
    """Turn the caller's anonymous account into a password account in place."""

    user_id = require_user_id(ctx)
    row = session.get(User, user_id)
    if row is None:
        raise NotAuthenticatedError()
    if not row.is_anonymous:
        raise ValueError("Account is already permanent")
    email_n = _normalize_email(email)
    if _email_taken(session, email_n, exclude_id=user_id):
        raise ValueError("An account with this email already exists")

    row.email = email_n
    row.name = (name or "").strip() or row.name
    row.password_hash = generate_password_hash(password)
    row.is_anonymous = False
    session.flush()
    _logger.info("converted anonymous user id=%s", row.id)
    return _user_to_dict(row)


def logged_in_user(session: Session, ctx: AuthContext) -> UserDict | None:
    if ctx is None or ctx.user_id is None:
        return None
    row = session.get(User, ctx.user_id)
    return _user_to_dict(row) if row is not None else None


__all__ = [
    "AuthContext",
    "authenticate",
    "convert_anonymous_user",
    "create_anonymous_user",
    "logged_in_user",
    "register_user",
    "require_user_id",
]
