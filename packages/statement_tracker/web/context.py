"""Request-scoped helpers shared by the blueprints."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from db.client import session_scope
from flask import current_app, session
from sqlalchemy.orm import Session

from ..auth import AuthContext
from ..extraction import StatementExtractor
from ..settings import Settings

_SESSION_KEY = "user_id"


def current_settings() -> Settings:
    return current_app.extensions["statement_tracker"]["settings"]


def current_extractor() -> StatementExtractor:
    return current_app.extensions["statement_tracker"]["extractor"]


def current_context() -> AuthContext:
    """Resolve the caller from the signed Flask session cookie."""

    raw = session.get(_SESSION_KEY)
    return AuthContext(user_id=int(raw) if raw is not None else None)


def sign_in(user_id: int) -> None:
    session.clear()
    session[_SESSION_KEY] = user_id
    session.permanent = True


def sign_out() -> None:
    session.clear()


@contextmanager
def db_session() -> Iterator[Session]:
    """One transactional scope per request operation."""

    with session_scope(database_url=current_settings().database_url) as s:
        yield s
