"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database and a scrubbed
environment: ``DATABASE_URL`` is removed so code paths that fall back to the
environment cannot reach a developer database, and ``OPENAI_API_KEY`` is set
to a dummy value so nothing talks to the real API by accident.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engines

from statement_tracker.auth import AuthContext
from tests.helpers.db import bootstrap_sqlite_db, make_user


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("STATEMENT_TRACKER_USER_ID", raising=False)
    monkeypatch.delenv("STATEMENT_TRACKER_MAX_UPLOAD_MB", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-not-used")


@pytest.fixture
def db_url(tmp_path: Path) -> Iterator[str]:
    url = bootstrap_sqlite_db(tmp_path / "statement-tracker.db")
    yield url
    dispose_engines()


@pytest.fixture
def alice(db_url: str) -> AuthContext:
    return make_user(db_url)


@pytest.fixture
def bob(db_url: str) -> AuthContext:
    return make_user(db_url)
