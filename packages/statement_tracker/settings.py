"""Runtime settings resolved from the environment.

Entry points load a local ``.env`` with ``python-dotenv`` (without overriding
variables that are already set) before calling :meth:`Settings.from_env`.
Library code receives a ``Settings`` value instead of reading the
environment itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MODEL = "gpt-5"
DEFAULT_MAX_UPLOAD_MB = 10
_DEV_SECRET_KEY = "dev-secret-key-change-me"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as e:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    """Resolved configuration for the CLI and the web app.

    Attributes
    ----------
    database_url:
        SQLAlchemy URL; ``None`` defers to ``DATABASE_URL`` inside
        :mod:`db.client` (which raises when neither is set).
    model:
        OpenAI Responses model used for statement extraction.
    max_upload_bytes:
        Upload ceiling enforced before a statement record is created.
    secret_key:
        Flask session signing key.
    """

    database_url: str | None = None
    model: str = DEFAULT_MODEL
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    secret_key: str = _DEV_SECRET_KEY

    @classmethod
    def from_env(cls, *, database_url: str | None = None) -> Settings:
        max_mb = _env_int("STATEMENT_TRACKER_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB)
        return cls(
            database_url=database_url or os.getenv("DATABASE_URL"),
            model=(os.getenv("STATEMENT_TRACKER_MODEL") or DEFAULT_MODEL).strip(),
            max_upload_bytes=max_mb * 1024 * 1024,
            secret_key=os.getenv("STATEMENT_TRACKER_SECRET_KEY") or _DEV_SECRET_KEY,
        )


__all__ = ["DEFAULT_MAX_UPLOAD_MB", "DEFAULT_MODEL", "Settings"]
