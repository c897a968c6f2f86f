"""Exception types surfaced by ``statement_tracker`` operations.

Every failure reaches the caller synchronously with a human-readable message.
Ownership violations are reported as :class:`NotFoundError` so callers cannot
distinguish "belongs to someone else" from "does not exist".
"""

from __future__ import annotations


class StatementTrackerError(Exception):
    """Base class for all application errors."""


class NotAuthenticatedError(StatementTrackerError):
    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotFoundError(StatementTrackerError, LookupError):
    """Record is absent or owned by another user."""


class ExtractionError(StatementTrackerError):
    """The extraction service failed or returned an unusable payload."""


class NoTransactionsParsedError(ExtractionError):
    def __init__(self, message: str = "No transactions parsed from the file") -> None:
        super().__init__(message)


class UploadRejectedError(StatementTrackerError, ValueError):
    """Uploaded file has a disallowed extension or exceeds the size ceiling."""


class InvalidCredentialsError(StatementTrackerError):
    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


__all__ = [
    "ExtractionError",
    "InvalidCredentialsError",
    "NoTransactionsParsedError",
    "NotAuthenticatedError",
    "NotFoundError",
    "StatementTrackerError",
    "UploadRejectedError",
]
