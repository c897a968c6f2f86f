"""Upload acceptance rules shared by the HTTP surface and the CLI.

Checks run before a statement record is created, so a rejected file leaves
no trace in the database.
"""

from __future__ import annotations

import mimetypes
from pathlib import PurePath

from .errors import UploadRejectedError
from .settings import DEFAULT_MAX_UPLOAD_MB

ALLOWED_EXTENSIONS: tuple[str, ...] = (".csv", ".pdf", ".xlsx", ".xls", ".png", ".jpg", ".jpeg")

# Explicit table: ``mimetypes`` varies by platform for spreadsheet types.
_MEDIA_TYPES: dict[str, str] = {
    ".csv": "text/csv",
    ".pdf": "application/pdf",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}

_GENERIC_MEDIA_TYPES = frozenset({"", "application/octet-stream"})


def file_extension(file_name: str) -> str:
    return PurePath(file_name).suffix.lower()


def validate_upload(
    file_name: str,
    size: int,
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024,
) -> None:
    """Reject disallowed extensions and files larger than ``max_bytes``."""

    if file_extension(file_name) not in ALLOWED_EXTENSIONS:
        raise UploadRejectedError("Please upload a CSV, PDF, Excel file, or image (PNG/JPG)")
    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise UploadRejectedError(f"File size must be less than {limit_mb:g}MB")


def resolve_media_type(file_name: str, declared: str | None = None) -> str:
    """Return the declared media type, or one inferred from the extension."""

    mt = (declared or "").split(";", 1)[0].strip().lower()
    if mt not in _GENERIC_MEDIA_TYPES:
        return mt
    ext = file_extension(file_name)
    if ext in _MEDIA_TYPES:
        return _MEDIA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or "application/octet-stream"


__all__ = [
    "ALLOWED_EXTENSIONS",
    "file_extension",
    "resolve_media_type",
    "validate_upload",
]
