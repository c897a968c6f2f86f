from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from statement_tracker.errors import UploadRejectedError
from statement_tracker.logging_setup import resolve_level
from statement_tracker.pagination import decode_cursor, encode_cursor
from statement_tracker.settings import Settings
from statement_tracker.uploads import file_extension, resolve_media_type, validate_upload

MB = 1024 * 1024


@pytest.mark.parametrize(
    "name",
    ["jan.csv", "JAN.PDF", "book.xlsx", "old.xls", "scan.png", "photo.jpg", "photo.JPEG"],
)
def test_allowed_extensions_pass(name):
    validate_upload(name, 1024, max_bytes=10 * MB)


@pytest.mark.parametrize("name", ["notes.txt", "statement", "archive.zip", "csv"])
def test_other_extensions_are_rejected(name):
    with pytest.raises(UploadRejectedError, match="Please upload a CSV, PDF, Excel file, or image"):
        validate_upload(name, 1024, max_bytes=10 * MB)


def test_size_limit_is_inclusive():
    validate_upload("a.csv", 10 * MB, max_bytes=10 * MB)
    with pytest.raises(UploadRejectedError, match="File size must be less than 10MB"):
        validate_upload("a.csv", 10 * MB + 1, max_bytes=10 * MB)


def test_upload_rejection_is_a_value_error():
    with pytest.raises(ValueError):
        validate_upload("a.exe", 1)


def test_file_extension_is_lowercased():
    assert file_extension("Bank.Statement.CSV") == ".csv"
    assert file_extension("noext") == ""


@pytest.mark.parametrize(
    ("name", "declared", "expected"),
    [
        ("a.csv", "text/csv; charset=utf-8", "text/csv"),
        ("a.pdf", None, "application/pdf"),
        ("a.pdf", "application/octet-stream", "application/pdf"),
        ("a.xlsx", "", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
        ("a.JPG", None, "image/jpeg"),
        ("a.png", "IMAGE/PNG", "image/png"),
    ],
)
def test_resolve_media_type(name, declared, expected):
    assert resolve_media_type(name, declared) == expected


def test_max_upload_setting_from_env(monkeypatch: pytest.MonkeyPatch):
    assert Settings.from_env().max_upload_bytes == 10 * MB
    monkeypatch.setenv("STATEMENT_TRACKER_MAX_UPLOAD_MB", "2")
    assert Settings.from_env().max_upload_bytes == 2 * MB
    monkeypatch.setenv("STATEMENT_TRACKER_MAX_UPLOAD_MB", "lots")
    with pytest.raises(RuntimeError, match="must be an integer"):
        Settings.from_env()


# ---- cursors -----------------------------------------------------------------


def test_cursor_carries_position_for_its_sort():
    cursor = encode_cursor(sort_by="description", sort_order="desc", value="Café", row_id=42)
    pos = decode_cursor(cursor, sort_by="description", sort_order="desc")
    assert (pos.value, pos.row_id) == ("Café", 42)


def test_amount_cursor_keeps_exact_cents():
    cursor = encode_cursor(sort_by="amount", sort_order="asc", value=Decimal("10.10"), row_id=7)
    assert decode_cursor(cursor, sort_by="amount", sort_order="asc").value == Decimal("10.10")


@pytest.mark.parametrize(("sort_by", "sort_order"), [("date", "desc"), ("amount", "asc")])
def test_cursor_for_other_ordering_is_rejected(sort_by, sort_order):
    cursor = encode_cursor(sort_by="date", sort_order="asc", value="2025-01-01", row_id=1)
    with pytest.raises(ValueError, match="does not match"):
        decode_cursor(cursor, sort_by=sort_by, sort_order=sort_order)


@pytest.mark.parametrize("garbage", ["not-base64!!", "e30=", "W10=", "ñ"])
def test_malformed_cursor_is_rejected(garbage):
    with pytest.raises(ValueError, match="Invalid pagination cursor"):
        decode_cursor(garbage, sort_by="date", sort_order="asc")


def test_log_level_from_argument_or_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("STATEMENT_TRACKER_LOG_LEVEL", raising=False)
    assert resolve_level() == logging.INFO
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("30") == logging.WARNING
    monkeypatch.setenv("STATEMENT_TRACKER_LOG_LEVEL", "ERROR")
    assert resolve_level() == logging.ERROR
    assert resolve_level(logging.DEBUG) == logging.DEBUG
