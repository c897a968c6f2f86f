"""Opaque continuation cursors for keyset pagination.

A cursor records the sort position of the last row of a page: the value of
the sort column plus the row id as tie-breaker. It also records the ordering it
was produced for, so a cursor cannot be replayed against a different sort
(which would silently skip or repeat rows).

Encoding is URL-safe base64 over compact JSON so cursors can travel in query
strings unchanged.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass(frozen=True, slots=True)
class CursorPosition:
    sort_by: str
    sort_order: str
    value: Any
    row_id: int


def _key_to_json(value: Any) -> Any:
    # Decimal amounts are carried as strings so no digits are lost.
    if isinstance(value, Decimal):
        return str(value)
    return value


def encode_cursor(*, sort_by: str, sort_order: str, value: Any, row_id: int) -> str:
    payload = {"s": sort_by, "o": sort_order, "v": _key_to_json(value), "id": row_id}
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(data.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str, *, sort_by: str, sort_order: str) -> CursorPosition:
    """Decode ``cursor`` and check it belongs to the requested ordering.

    Raises ``ValueError`` for malformed cursors or an ordering mismatch.
    """

    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii"))
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, json.JSONDecodeError) as e:
        raise ValueError("Invalid pagination cursor") from e
    if not isinstance(payload, dict) or not isinstance(payload.get("id"), int):
        raise ValueError("Invalid pagination cursor")
    if payload.get("s") != sort_by or payload.get("o") != sort_order:
        raise ValueError("Pagination cursor does not match the requested sort")

    value = payload.get("v")
    if sort_by == "amount":
        try:
            value = Decimal(str(value))
        except ArithmeticError as e:
            raise ValueError("Invalid pagination cursor") from e
    elif not isinstance(value, str):
        raise ValueError("Invalid pagination cursor")
    return CursorPosition(sort_by=sort_by, sort_order=sort_order, value=value, row_id=payload["id"])


__all__ = ["CursorPosition", "decode_cursor", "encode_cursor"]
