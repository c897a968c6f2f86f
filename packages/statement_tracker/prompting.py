"""Prompt construction for statement extraction.

This module builds:
- The fixed extraction instruction sent with every statement.
- The user content parts carrying the statement itself (text, image or file,
  depending on the media type).
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API, mirroring :class:`~statement_tracker.models.ExtractedTransaction`.
"""

from __future__ import annotations

import base64
from typing import Any

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .models import DATE_PATTERN

BEGIN = "BEGIN_STATEMENT\n"
END = "\nEND_STATEMENT"

# Media types whose bytes are sent inline as decoded text.
TEXT_MEDIA_TYPES: frozenset[str] = frozenset(
    {"text/csv", "text/plain", "application/csv", "text/comma-separated-values"}
)


def build_system_instructions() -> str:
    """Return the extraction instruction describing the desired record shape."""

    return (
        "Parse this bank statement file and extract all transaction data.\n"
        "\n"
        "Rules:\n"
        "- Convert all dates to YYYY-MM-DD format\n"
        "- Amount should be positive number (absolute value)\n"
        '- Direction should be "credit" for money coming in, "debit" for money going out\n'
        "- Clean up descriptions (remove extra spaces, normalize text)\n"
        "- Skip header rows and any non-transaction data\n"
        "- If amount is negative in the statement, it's usually a debit\n"
        "- If amount is positive in the statement, it's usually a credit\n"
        "- Handle PDF, CSV, Excel, and image formats\n"
        "- Extract data from tables, structured text, or scanned documents\n"
        "\n"
        "Output JSON only that conforms to the specified schema."
    )


def _data_url(data: bytes, media_type: str) -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


def build_user_content(
    data: bytes, media_type: str, file_name: str | None = None
) -> list[dict[str, Any]]:
    """Return the Responses ``input`` content parts for one statement file.

    - CSV/plain text is decoded and embedded between ``BEGIN_STATEMENT`` /
      ``END_STATEMENT`` markers.
    - Images are attached as ``input_image`` data URLs.
    - Everything else (PDF, Excel) is attached as an ``input_file``.
    """

    mt = (media_type or "application/octet-stream").split(";", 1)[0].strip().lower()
    label = file_name or "statement"

    if mt in TEXT_MEDIA_TYPES:
        text = data.decode("utf-8", errors="replace")
        return [
            {
                "type": "input_text",
                "text": f"Statement file: {label}\n{BEGIN}{text}{END}",
            }
        ]
    if mt.startswith("image/"):
        return [
            {"type": "input_text", "text": f"Statement file: {label}"},
            {"type": "input_image", "image_url": _data_url(data, mt), "detail": "high"},
        ]
    return [
        {
            "type": "input_file",
            "filename": label,
            "file_data": _data_url(data, mt),
        }
    ]


def build_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response_format object.

    Schema shape:
    {
      "transactions": [
        {"date": "YYYY-MM-DD", "description": str, "amount": number > 0,
         "direction": "credit" | "debit"}
      ]
    }
    """

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": "statement_transactions",
        "schema": {
            "type": "object",
            "properties": {
                "transactions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "date": {
                                "type": "string",
                                "pattern": DATE_PATTERN,
                                "description": "Date in YYYY-MM-DD format",
                            },
                            "description": {
                                "type": "string",
                                "description": "Clean transaction description",
                            },
                            "amount": {
                                "type": "number",
                                "exclusiveMinimum": 0,
                                "description": "Positive amount value",
                            },
                            "direction": {
                                "type": "string",
                                "enum": ["credit", "debit"],
                                "description": "credit for money in, debit for money out",
                            },
                        },
                        "required": ["date", "description", "amount", "direction"],
                        "additionalProperties": False,
                    },
                }
            },
            "required": ["transactions"],
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = [
    "BEGIN",
    "END",
    "TEXT_MEDIA_TYPES",
    "build_response_format",
    "build_system_instructions",
    "build_user_content",
]
