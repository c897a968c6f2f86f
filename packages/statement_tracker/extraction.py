"""Statement extraction boundary.

Public API:
    - :class:`StatementExtractor`: the narrow protocol the ingestion workflow
      depends on (``extract(data, media_type, file_name) -> records``).
    - :class:`OpenAIStatementExtractor`: implementation backed by the OpenAI
      Responses API with a strict JSON schema.

The extractor performs no parsing of its own; it forwards the file to the
model and validates the returned shape. Provider exceptions propagate
unchanged. Undecodable or off-schema output raises
:class:`~statement_tracker.errors.ExtractionError`. No retries are attempted
here; a retrying decorator can wrap any ``StatementExtractor`` without
touching the workflow.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from openai import OpenAI
from openai.types.responses import ResponseTextConfigParam
from pydantic import ValidationError

from . import prompting
from .errors import ExtractionError
from .logging_setup import get_logger
from .models import ExtractedTransaction, ExtractionResult
from .settings import DEFAULT_MODEL

_logger = get_logger("statement_tracker.extraction")


class StatementExtractor(Protocol):
    def extract(
        self, data: bytes, media_type: str, file_name: str | None = None
    ) -> list[ExtractedTransaction]: ...


def _extract_response_json_mapping(resp: Any) -> Mapping[str, Any]:
    """Decode the JSON mapping from an OpenAI Responses SDK result.

    - Prefer ``resp.output_text``; fallback to ``resp.output[0].content[0].text``.
    - Raise ``ExtractionError`` if text cannot be located or JSON decoding fails.
    """

    text: str | None = getattr(resp, "output_text", None)
    if not text:
        output = getattr(resp, "output", None)
        first = output[0] if output else None
        content = getattr(first, "content", None)
        if content:
            txt_obj = getattr(content[0], "text", None)
            if isinstance(txt_obj, str):
                text = txt_obj
            else:
                # Some SDKs expose text as an object with a ``value`` string.
                maybe_val = getattr(txt_obj, "value", None)
                if isinstance(maybe_val, str):
                    text = maybe_val
    if not text or not isinstance(text, str):
        raise ExtractionError("Unexpected Responses API shape; unable to locate text output")

    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExtractionError("Model output was not valid JSON per the requested schema") from e
    if not isinstance(decoded, Mapping):
        raise ExtractionError("Model output was not a JSON object")
    return decoded


def parse_extraction_output(decoded: Mapping[str, Any]) -> list[ExtractedTransaction]:
    try:
        result = ExtractionResult.model_validate(decoded)
    except ValidationError as e:
        raise ExtractionError(f"Model output did not match the transaction schema: {e}") from e
    return result.transactions


class OpenAIStatementExtractor:
    """Extract transactions by sending the statement file to the Responses API.

    Parameters
    ----------
    model:
        Responses model name.
    client_factory:
        Zero-argument callable returning an ``OpenAI``-compatible client. The
        default reads ``OPENAI_API_KEY`` from the environment via the SDK.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._model = model
        self._client_factory = client_factory

    def _create_client(self) -> Any:
        if self._client_factory is not None:
            return self._client_factory()
        return OpenAI()

    def extract(
        self, data: bytes, media_type: str, file_name: str | None = None
    ) -> list[ExtractedTransaction]:
        text_cfg = ResponseTextConfigParam(format=prompting.build_response_format())
        content = prompting.build_user_content(data, media_type, file_name)

        _logger.info(
            "extract:request file=%s media_type=%s bytes=%d model=%s",
            file_name,
            media_type,
            len(data),
            self._model,
        )
        client = self._create_client()
        t0 = time.perf_counter()
        resp = client.responses.create(
            model=self._model,
            instructions=prompting.build_system_instructions(),
            input=[{"role": "user", "content": content}],
            text=text_cfg,
        )
        records = parse_extraction_output(_extract_response_json_mapping(resp))
        _logger.info(
            "extract:done file=%s records=%d seconds=%.2f",
            file_name,
            len(records),
            time.perf_counter() - t0,
        )
        return records


__all__ = [
    "OpenAIStatementExtractor",
    "StatementExtractor",
    "parse_extraction_output",
]
