"""Tolerant JSON extraction and schema validation for model responses."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
_BRACED_JSON = re.compile(r"\{[\s\S]*\}")


@dataclass(slots=True)
class ParsedJson(Generic[ModelT]):
    success: bool
    data: ModelT | None = None
    error: str | None = None


def extract_json_payload(text: str) -> Any:
    """Decode JSON from a raw response, fenced block or brace span.

    Raises ``ValueError`` with a user-facing message when nothing decodes.
    """
    stripped = (text or "").strip()
    try:
        return json.loads(stripped)
    except json.JSONDecodeError:
        pass

    match = _FENCED_JSON.search(stripped) or _BRACED_JSON.search(stripped)
    if match is None:
        raise ValueError("No valid JSON found in response")
    candidate = match.group(1) if match.re is _FENCED_JSON else match.group(0)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ValueError("Failed to parse JSON from response") from exc


def parse_json_response(text: str, model: type[ModelT]) -> ParsedJson[ModelT]:
    try:
        payload = extract_json_payload(text)
    except ValueError as exc:
        return ParsedJson(success=False, error=str(exc))

    if not isinstance(payload, dict):
        return ParsedJson(success=False, error="Validation failed: expected a JSON object")

    try:
        return ParsedJson(success=True, data=model.model_validate(payload))
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        return ParsedJson(success=False, error=f"Validation failed: {details}")
