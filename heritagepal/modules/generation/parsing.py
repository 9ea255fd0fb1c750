"""Turn free-text model output into a JSON array, or say why it could not.

The model is not guaranteed to emit valid JSON, so callers branch on the
returned ``ParseResult`` instead of catching decode errors.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class ParseResult:
    data: Optional[list[Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None


def strip_code_fences(text: str) -> str:
    content = text.strip()
    # Some models wrap JSON in ``` blocks; strip if present
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else ""
        if content.rstrip().endswith("```"):
            content = content.rstrip()[:-3]
    return content.strip()


def parse_json_array(text: Optional[str]) -> ParseResult:
    if text is None or not str(text).strip():
        return ParseResult(error="empty response")
    content = strip_code_fences(str(text))
    try:
        decoded = json.loads(content)
    except ValueError as e:
        return ParseResult(error=f"invalid JSON: {e}")
    if not isinstance(decoded, list):
        return ParseResult(error=f"expected a JSON array, got {type(decoded).__name__}")
    return ParseResult(data=decoded)


def validate_items(result: ParseResult, model: Type[T]) -> tuple[Optional[list[T]], Optional[str]]:
    """Validate every item of a successful parse against ``model``.

    Returns ``(items, None)`` or ``(None, reason)``; an empty array is a failure.
    """
    if not result.ok:
        return None, result.error
    if not result.data:
        return None, "empty array"
    try:
        items = TypeAdapter(list[model]).validate_python(result.data)  # type: ignore[valid-type]
    except PydanticValidationError as e:
        return None, f"invalid items: {e.error_count()} error(s)"
    return items, None


__all__ = ["ParseResult", "strip_code_fences", "parse_json_array", "validate_items"]
