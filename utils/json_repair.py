"""Best-effort JSON extraction from LLM responses.

Models asked for JSON often wrap it in markdown fences, prepend a
sentence, or leave trailing commas. ``parse_llm_json`` tries a few cheap
repairs before giving up; ``parse_or_default`` layers schema validation
and a deterministic fallback on top so callers never branch on
exceptions.
"""

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

_MISSING = object()


def parse_llm_json(text: str | None, default: Any = _MISSING) -> Any:
    """Parse JSON out of an LLM response.

    Tries, in order: the raw text, each fenced code block, and the first
    balanced object or array in the text. Each candidate is also retried
    with trailing commas removed.

    Args:
        text: Raw completion text
        default: Returned when nothing parses. If omitted, ValueError is
            raised instead.

    Returns:
        The decoded JSON value.
    """
    if text:
        for candidate in _candidates(text):
            for attempt in (candidate, _TRAILING_COMMA_RE.sub(r"\1", candidate)):
                try:
                    return json.loads(attempt)
                except json.JSONDecodeError:
                    continue

    if default is _MISSING:
        raise ValueError("No JSON found in LLM response")
    return default


def _candidates(text: str) -> list[str]:
    candidates = [text.strip()]
    candidates.extend(block.strip() for block in _FENCE_RE.findall(text))
    balanced = _first_balanced(text)
    if balanced:
        candidates.append(balanced)
    return candidates


def _first_balanced(text: str) -> str | None:
    """Return the first balanced {...} or [...] span, honouring strings."""
    start = next((i for i, ch in enumerate(text) if ch in "{["), None)
    if start is None:
        return None

    closing = {"{": "}", "[": "]"}
    stack: list[str] = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in closing:
            stack.append(closing[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return text[start : i + 1]
    return None


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """Outcome of ``parse_or_default``.

    Attributes:
        value: The validated model, or the fallback
        structured: True when the value came from the model's JSON
    """

    value: T
    structured: bool


def parse_or_default(
    text: str | None,
    schema: type[T],
    default: Callable[[str], T],
) -> Parsed[T]:
    """Validate LLM output against ``schema`` or fall back.

    Parse failures are ordinary input here: anything that is not a JSON
    object matching ``schema`` yields ``default(text)``.

    Args:
        text: Raw completion text
        schema: Pydantic model the JSON must satisfy
        default: Builds the fallback from the raw text

    Returns:
        Parsed wrapper with the value and which path produced it.
    """
    data = parse_llm_json(text, default=None)
    if isinstance(data, dict):
        try:
            return Parsed(schema.model_validate(data), structured=True)
        except PydanticValidationError as exc:
            logger.info(
                "LLM JSON did not match %s (%d errors), using fallback",
                schema.__name__,
                exc.error_count(),
            )
    else:
        logger.info("No JSON object in LLM output, using %s fallback", schema.__name__)
    return Parsed(default(text or ""), structured=False)
