"""
Response Extractor
==================

Turns raw model text into a parsed JSON object, or a typed parse failure.
Nothing here raises: a failure is an ordinary value that the validator and
the review evaluator consume.

Version: 0.1.0
"""

import json
import math
import re
from dataclasses import dataclass
from typing import Any


FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


class NonFiniteNumberError(ValueError):
    """A JSON number that is not finite (NaN, Infinity or an overflowing float)."""


def _reject_constant(name: str) -> Any:
    raise NonFiniteNumberError(f"non-standard constant {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise NonFiniteNumberError(f"number out of range: {literal}")
    return value


@dataclass(frozen=True)
class ParseSuccess:
    """The response held a JSON object."""

    value: dict[str, Any]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ParseFailure:
    """The response could not be read as a JSON object."""

    reason: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> dict[str, Any]:
        return {}


ParseResult = ParseSuccess | ParseFailure


def strip_fence(content: str) -> str:
    """Unwrap a markdown code fence if present, otherwise trim."""
    fenced = FENCED_BLOCK.search(content)
    if fenced:
        return fenced.group(1).strip()
    return content.strip()


def extract_json(content: str | None) -> ParseResult:
    """
    Parse the model's raw text.

    Args:
        content: Raw response text, possibly fenced, truncated or empty

    Returns:
        ParseSuccess with the decoded object, or ParseFailure with a reason
    """
    if not content or not content.strip():
        return ParseFailure("empty response")

    cleaned = strip_fence(content)

    try:
        value = json.loads(cleaned, parse_constant=_reject_constant, parse_float=_finite_float)
    except json.JSONDecodeError as e:
        return ParseFailure(f"invalid JSON: {e.msg} at line {e.lineno} column {e.colno}")
    except ValueError as e:
        # Non-finite numbers and integer literals past the digit limit
        return ParseFailure(f"invalid JSON: {e}")

    if not isinstance(value, dict):
        return ParseFailure(f"expected a JSON object, got {type(value).__name__}")

    return ParseSuccess(value)
