"""
Review-Flag Evaluator
=====================

Decides whether an extraction must be checked by a person before it is
trusted. Any single signal is enough; the result is a plain boolean.

Version: 0.1.0
"""

import re
from dataclasses import astuple, dataclass
from functools import lru_cache
from typing import Any

from services.cpe_extraction.extraction.response import ParseResult
from services.cpe_extraction.extraction.validation import is_number
from shared.config import ExtractionSettings


@lru_cache(maxsize=8)
def _discretionary_regex(patterns: tuple[str, ...]) -> re.Pattern[str] | None:
    if not patterns:
        return None
    return re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE)


def has_discretionary_language(text: str, patterns: tuple[str, ...]) -> bool:
    """Whether `text` contains board-discretion, case-by-case or waiver wording."""
    regex = _discretionary_regex(patterns)
    return bool(regex and text and regex.search(text))


@dataclass(frozen=True)
class ReviewSignals:
    """Individual review signals for one extraction."""

    parse_failed: bool
    has_violations: bool
    low_confidence: bool
    state_mismatch: bool
    discretionary_language: bool
    model_requested_review: bool

    @property
    def flagged(self) -> bool:
        return any(astuple(self))

    def fired(self) -> list[str]:
        """Names of the signals that are set, for logging."""
        return [name for name, value in self.__dict__.items() if value]


def collect_review_signals(
    result: ParseResult,
    violations: list[str],
    payload: dict[str, Any],
    request_state_code: str,
    source_text: str,
    config: ExtractionSettings,
) -> ReviewSignals:
    """
    Evaluate each review signal.

    Args:
        result: Outcome of parsing the model response
        violations: Output of the shape validator
        payload: Parsed value after state-code normalization
        request_state_code: Upper-cased state code from the request
        source_text: Statute text sent to the model
        config: Threshold and discretionary-language patterns
    """
    confidence = payload.get("extraction_confidence")
    extracted_code = payload.get("state_code")

    return ReviewSignals(
        parse_failed=not result.ok,
        has_violations=bool(violations),
        low_confidence=not is_number(confidence) or confidence < config.min_confidence,
        state_mismatch=bool(extracted_code) and extracted_code != request_state_code,
        discretionary_language=has_discretionary_language(source_text, config.discretionary_patterns),
        model_requested_review=payload.get("needs_human_review") is True,
    )


def needs_human_review(
    result: ParseResult,
    violations: list[str],
    payload: dict[str, Any],
    request_state_code: str,
    source_text: str,
    config: ExtractionSettings,
) -> bool:
    """True when any review signal fires."""
    return collect_review_signals(
        result,
        violations,
        payload,
        request_state_code,
        source_text,
        config,
    ).flagged
