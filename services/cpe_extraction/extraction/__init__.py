"""
CPE Extraction Pipeline
=======================

Modules:
- contract: Fixed instructions and strict output schema
- invoker: Schema-enforced LLM call
- response: Raw text to parsed JSON (or a parse failure)
- validation: Independent shape validation
- review: Human-review flag
- normalizer: Flat persisted record
- pipeline: End-to-end orchestration

Version: 0.1.0
"""

from services.cpe_extraction.extraction.contract import (
    CONTRACT_SCHEMA,
    ExtractionContract,
    build_contract,
)
from services.cpe_extraction.extraction.invoker import ModelInvoker
from services.cpe_extraction.extraction.normalizer import normalize_record
from services.cpe_extraction.extraction.pipeline import (
    ExtractionOutcome,
    ExtractionPipeline,
)
from services.cpe_extraction.extraction.response import (
    ParseFailure,
    ParseResult,
    ParseSuccess,
    extract_json,
)
from services.cpe_extraction.extraction.review import (
    ReviewSignals,
    collect_review_signals,
    needs_human_review,
)
from services.cpe_extraction.extraction.validation import (
    collect_violations,
    validate_shape,
)


__all__ = [
    # Contract
    "CONTRACT_SCHEMA",
    "ExtractionContract",
    "build_contract",
    # Invocation
    "ModelInvoker",
    # Parsing
    "ParseFailure",
    "ParseResult",
    "ParseSuccess",
    "extract_json",
    # Validation and review
    "validate_shape",
    "collect_violations",
    "ReviewSignals",
    "collect_review_signals",
    "needs_human_review",
    # Normalization
    "normalize_record",
    # Pipeline
    "ExtractionOutcome",
    "ExtractionPipeline",
]
