"""
Extraction Pipeline
===================

Runs one extraction end to end:

1. Build the contract and invoke the model
2. Parse the raw response (failure is a value, not an exception)
3. Validate the shape and evaluate the review signals
4. Normalize into a flat record
5. Upsert the record keyed by state code

Only configuration, provider and persistence failures abort a run;
everything else degrades to `needs_human_review = True`.

Version: 0.1.0
"""

import time
from dataclasses import dataclass, field
from typing import Any

from services.cpe_extraction.extraction.contract import ExtractionContract, build_contract
from services.cpe_extraction.extraction.invoker import ModelInvoker
from services.cpe_extraction.extraction.normalizer import normalize_record
from services.cpe_extraction.extraction.response import ParseResult, extract_json
from services.cpe_extraction.extraction.review import collect_review_signals
from services.cpe_extraction.extraction.validation import collect_violations
from services.cpe_extraction.models import (
    ExtractionRequest,
    ExtractionResponse,
    PersistedRequirement,
)
from services.cpe_extraction.repository import RequirementRepository
from shared.config import ExtractionSettings
from shared.logging import get_logger


logger = get_logger(__name__)


@dataclass
class ExtractionOutcome:
    """Result of a completed extraction run."""

    record: PersistedRequirement
    raw: dict[str, Any]
    needs_human_review: bool
    violations: list[str] = field(default_factory=list)

    def to_response(self) -> ExtractionResponse:
        return ExtractionResponse(
            data=self.record.to_response(),
            raw=self.raw,
            needs_human_review=self.needs_human_review,
            violations=self.violations,
        )


def normalize_payload(result: ParseResult, request_state_code: str) -> dict[str, Any]:
    """
    Parsed value with an upper-cased state code.

    The request's code fills in when the model left it out. Non-string
    codes are kept as-is so the validator reports them.
    """
    payload = dict(result.value)
    code = payload.get("state_code")
    if not code:
        payload["state_code"] = request_state_code
    elif isinstance(code, str):
        payload["state_code"] = code.upper()
    return payload


class ExtractionPipeline:
    """Extraction, validation, review and persistence for one request."""

    def __init__(
        self,
        invoker: ModelInvoker,
        repository: RequirementRepository,
        config: ExtractionSettings,
        contract: ExtractionContract | None = None,
    ) -> None:
        self.invoker = invoker
        self.repository = repository
        self.config = config
        self.contract = contract or build_contract()

    async def run(self, request: ExtractionRequest) -> ExtractionOutcome:
        """
        Extract, review and persist requirements for `request.state_code`.

        Raises:
            ConfigurationError: Provider credentials are missing
            ModelInvocationError: The provider call failed
            PersistenceError: The record could not be saved
        """
        start_time = time.perf_counter()
        model_name = self.invoker.resolve_model(request.model_name)

        logger.info(
            "extraction_started",
            state_code=request.state_code,
            model=model_name,
            chars=len(request.source_text),
        )

        response = await self.invoker.invoke(request.source_text, self.contract, model_name)

        result = extract_json(response.content)
        if not result.ok:
            logger.warning(
                "model_response_unparseable",
                state_code=request.state_code,
                reason=result.reason,
                finish_reason=response.finish_reason,
            )

        payload = normalize_payload(result, request.state_code)
        violations = collect_violations(result, payload)
        signals = collect_review_signals(
            result,
            violations,
            payload,
            request.state_code,
            request.source_text,
            self.config,
        )

        record = normalize_record(
            payload,
            request,
            needs_review=signals.flagged,
            model_name=model_name,
            config=self.config,
        )
        stored = await self.repository.upsert(record)

        logger.info(
            "extraction_completed",
            state_code=request.state_code,
            needs_human_review=signals.flagged,
            review_signals=signals.fired(),
            violations=len(violations),
            processing_time=f"{time.perf_counter() - start_time:.2f}s",
        )

        return ExtractionOutcome(
            record=stored,
            raw=payload,
            needs_human_review=signals.flagged,
            violations=violations,
        )
