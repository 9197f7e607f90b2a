"""
Extraction Routes
=================

API endpoint that runs the extraction pipeline for one jurisdiction.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from services.cpe_extraction.extraction import ExtractionPipeline, ModelInvoker
from services.cpe_extraction.models import ExtractionRequest, ExtractionResponse
from services.cpe_extraction.repository import (
    RequirementRepository,
    get_requirement_repository,
)
from shared.config import settings
from shared.logging import bind_context, get_logger


logger = get_logger(__name__)

router = APIRouter()


async def get_extraction_pipeline(
    repository: RequirementRepository = Depends(get_requirement_repository),
) -> ExtractionPipeline:
    """Dependency that provides a pipeline wired to the configured store and model."""
    config = settings.extraction
    return ExtractionPipeline(
        invoker=ModelInvoker(config),
        repository=repository,
        config=config,
    )


@router.post("/extract", response_model=ExtractionResponse)
async def extract_requirements(
    payload: Any = Body(default=None),
    pipeline: ExtractionPipeline = Depends(get_extraction_pipeline),
) -> ExtractionResponse:
    """
    Extract CPE requirements from statute text and save them.

    The body is validated here rather than by FastAPI so a missing field
    is reported as `400 {"error": "Missing field: <name>"}`.
    """
    request = ExtractionRequest.from_payload(payload)
    bind_context(state_code=request.state_code)

    outcome = await pipeline.run(request)

    return outcome.to_response()
