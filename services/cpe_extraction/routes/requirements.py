"""
Requirements Routes
===================

Read endpoints for stored CPE requirement records.

Version: 0.1.0
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status

from services.cpe_extraction.repository import (
    RequirementRepository,
    get_requirement_repository,
)
from shared.logging import get_logger
from shared.models.common import PaginatedResponse, Pagination


logger = get_logger(__name__)

router = APIRouter()


@router.get("", response_model=PaginatedResponse[dict[str, Any]])
async def list_requirements(
    needs_review: bool | None = Query(default=None, description="Filter by review flag"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    repository: RequirementRepository = Depends(get_requirement_repository),
) -> PaginatedResponse[dict[str, Any]]:
    """
    List stored requirements, most recently extracted first.

    Args:
        needs_review: Only records with this review flag
        page: Page number
        page_size: Items per page
        repository: Requirement store
    """
    pagination = Pagination(page=page, page_size=page_size)
    records, total = await repository.list_page(pagination, needs_review=needs_review)

    pages = (total + page_size - 1) // page_size if total > 0 else 1

    logger.debug(
        "requirements_listed",
        total=total,
        page=page,
        needs_review=needs_review,
    )

    return PaginatedResponse(
        items=[record.to_response() for record in records],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/{state_code}", response_model=dict[str, Any])
async def get_requirement(
    state_code: str,
    repository: RequirementRepository = Depends(get_requirement_repository),
) -> dict[str, Any]:
    """
    Get the stored requirement for a state.

    Args:
        state_code: 2-letter jurisdiction code (case-insensitive)
        repository: Requirement store
    """
    record = await repository.get(state_code)

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Requirement not found: {state_code.upper()}",
        )

    return record.to_response()
