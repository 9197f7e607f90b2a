"""
Shared Models
=============

Pydantic models shared across services.

Models:
- Common response models (PaginatedResponse, ErrorResponse, HealthResponse)
- Pagination parameters
"""

from shared.models.common import (
    ErrorResponse,
    HealthResponse,
    PaginatedResponse,
    Pagination,
)

__all__ = [
    "PaginatedResponse",
    "ErrorResponse",
    "HealthResponse",
    "Pagination",
]
