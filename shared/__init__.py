"""
CPE Regulatory Shared Library
=============================

Common utilities, configurations, and abstractions shared across services.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - database: MongoDB client
    - llm: LLM provider abstraction (OpenAI)
    - models: Shared Pydantic models

Version: 0.1.0
"""

__version__ = "0.1.0"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
