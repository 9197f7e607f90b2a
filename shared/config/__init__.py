"""
Configuration Module
====================

Centralized configuration management using Pydantic Settings.
Loads from environment variables with type validation and defaults.

Usage:
    from shared.config import settings

    print(settings.environment)
    print(settings.extraction.min_confidence)
"""

from shared.config.settings import (
    Environment,
    ExtractionSettings,
    LogLevel,
    Settings,
    get_settings,
)


# Global settings instance (singleton)
settings = get_settings()

__all__ = [
    "Settings",
    "ExtractionSettings",
    "get_settings",
    "settings",
    "Environment",
    "LogLevel",
]
