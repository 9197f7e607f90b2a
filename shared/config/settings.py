"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class MongoSettings(BaseSettings):
    """MongoDB configuration."""

    model_config = SettingsConfigDict(env_prefix="MONGODB_")

    host: str = "localhost"
    port: int = 27017
    user: str = "cpe"
    password: SecretStr = SecretStr("cpe_mongo_password")
    db: str = Field(default="cpe_regulatory", alias="MONGODB_DB")

    @property
    def uri(self) -> str:
        """Generate MongoDB connection URI."""
        pwd = self.password.get_secret_value()
        return f"mongodb://{self.user}:{pwd}@{self.host}:{self.port}/{self.db}?authSource=admin"


class OpenAISettings(BaseSettings):
    """OpenAI API configuration."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    api_key: SecretStr = SecretStr("")
    base_url: str | None = None


class LLMSettings(BaseSettings):
    """LLM provider configuration."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    timeout_seconds: int = 120

    openai: OpenAISettings = Field(default_factory=OpenAISettings)


class ExtractionSettings(BaseSettings):
    """
    Extraction pipeline configuration.

    Frozen so a single instance can be handed to the invoker, the review
    evaluator and the normalizer without any of them changing it.
    """

    model_config = SettingsConfigDict(env_prefix="EXTRACTION_", frozen=True)

    allowed_models: tuple[str, ...] = ("gpt-4.1-mini", "gpt-4.1")
    default_model: str = "gpt-4.1-mini"
    temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    min_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    schema_version: str = "cpa_cpe_v1"
    collection: str = "cpa_state_cpe_requirements"

    # Case-insensitive regular expressions for discretionary language
    discretionary_patterns: tuple[str, ...] = (
        r"case[- ]by[- ]case",
        r"board discretion",
        r"discretion of the board",
        r"may waive",
        r"as determined by (?:the )?board",
        r"\bwaiver\b",
    )

    @field_validator("default_model")
    @classmethod
    def default_model_not_blank(cls, v: str) -> str:
        """Reject an empty default model name."""
        if not v.strip():
            raise ValueError("default_model must not be empty")
        return v.strip()


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    cpe_extraction: int = Field(default=8001, alias="CPE_EXTRACTION_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Project paths
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Database connection
    mongodb: MongoSettings = Field(default_factory=MongoSettings)

    # LLM configuration
    llm: LLMSettings = Field(default_factory=LLMSettings)

    # Extraction pipeline
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
