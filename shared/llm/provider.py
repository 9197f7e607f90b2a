"""
LLM Provider Base
=================

Abstract base class, common models and errors for LLM providers.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Message role in conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    """A message in the conversation."""

    role: MessageRole | Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dict for API calls."""
        role_str = self.role.value if isinstance(self.role, MessageRole) else self.role
        return {"role": role_str, "content": self.content}


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    # Cost tracking (in USD)
    input_cost: float = 0.0
    output_cost: float = 0.0
    total_cost: float = 0.0


class LLMResponse(BaseModel):
    """Response from LLM provider."""

    content: str = Field(..., description="Generated text content")
    model: str = Field(..., description="Model used for generation")
    provider: str = Field(..., description="Provider name")
    usage: LLMUsage = Field(default_factory=LLMUsage)
    finish_reason: str | None = None

    # Additional metadata
    latency_ms: float = 0.0


class LLMError(Exception):
    """Base error for LLM provider failures."""


class LLMConfigurationError(LLMError):
    """Provider cannot be used because it is not configured (e.g. no API key)."""


class LLMRequestError(LLMError):
    """
    The provider call failed.

    Attributes:
        status_code: HTTP status returned by the provider, or 502 when the
            provider could not be reached at all.
    """

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Implements the Strategy pattern for swappable LLM backends.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier."""
        ...

    @property
    def supports_response_schema(self) -> bool:
        """Whether the provider enforces a JSON schema on its output server-side."""
        return False

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """
        Generate a completion for the given messages.

        Args:
            messages: Conversation messages
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens to generate
            response_schema: Named JSON schema ({"name", "schema", "strict"})
                the output must follow. Ignored by providers that cannot
                enforce it.

        Returns:
            LLMResponse with generated content

        Raises:
            LLMConfigurationError: Provider credentials are missing
            LLMRequestError: The provider call failed
        """
        ...
