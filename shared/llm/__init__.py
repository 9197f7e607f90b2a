"""
LLM Provider Module
===================

Abstraction layer over LLM providers.

Supported providers:
- OpenAI GPT (schema-enforced structured output)

Usage:
    from shared.llm import LLMMessage, OpenAIProvider

    provider = OpenAIProvider(model="gpt-4.1-mini")

    response = await provider.complete(
        messages=[
            LLMMessage(role="system", content="You are a CPA regulatory analyst."),
            LLMMessage(role="user", content=statute_text),
        ],
        temperature=0.2,
    )
    print(response.content)
"""

from shared.llm.openai import OpenAIProvider
from shared.llm.provider import (
    LLMConfigurationError,
    LLMError,
    LLMMessage,
    LLMProvider,
    LLMRequestError,
    LLMResponse,
    LLMUsage,
)

__all__ = [
    # Base
    "LLMProvider",
    "LLMMessage",
    "LLMResponse",
    "LLMUsage",
    # Errors
    "LLMError",
    "LLMConfigurationError",
    "LLMRequestError",
    # Providers
    "OpenAIProvider",
]
