"""
OpenAI Provider
===============

OpenAI chat completions implementation with structured-output support.

Version: 0.1.0
"""

import time
from typing import Any

import openai

from shared.config import settings
from shared.llm.provider import (
    LLMConfigurationError,
    LLMMessage,
    LLMProvider,
    LLMRequestError,
    LLMResponse,
    LLMUsage,
)
from shared.logging import get_logger


logger = get_logger(__name__)

# Pricing per 1M tokens
OPENAI_PRICING = {
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
}

DEFAULT_PRICING = {"input": 2.00, "output": 8.00}


def _error_message(error: openai.APIStatusError) -> str:
    """Pull the provider's own message out of an error body when present."""
    body = error.body
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    return error.message or "LLM request failed"


class OpenAIProvider(LLMProvider):
    """
    OpenAI GPT provider implementation.

    Supports schema-enforced decoding through `response_format=json_schema`.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            model: Model to use
            api_key: OpenAI API key (default from settings)
            client: Preconfigured client, mainly for tests

        Raises:
            LLMConfigurationError: No API key is configured
        """
        self._model = model

        if client is None:
            api_key = api_key or settings.llm.openai.api_key.get_secret_value()
            if not api_key:
                raise LLMConfigurationError("OPENAI_API_KEY not configured")

            client = openai.AsyncOpenAI(
                api_key=api_key,
                base_url=settings.llm.openai.base_url,
                timeout=float(settings.llm.timeout_seconds),
                max_retries=0,
            )

        self._client = client

        logger.debug("openai_provider_initialized", model=self._model)

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    @property
    def supports_response_schema(self) -> bool:
        return True

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
        response_schema: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """
        Generate a completion using OpenAI.

        Args:
            messages: Conversation messages
            temperature: Sampling temperature
            max_tokens: Max tokens to generate
            response_schema: Named JSON schema for structured output

        Returns:
            LLMResponse with generated content
        """
        start_time = time.perf_counter()

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [msg.to_dict() for msg in messages],
        }

        if temperature is not None:
            kwargs["temperature"] = temperature

        if max_tokens:
            kwargs["max_tokens"] = max_tokens

        if response_schema:
            kwargs["response_format"] = {"type": "json_schema", "json_schema": response_schema}

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            message = _error_message(e)
            logger.error(
                "openai_status_error",
                model=self._model,
                status_code=e.status_code,
                error=message,
            )
            raise LLMRequestError(message, status_code=e.status_code) from e
        except openai.APIConnectionError as e:
            logger.error("openai_connection_error", model=self._model, error=str(e))
            raise LLMRequestError(f"LLM provider unreachable: {e}", status_code=502) from e

        latency_ms = (time.perf_counter() - start_time) * 1000

        choice = response.choices[0] if response.choices else None
        content = (choice.message.content if choice else None) or ""

        pricing = OPENAI_PRICING.get(self._model, DEFAULT_PRICING)

        prompt_tokens = response.usage.prompt_tokens if response.usage else 0
        completion_tokens = response.usage.completion_tokens if response.usage else 0

        input_cost = (prompt_tokens / 1_000_000) * pricing["input"]
        output_cost = (completion_tokens / 1_000_000) * pricing["output"]

        usage = LLMUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
            input_cost=input_cost,
            output_cost=output_cost,
            total_cost=input_cost + output_cost,
        )

        logger.debug(
            "openai_completion",
            model=self._model,
            tokens=usage.total_tokens,
            cost=usage.total_cost,
            latency_ms=round(latency_ms, 2),
        )

        return LLMResponse(
            content=content,
            model=response.model or self._model,
            provider=self.name,
            usage=usage,
            finish_reason=choice.finish_reason if choice else None,
            latency_ms=latency_ms,
        )
