"""
Model Invoker
=============

Sends statute text plus the extraction contract to the LLM with a fixed,
low-temperature configuration and returns the raw response text.

Version: 0.1.0
"""

from collections.abc import Callable

from services.cpe_extraction.errors import ConfigurationError, ModelInvocationError
from services.cpe_extraction.extraction.contract import ExtractionContract
from shared.config import ExtractionSettings
from shared.llm import (
    LLMConfigurationError,
    LLMProvider,
    LLMRequestError,
    LLMResponse,
    OpenAIProvider,
)
from shared.logging import get_logger


logger = get_logger(__name__)

ProviderFactory = Callable[[str], LLMProvider]


def openai_provider_factory(model: str) -> LLMProvider:
    """Create an OpenAI provider for the given model."""
    return OpenAIProvider(model=model)


class ModelInvoker:
    """
    One-shot LLM call for an extraction.

    Errors are not retried; the caller may resubmit.
    """

    def __init__(
        self,
        config: ExtractionSettings,
        provider_factory: ProviderFactory = openai_provider_factory,
    ) -> None:
        """
        Initialize the invoker.

        Args:
            config: Extraction configuration (allow-list, temperature)
            provider_factory: Builds a provider for a model name
        """
        self.config = config
        self.provider_factory = provider_factory

    def resolve_model(self, requested: str | None) -> str:
        """Return the requested model if allow-listed, else the default."""
        if requested and requested in self.config.allowed_models:
            return requested
        if requested:
            logger.info(
                "model_not_allowed",
                requested=requested,
                fallback=self.config.default_model,
            )
        return self.config.default_model

    async def invoke(
        self,
        source_text: str,
        contract: ExtractionContract,
        model: str,
    ) -> LLMResponse:
        """
        Run the extraction prompt.

        Args:
            source_text: Statute/rule text to interpret
            contract: Instructions and output schema
            model: Allow-listed model name

        Returns:
            LLMResponse whose content is the raw model text

        Raises:
            ConfigurationError: Provider credentials are missing
            ModelInvocationError: The provider call failed
        """
        try:
            provider = self.provider_factory(model)
        except LLMConfigurationError as e:
            logger.error("llm_not_configured", error=str(e))
            raise ConfigurationError(str(e)) from e

        schema = contract.schema if provider.supports_response_schema else None

        try:
            response = await provider.complete(
                contract.messages(source_text),
                temperature=self.config.temperature,
                response_schema=schema,
            )
        except LLMRequestError as e:
            raise ModelInvocationError(e.message, status_code=e.status_code) from e

        logger.info(
            "model_invoked",
            provider=provider.name,
            model=response.model,
            schema_enforced=schema is not None,
            tokens=response.usage.total_tokens,
            finish_reason=response.finish_reason,
            latency_ms=round(response.latency_ms, 2),
        )

        return response
