"""Factory for creating chat models and embedding providers."""

import logging

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from voice_flow_orchestrator.core.config import EmbeddingConfig, LLMConfig
from voice_flow_orchestrator.llm.openai_provider import OpenAIEmbeddingProvider
from voice_flow_orchestrator.llm.provider import EmbeddingProvider

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating model provider instances."""

    @staticmethod
    def create_chat_model(config: LLMConfig) -> BaseChatModel:
        """Create a tool-calling chat model based on configuration.

        Args:
            config: LLM configuration specifying the provider.

        Returns:
            Configured LangChain chat model.

        Raises:
            ValueError: If the provider is unsupported or its API key is missing.
        """
        logger.info(f"Creating chat model: {config.provider}")

        if config.provider == "openai":
            if not config.openai_api_key:
                raise ValueError("OpenAI API key is required")
            return ChatOpenAI(
                model=config.openai_model,
                api_key=config.openai_api_key,
                temperature=config.temperature,
            )
        elif config.provider == "anthropic":
            if not config.anthropic_api_key:
                raise ValueError("Anthropic API key is required")
            return ChatAnthropic(
                model=config.anthropic_model,
                api_key=config.anthropic_api_key,
                temperature=config.temperature,
            )
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

    @staticmethod
    def create_embedder(config: EmbeddingConfig) -> EmbeddingProvider:
        """Create the embedding provider used for action similarity."""
        logger.info(f"Creating embedding provider with model: {config.model}")
        return OpenAIEmbeddingProvider(config)
