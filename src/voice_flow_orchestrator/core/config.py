"""Model provider configuration for the orchestrator."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMConfig(BaseSettings):
    """Configuration for the chat model that drives flow execution."""

    provider: Literal["openai", "anthropic"] = Field(
        default="anthropic",
        description="Chat model provider to use",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI chat model to use",
    )

    # Anthropic settings
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20240620",
        description="Anthropic chat model to use",
    )

    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for flow execution",
    )

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATOR_LLM_",
        env_file=".env",
        extra="ignore",
    )


class EmbeddingConfig(BaseSettings):
    """Configuration for the embedding provider used by similarity search."""

    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key used for embeddings",
    )
    model: str = Field(
        default="text-embedding-3-small",
        description="Embedding model name",
    )
    dimensions: int = Field(
        default=768,
        gt=0,
        description="Output dimensionality; must match the vector index",
    )

    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATOR_EMBEDDING_",
        env_file=".env",
        extra="ignore",
    )
