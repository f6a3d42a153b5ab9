"""OpenAI embedding provider implementation."""

import logging

from openai import AsyncOpenAI

from voice_flow_orchestrator.core.config import EmbeddingConfig
from voice_flow_orchestrator.llm.provider import EmbeddingProvider, EmbeddingTaskType

logger = logging.getLogger(__name__)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """OpenAI embeddings API provider implementation."""

    def __init__(self, config: EmbeddingConfig, client: AsyncOpenAI | None = None) -> None:
        """Initialize the OpenAI embedding provider.

        Args:
            config: Embedding configuration.
            client: Optional pre-built client.

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.openai_api_key:
            raise ValueError("OpenAI API key is required for embeddings")

        self.config = config
        self.client = client or AsyncOpenAI(api_key=config.openai_api_key)
        self.model = config.model
        self._dimensions = config.dimensions

        logger.info(f"OpenAI embedding provider initialized with model: {self.model}")

    @property
    def dimensions(self) -> int:
        return self._dimensions

    async def embed(
        self,
        text: str,
        task_type: EmbeddingTaskType = EmbeddingTaskType.SEMANTIC_SIMILARITY,
    ) -> list[float]:
        """Compute an embedding with the OpenAI embeddings API.

        OpenAI embeddings are task-agnostic, so `task_type` is only logged.
        """
        logger.debug(
            "Requesting embedding",
            extra={"model": self.model, "task_type": task_type.value, "chars": len(text)},
        )
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self._dimensions,
            )
        except Exception:
            logger.exception("Embedding request failed", extra={"model": self.model})
            raise

        if not response.data:
            raise RuntimeError("Failed to generate embedding")
        return list(response.data[0].embedding)

    async def close(self) -> None:
        await self.client.close()
